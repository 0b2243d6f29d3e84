"""
Configuration settings for the CRM/ERP data warehouse silver load.

This module contains all configuration settings for the silver layer load,
including:
- AWS settings (region, bucket name)
- Bronze and silver table locations
- The fixed order in which silver tables are loaded
- Data quality switches
- Logging settings

All settings can be overridden by environment variables with the same name prefixed with 'DWH_'.
For example, AWS_REGION can be overridden by setting the DWH_AWS_REGION environment variable.
"""

import os
from typing import Dict, Any, List

# AWS Settings
AWS_REGION = os.environ.get("DWH_AWS_REGION", "eu-west-1")
S3_BUCKET_NAME = os.environ.get("DWH_S3_BUCKET_NAME", "crm-erp-data-warehouse")

# Tables loaded into the silver layer, in load order.
# Each stage reads the bronze table of the same name.
SILVER_LOAD_ORDER: List[str] = [
    "crm_cust_info",
    "crm_prd_info",
    "crm_sales_details",
    "erp_cust_az12",
    "erp_loc_a101",
    "erp_px_cat_g1v2",
]

# S3 Prefix Structure
S3_PREFIX_STRUCTURE = {
    layer: {table: f"{layer}/{table}/" for table in SILVER_LOAD_ORDER}
    for layer in ("bronze", "silver")
}

# Logging settings
LOG_LEVEL = os.environ.get("DWH_LOG_LEVEL", "INFO")
LOG_FORMAT = os.environ.get(
    "DWH_LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# Glue Data Catalog settings
GLUE_DATABASE_PREFIX = os.environ.get("DWH_GLUE_DATABASE_PREFIX", "datawarehouse")
GLUE_DATABASES = {
    "bronze": f"{GLUE_DATABASE_PREFIX}_bronze",
    "silver": f"{GLUE_DATABASE_PREFIX}_silver",
}
REGISTER_GLUE_TABLES = (
    os.environ.get("DWH_REGISTER_GLUE_TABLES", "true").lower() == "true"
)

# Delta Lake settings
DELTA_TABLE_PROPERTIES = {
    "delta.autoOptimize.optimizeWrite": "true",
    "delta.autoOptimize.autoCompact": "true",
}

# Schema settings
SCHEMA_VALIDATION = os.environ.get("DWH_SCHEMA_VALIDATION", "true").lower() == "true"

# Product keys are fixed-width: 5 category characters, a separator, then the key
PRODUCT_KEY_MIN_LENGTH = int(os.environ.get("DWH_PRODUCT_KEY_MIN_LENGTH", "7"))
STRICT_PRODUCT_KEYS = (
    os.environ.get("DWH_STRICT_PRODUCT_KEYS", "true").lower() == "true"
)


# Function to get a specific prefix
def get_prefix(layer: str, category: str) -> str:
    """
    Get a specific prefix from the S3 prefix structure.

    Args:
        layer: The data layer (bronze, silver)
        category: The table or category within the layer

    Returns:
        str: The prefix

    Raises:
        KeyError: If the layer or category does not exist
    """
    return S3_PREFIX_STRUCTURE[layer][category]


# Function to get all settings as a dictionary
def get_all_settings() -> Dict[str, Any]:
    """
    Get all settings as a dictionary.

    Returns:
        Dict[str, Any]: All settings
    """
    return {
        "AWS_REGION": AWS_REGION,
        "S3_BUCKET_NAME": S3_BUCKET_NAME,
        "SILVER_LOAD_ORDER": SILVER_LOAD_ORDER,
        "S3_PREFIX_STRUCTURE": S3_PREFIX_STRUCTURE,
        "LOG_LEVEL": LOG_LEVEL,
        "LOG_FORMAT": LOG_FORMAT,
        "GLUE_DATABASE_PREFIX": GLUE_DATABASE_PREFIX,
        "GLUE_DATABASES": GLUE_DATABASES,
        "REGISTER_GLUE_TABLES": REGISTER_GLUE_TABLES,
        "DELTA_TABLE_PROPERTIES": DELTA_TABLE_PROPERTIES,
        "SCHEMA_VALIDATION": SCHEMA_VALIDATION,
        "PRODUCT_KEY_MIN_LENGTH": PRODUCT_KEY_MIN_LENGTH,
        "STRICT_PRODUCT_KEYS": STRICT_PRODUCT_KEYS,
    }
