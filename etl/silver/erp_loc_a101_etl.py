"""
Silver ERP Location ETL

This module transforms ERP customer locations (erp_loc_a101) from the bronze layer to the silver layer.
It performs the following operations:
1. Removes hyphens from customer ids so they match the CRM customer keys
2. Replaces country codes with country names

The stage is run as part of the silver load, see etl.silver.load_silver.
"""

import logging
from typing import Optional

from pyspark.sql import DataFrame
from pyspark.sql.functions import col, lit, regexp_replace, trim, when

from etl.common.etl_utils import NOT_AVAILABLE, map_code_values, require_schema
from etl.common.run_context import RunContext
from etl.common.schemas import (
    BRONZE_ERP_LOC_A101_SCHEMA,
    SILVER_ERP_LOC_A101_SCHEMA,
)
from config import LOG_LEVEL, LOG_FORMAT

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)
logger = logging.getLogger(__name__)

TABLE_NAME = "erp_loc_a101"

COUNTRY_MAPPING = {
    "DE": "Germany",
    "US": "United States",
    "USA": "United States",
}

COLUMNS_DESCRIPTION = {
    "cid": "ERP customer id without hyphens",
    "cntry": "Country name, n/a when unknown",
}


def standardize_countries(df: DataFrame) -> DataFrame:
    """
    Replace country codes with country names.

    Blank and missing countries become n/a. Values that are not a known code
    are kept, trimmed.

    Args:
        df: ERP location DataFrame

    Returns:
        DataFrame: DataFrame with standardized country names
    """
    logger.info("Standardizing country names")

    country = trim(col("cntry"))

    return df.withColumn(
        "cntry",
        when(country.isNull() | (country == ""), lit(NOT_AVAILABLE)).otherwise(
            map_code_values("cntry", COUNTRY_MAPPING, default=country)
        ),
    )


def transform_erp_loc_a101_data(
    df: DataFrame, context: Optional[RunContext] = None
) -> DataFrame:
    """
    Transform ERP location data for the silver layer.

    Args:
        df: ERP location DataFrame from the bronze layer
        context: Run context of the current batch

    Returns:
        DataFrame: Transformed ERP location data
    """
    logger.info("Transforming ERP location data for silver layer")

    try:
        validated_df = require_schema(df, BRONZE_ERP_LOC_A101_SCHEMA, f"bronze.{TABLE_NAME}")

        cleaned_df = validated_df.withColumn("cid", regexp_replace(col("cid"), "-", ""))
        result_df = standardize_countries(cleaned_df).select(
            *SILVER_ERP_LOC_A101_SCHEMA.fieldNames()
        )

        return require_schema(
            result_df, SILVER_ERP_LOC_A101_SCHEMA, f"silver.{TABLE_NAME}", strict=True
        )
    except Exception as e:
        logger.error(f"Error transforming ERP location data: {str(e)}")
        raise
