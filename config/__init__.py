"""
Configuration package for the CRM/ERP data warehouse.

This package contains configuration settings for the silver layer load.
"""

from config.settings import (
    AWS_REGION,
    S3_BUCKET_NAME,
    SILVER_LOAD_ORDER,
    S3_PREFIX_STRUCTURE,
    LOG_LEVEL,
    LOG_FORMAT,
    GLUE_DATABASE_PREFIX,
    GLUE_DATABASES,
    REGISTER_GLUE_TABLES,
    DELTA_TABLE_PROPERTIES,
    SCHEMA_VALIDATION,
    PRODUCT_KEY_MIN_LENGTH,
    STRICT_PRODUCT_KEYS,
    get_prefix,
    get_all_settings,
)

__all__ = [
    "AWS_REGION",
    "S3_BUCKET_NAME",
    "SILVER_LOAD_ORDER",
    "S3_PREFIX_STRUCTURE",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "GLUE_DATABASE_PREFIX",
    "GLUE_DATABASES",
    "REGISTER_GLUE_TABLES",
    "DELTA_TABLE_PROPERTIES",
    "SCHEMA_VALIDATION",
    "PRODUCT_KEY_MIN_LENGTH",
    "STRICT_PRODUCT_KEYS",
    "get_prefix",
    "get_all_settings",
]
