"""
Silver CRM Customer Info ETL

This module transforms CRM customer data from the bronze layer to the silver layer.
It performs the following operations:
1. Drops customers without an id
2. Keeps only the most recently created record per customer id
3. Trims customer names
4. Standardizes marital status and gender codes to full words

The stage is run as part of the silver load, see etl.silver.load_silver.
"""

import logging
from typing import Optional

from pyspark.sql import DataFrame
from pyspark.sql.functions import col, monotonically_increasing_id, row_number, trim
from pyspark.sql.window import Window

from etl.common.etl_utils import map_code_values, require_schema
from etl.common.run_context import RunContext
from etl.common.schemas import (
    BRONZE_CRM_CUST_INFO_SCHEMA,
    SILVER_CRM_CUST_INFO_SCHEMA,
)
from config import LOG_LEVEL, LOG_FORMAT

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)
logger = logging.getLogger(__name__)

TABLE_NAME = "crm_cust_info"

MARITAL_STATUS_MAPPING = {
    "S": "Single",
    "M": "Married",
}

# CRM only sends single letter gender codes
CRM_GENDER_MAPPING = {
    "F": "Female",
    "M": "Male",
}

COLUMNS_DESCRIPTION = {
    "cst_id": "CRM customer id, unique in the silver layer",
    "cst_key": "CRM customer business key",
    "cst_firstname": "Trimmed first name",
    "cst_lastname": "Trimmed last name",
    "cst_marital_status": "Single, Married or n/a",
    "cst_gndr": "Female, Male or n/a",
    "cst_create_date": "Date the customer record was created",
}


def deduplicate_customers(df: DataFrame) -> DataFrame:
    """
    Keep the latest record for each customer id.

    Records without an id are discarded. Records sharing an id are ranked by
    create date, newest first, with missing create dates ranked last. When two
    records share the same create date the one read first from bronze wins.

    Args:
        df: Bronze customer DataFrame

    Returns:
        DataFrame: At most one record per customer id
    """
    logger.info("Deduplicating customers by cst_id")

    window = Window.partitionBy("cst_id").orderBy(
        col("cst_create_date").desc_nulls_last(),
        col("_source_ordinal").asc(),
    )

    return (
        df.filter(col("cst_id").isNotNull())
        .withColumn("_source_ordinal", monotonically_increasing_id())
        .withColumn("_flag_last", row_number().over(window))
        .filter(col("_flag_last") == 1)
        .drop("_flag_last", "_source_ordinal")
    )


def standardize_customer_attributes(df: DataFrame) -> DataFrame:
    """
    Trim names and replace marital status and gender codes with full words.

    Args:
        df: Customer DataFrame

    Returns:
        DataFrame: DataFrame with standardized attributes
    """
    logger.info("Standardizing customer names, marital status and gender")

    return (
        df.withColumn("cst_firstname", trim(col("cst_firstname")))
        .withColumn("cst_lastname", trim(col("cst_lastname")))
        .withColumn(
            "cst_marital_status",
            map_code_values("cst_marital_status", MARITAL_STATUS_MAPPING),
        )
        .withColumn("cst_gndr", map_code_values("cst_gndr", CRM_GENDER_MAPPING))
    )


def transform_crm_cust_info_data(
    df: DataFrame, context: Optional[RunContext] = None
) -> DataFrame:
    """
    Transform CRM customer data for the silver layer.

    Args:
        df: Customer DataFrame from the bronze layer
        context: Run context of the current batch

    Returns:
        DataFrame: Transformed customer data
    """
    logger.info("Transforming CRM customer data for silver layer")

    try:
        validated_df = require_schema(df, BRONZE_CRM_CUST_INFO_SCHEMA, f"bronze.{TABLE_NAME}")

        deduplicated_df = deduplicate_customers(validated_df)
        standardized_df = standardize_customer_attributes(deduplicated_df)

        # Select only the columns in the silver schema
        result_df = standardized_df.select(*SILVER_CRM_CUST_INFO_SCHEMA.fieldNames())

        return require_schema(
            result_df, SILVER_CRM_CUST_INFO_SCHEMA, f"silver.{TABLE_NAME}", strict=True
        )
    except Exception as e:
        logger.error(f"Error transforming CRM customer data: {str(e)}")
        raise
