"""
Silver CRM Product Info ETL

This module transforms CRM product data from the bronze layer to the silver layer.
It performs the following operations:
1. Splits the composite product key into a category id and a clean product key
2. Defaults missing product costs to zero
3. Standardizes product line codes to full names
4. Derives the end date of each product version (SCD Type 2)

The stage is run as part of the silver load, see etl.silver.load_silver.
"""

import logging
from typing import Optional

from pyspark.sql import DataFrame
from pyspark.sql.functions import (
    col,
    date_sub,
    lead,
    length,
    lit,
    regexp_replace,
    to_date,
    when,
)
from pyspark.sql.window import Window

from etl.common.etl_utils import DataQualityError, map_code_values, require_schema
from etl.common.run_context import RunContext
from etl.common.schemas import (
    BRONZE_CRM_PRD_INFO_SCHEMA,
    SILVER_CRM_PRD_INFO_SCHEMA,
)
from config import LOG_LEVEL, LOG_FORMAT, PRODUCT_KEY_MIN_LENGTH, STRICT_PRODUCT_KEYS

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)
logger = logging.getLogger(__name__)

TABLE_NAME = "crm_prd_info"

PRODUCT_LINE_MAPPING = {
    "M": "Mountain",
    "R": "Road",
    "T": "Touring",
    "S": "Other sales",
}

COLUMNS_DESCRIPTION = {
    "prd_id": "CRM product id",
    "cat_id": "Category id parsed from the product key",
    "prd_key": "Product key without the category prefix",
    "prd_nm": "Product name",
    "prd_cost": "Product cost, missing costs default to 0",
    "prd_line": "Mountain, Road, Touring, Other sales or n/a",
    "prd_start_dt": "First day this product version is effective",
    "prd_end_dt": "Last day this product version is effective, null while current",
}


def check_product_keys(df: DataFrame, strict: bool = STRICT_PRODUCT_KEYS) -> None:
    """
    Check that product keys are long enough for the fixed-width layout.

    Args:
        df: Bronze product DataFrame
        strict: Raise instead of logging a warning when short keys are found

    Raises:
        DataQualityError: If short keys are found and strict is set
    """
    short_keys = df.filter(
        col("prd_key").isNotNull() & (length(col("prd_key")) < PRODUCT_KEY_MIN_LENGTH)
    )
    short_key_count = short_keys.count()

    if short_key_count == 0:
        return

    sample = [row.prd_key for row in short_keys.select("prd_key").limit(5).collect()]
    error_msg = (
        f"Found {short_key_count} product keys shorter than "
        f"{PRODUCT_KEY_MIN_LENGTH} characters, e.g. {sample}"
    )

    if strict:
        raise DataQualityError(error_msg)

    logger.warning(error_msg)


def parse_product_keys(df: DataFrame) -> DataFrame:
    """
    Split the composite product key.

    Characters 1-5 hold the category id, written with '-' where the silver
    layer uses '_'. The clean product key starts at character 7. The raw key
    is kept in _raw_prd_key for the end date derivation.

    Args:
        df: Product DataFrame

    Returns:
        DataFrame: DataFrame with cat_id and the clean prd_key
    """
    logger.info("Parsing category id and product key from prd_key")

    raw_key = col("prd_key")

    return (
        df.withColumn("_raw_prd_key", raw_key)
        .withColumn("cat_id", regexp_replace(raw_key.substr(1, 5), "-", "_"))
        .withColumn("prd_key", raw_key.substr(lit(7), length(raw_key)))
    )


def derive_end_dates(df: DataFrame) -> DataFrame:
    """
    Derive the end date of each product version.

    Versions of the same product are ordered by start date. A version ends the
    day before the next version starts; the latest version has no end date.

    Args:
        df: Product DataFrame with _raw_prd_key and a date typed prd_start_dt

    Returns:
        DataFrame: DataFrame with prd_end_dt
    """
    logger.info("Deriving product end dates")

    window = Window.partitionBy("_raw_prd_key").orderBy(
        col("prd_start_dt").asc(), col("prd_id").asc()
    )

    return df.withColumn(
        "prd_end_dt", date_sub(lead(col("prd_start_dt"), 1).over(window), 1)
    )


def transform_crm_prd_info_data(
    df: DataFrame,
    context: Optional[RunContext] = None,
    strict_keys: bool = STRICT_PRODUCT_KEYS,
) -> DataFrame:
    """
    Transform CRM product data for the silver layer.

    Args:
        df: Product DataFrame from the bronze layer
        context: Run context of the current batch
        strict_keys: Fail on product keys too short to parse

    Returns:
        DataFrame: Transformed product data
    """
    logger.info("Transforming CRM product data for silver layer")

    try:
        validated_df = require_schema(df, BRONZE_CRM_PRD_INFO_SCHEMA, f"bronze.{TABLE_NAME}")

        check_product_keys(validated_df, strict=strict_keys)

        parsed_df = parse_product_keys(validated_df)

        cleaned_df = (
            parsed_df.withColumn(
                "prd_cost",
                when(col("prd_cost").isNull() | (col("prd_cost") < 0), lit(0)).otherwise(
                    col("prd_cost")
                ),
            )
            .withColumn("prd_line", map_code_values("prd_line", PRODUCT_LINE_MAPPING))
            .withColumn("prd_start_dt", to_date(col("prd_start_dt")))
        )

        result_df = derive_end_dates(cleaned_df).select(
            *SILVER_CRM_PRD_INFO_SCHEMA.fieldNames()
        )

        return require_schema(
            result_df, SILVER_CRM_PRD_INFO_SCHEMA, f"silver.{TABLE_NAME}", strict=True
        )
    except Exception as e:
        logger.error(f"Error transforming CRM product data: {str(e)}")
        raise
