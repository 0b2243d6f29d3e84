"""
Silver ERP Customer ETL

This module transforms ERP customer data (erp_cust_az12) from the bronze layer to the silver layer.
It performs the following operations:
1. Strips the 'NAS' prefix from customer ids
2. Clears birth dates that lie after the run date
3. Standardizes gender values to full words

The stage is run as part of the silver load, see etl.silver.load_silver.
"""

import logging
from datetime import date
from typing import Optional

from pyspark.sql import DataFrame
from pyspark.sql.functions import col, length, lit, upper, when
from pyspark.sql.types import DateType

from etl.common.etl_utils import map_code_values, require_schema
from etl.common.run_context import RunContext
from etl.common.schemas import (
    BRONZE_ERP_CUST_AZ12_SCHEMA,
    SILVER_ERP_CUST_AZ12_SCHEMA,
)
from config import LOG_LEVEL, LOG_FORMAT

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)
logger = logging.getLogger(__name__)

TABLE_NAME = "erp_cust_az12"

CUSTOMER_ID_PREFIX = "NAS"

# The ERP sends both letters and full words
ERP_GENDER_MAPPING = {
    "F": "Female",
    "FEMALE": "Female",
    "M": "Male",
    "MALE": "Male",
}

COLUMNS_DESCRIPTION = {
    "cid": "ERP customer id without the NAS prefix",
    "bdate": "Birth date, null when it lay in the future",
    "gen": "Female, Male or n/a",
}


def clean_customer_ids(df: DataFrame) -> DataFrame:
    """Strip the NAS prefix from customer ids."""
    logger.info(f"Stripping {CUSTOMER_ID_PREFIX} prefix from customer ids")

    cid = col("cid")
    return df.withColumn(
        "cid",
        when(
            upper(cid).startswith(CUSTOMER_ID_PREFIX),
            cid.substr(lit(len(CUSTOMER_ID_PREFIX) + 1), length(cid)),
        ).otherwise(cid),
    )


def clear_future_birth_dates(df: DataFrame, run_date: date) -> DataFrame:
    """
    Set birth dates after the run date to null.

    Args:
        df: ERP customer DataFrame
        run_date: The date the batch treats as today

    Returns:
        DataFrame: DataFrame with implausible birth dates removed
    """
    logger.info(f"Clearing birth dates after {run_date}")

    return df.withColumn(
        "bdate",
        when(col("bdate") > lit(run_date), lit(None).cast(DateType())).otherwise(
            col("bdate")
        ),
    )


def transform_erp_cust_az12_data(
    df: DataFrame, context: Optional[RunContext] = None
) -> DataFrame:
    """
    Transform ERP customer data for the silver layer.

    Args:
        df: ERP customer DataFrame from the bronze layer
        context: Run context of the current batch; its run_date bounds birth dates

    Returns:
        DataFrame: Transformed ERP customer data
    """
    logger.info("Transforming ERP customer data for silver layer")

    run_date = context.run_date if context and context.run_date else date.today()

    try:
        validated_df = require_schema(df, BRONZE_ERP_CUST_AZ12_SCHEMA, f"bronze.{TABLE_NAME}")

        cleaned_df = clean_customer_ids(validated_df)
        dated_df = clear_future_birth_dates(cleaned_df, run_date)
        result_df = dated_df.withColumn(
            "gen", map_code_values("gen", ERP_GENDER_MAPPING)
        ).select(*SILVER_ERP_CUST_AZ12_SCHEMA.fieldNames())

        return require_schema(
            result_df, SILVER_ERP_CUST_AZ12_SCHEMA, f"silver.{TABLE_NAME}", strict=True
        )
    except Exception as e:
        logger.error(f"Error transforming ERP customer data: {str(e)}")
        raise
