"""
Silver CRM Sales Details ETL

This module transforms CRM sales order lines from the bronze layer to the silver layer.
It performs the following operations:
1. Converts YYYYMMDD integer order, ship and due dates to dates
2. Recalculates sales amounts that are missing, not positive or inconsistent
3. Recalculates prices that are missing or not positive

The stage is run as part of the silver load, see etl.silver.load_silver.
"""

import logging
from typing import Optional

from pyspark.sql import DataFrame
from pyspark.sql.functions import abs as spark_abs, col, when

from etl.common.etl_utils import parse_int_date, require_schema
from etl.common.run_context import RunContext
from etl.common.schemas import (
    BRONZE_CRM_SALES_DETAILS_SCHEMA,
    SILVER_CRM_SALES_DETAILS_SCHEMA,
)
from config import LOG_LEVEL, LOG_FORMAT

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)
logger = logging.getLogger(__name__)

TABLE_NAME = "crm_sales_details"

DATE_COLUMNS = ["sls_order_dt", "sls_ship_dt", "sls_due_dt"]

COLUMNS_DESCRIPTION = {
    "sls_ord_num": "Sales order number",
    "sls_prd_key": "Product key of the order line",
    "sls_cust_id": "CRM customer id",
    "sls_order_dt": "Order date, null when the source value was invalid",
    "sls_ship_dt": "Ship date, null when the source value was invalid",
    "sls_due_dt": "Due date, null when the source value was invalid",
    "sls_sales": "Sales amount, equal to quantity times price",
    "sls_quantity": "Quantity ordered",
    "sls_price": "Unit price",
}


def convert_order_dates(df: DataFrame) -> DataFrame:
    """
    Convert the integer encoded order, ship and due dates.

    Args:
        df: Sales details DataFrame

    Returns:
        DataFrame: DataFrame with date typed order, ship and due dates
    """
    logger.info(f"Converting integer dates: {DATE_COLUMNS}")

    return df.withColumns({column: parse_int_date(column) for column in DATE_COLUMNS})


def reconcile_sales_and_price(df: DataFrame) -> DataFrame:
    """
    Recalculate invalid sales amounts and prices.

    The sales amount is replaced by quantity * |price| when it is null, not
    positive, or differs from quantity * |price|. The price is replaced by
    sales / quantity when it is null or not positive; a zero quantity gives a
    null price. Both use the bronze values, neither sees the other's result.
    Prices stay integers, so the division truncates toward zero.

    Args:
        df: Sales details DataFrame

    Returns:
        DataFrame: DataFrame with reconciled sls_sales and sls_price
    """
    logger.info("Reconciling sales amounts and prices")

    sales = col("sls_sales")
    quantity = col("sls_quantity")
    price = col("sls_price")
    expected_sales = quantity * spark_abs(price)

    sales_final = when(
        sales.isNull() | (sales <= 0) | (sales != expected_sales), expected_sales
    ).otherwise(sales)

    price_final = when(
        price.isNull() | (price <= 0),
        when(quantity != 0, (sales / quantity).cast("int")),
    ).otherwise(price)

    # withColumns evaluates every expression against the incoming columns
    return df.withColumns({"sls_sales": sales_final, "sls_price": price_final})


def transform_crm_sales_details_data(
    df: DataFrame, context: Optional[RunContext] = None
) -> DataFrame:
    """
    Transform CRM sales details for the silver layer.

    Args:
        df: Sales details DataFrame from the bronze layer
        context: Run context of the current batch

    Returns:
        DataFrame: Transformed sales details
    """
    logger.info("Transforming CRM sales details for silver layer")

    try:
        validated_df = require_schema(
            df, BRONZE_CRM_SALES_DETAILS_SCHEMA, f"bronze.{TABLE_NAME}"
        )

        dated_df = convert_order_dates(validated_df)
        reconciled_df = reconcile_sales_and_price(dated_df)

        result_df = reconciled_df.select(*SILVER_CRM_SALES_DETAILS_SCHEMA.fieldNames())

        return require_schema(
            result_df, SILVER_CRM_SALES_DETAILS_SCHEMA, f"silver.{TABLE_NAME}", strict=True
        )
    except Exception as e:
        logger.error(f"Error transforming CRM sales details: {str(e)}")
        raise
