"""
Silver ERP Product Category ETL

This module loads ERP product categories (erp_px_cat_g1v2) from the bronze layer
to the silver layer. The bronze data is already clean, so the rows are copied
unchanged after the schema has been checked.
"""

import logging
from typing import Optional

from pyspark.sql import DataFrame

from etl.common.etl_utils import require_schema
from etl.common.run_context import RunContext
from etl.common.schemas import (
    BRONZE_ERP_PX_CAT_G1V2_SCHEMA,
    SILVER_ERP_PX_CAT_G1V2_SCHEMA,
)
from config import LOG_LEVEL, LOG_FORMAT

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)
logger = logging.getLogger(__name__)

TABLE_NAME = "erp_px_cat_g1v2"

COLUMNS_DESCRIPTION = {
    "id": "Category id, matches cat_id of crm_prd_info",
    "cat": "Product category",
    "subcat": "Product subcategory",
    "maintenance": "Whether the products need maintenance",
}


def transform_erp_px_cat_g1v2_data(
    df: DataFrame, context: Optional[RunContext] = None
) -> DataFrame:
    """Select the category columns of the bronze table unchanged."""
    logger.info("Passing ERP product categories through to silver layer")

    validated_df = require_schema(df, BRONZE_ERP_PX_CAT_G1V2_SCHEMA, f"bronze.{TABLE_NAME}")

    return require_schema(
        validated_df.select(*SILVER_ERP_PX_CAT_G1V2_SCHEMA.fieldNames()),
        SILVER_ERP_PX_CAT_G1V2_SCHEMA,
        f"silver.{TABLE_NAME}",
        strict=True,
    )
