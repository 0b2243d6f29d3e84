"""
ETL utilities for the CRM/ERP data warehouse.

This module provides common utilities for the silver layer stages, including:
- Schema validation of bronze input and silver output
- Code normalization and code-to-label mapping
- Validation of integer encoded dates
- The data quality error raised for malformed input
"""

import logging
from typing import Dict, Optional, Tuple, Union

from pyspark.sql import Column, DataFrame
from pyspark.sql.functions import (
    col,
    lit,
    to_date,
    trim,
    try_to_timestamp,
    upper,
    when,
)
from pyspark.sql.types import StructType

from config import (
    LOG_LEVEL,
    LOG_FORMAT,
    SCHEMA_VALIDATION,
)

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)
logger = logging.getLogger(__name__)

NOT_AVAILABLE = "n/a"


class DataQualityError(ValueError):
    """Raised when bronze data cannot be transformed without losing meaning."""

    error_code = "DATA_QUALITY"
    # SQLSTATE class 22: data exception
    error_state = "22000"


def validate_schema(
    df: DataFrame,
    expected_schema: StructType,
    strict: bool = False,
) -> Tuple[bool, Optional[str], DataFrame]:
    """
    Validate the schema of a DataFrame against an expected schema.

    Args:
        df: Spark DataFrame to validate
        expected_schema: Expected schema
        strict: Whether to require exact schema match (True) or allow additional columns (False)

    Returns:
        Tuple[bool, Optional[str], DataFrame]:
            - Success flag
            - Error message (if any)
            - DataFrame with the expected schema (if successful) or original DataFrame (if failed)
    """
    if not SCHEMA_VALIDATION:
        # Schema validation is disabled in config
        return True, None, df

    actual_fields = {field.name: field for field in df.schema.fields}
    expected_fields = {field.name: field for field in expected_schema.fields}

    # Check for missing fields
    missing_fields = [
        field_name
        for field_name in expected_fields.keys()
        if field_name not in actual_fields
    ]

    if missing_fields:
        error_msg = f"Missing fields in schema: {', '.join(missing_fields)}"
        logger.error(error_msg)
        return False, error_msg, df

    # Check for extra fields
    extra_fields = [
        field_name
        for field_name in actual_fields.keys()
        if field_name not in expected_fields
    ]

    if strict and extra_fields:
        error_msg = f"Extra fields in schema: {', '.join(extra_fields)}"
        logger.error(error_msg)
        return False, error_msg, df

    # Check field types
    type_mismatches = []
    for field_name, expected_field in expected_fields.items():
        actual_field = actual_fields[field_name]
        if actual_field.dataType != expected_field.dataType:
            type_mismatches.append(
                f"{field_name}: expected {expected_field.dataType}, got {actual_field.dataType}"
            )

    if type_mismatches:
        error_msg = f"Schema type mismatches: {', '.join(type_mismatches)}"
        logger.error(error_msg)
        return False, error_msg, df

    # Select only the expected columns in the expected order
    if strict:
        return True, None, df.select(*[col(f.name) for f in expected_schema.fields])

    return True, None, df


def require_schema(
    df: DataFrame, expected_schema: StructType, table_name: str, strict: bool = False
) -> DataFrame:
    """
    Validate a schema and raise DataQualityError when it does not match.

    Args:
        df: Spark DataFrame to validate
        expected_schema: Expected schema
        table_name: Table name used in the error message
        strict: Passed through to validate_schema

    Returns:
        DataFrame: The validated DataFrame
    """
    success, error_msg, validated_df = validate_schema(df, expected_schema, strict)
    if not success:
        raise DataQualityError(f"Schema validation failed for {table_name}: {error_msg}")
    return validated_df


def normalize_code(column: str) -> Column:
    """Trimmed, upper-cased form of a coded column used for comparisons."""
    return upper(trim(col(column)))


def map_code_values(
    column: str,
    mapping: Dict[str, str],
    default: Union[str, Column] = NOT_AVAILABLE,
) -> Column:
    """
    Build an expression mapping raw codes to canonical labels.

    The raw value is trimmed and upper-cased before it is looked up, so the
    mapping keys must be upper case. Values that are null or not in the
    mapping resolve to the default.

    Args:
        column: Name of the raw column
        mapping: Upper-case code to label mapping
        default: Label, or expression, used for anything not in the mapping

    Returns:
        Column: The mapping expression
    """
    normalized = normalize_code(column)
    default_expr = default if isinstance(default, Column) else lit(default)

    mapping_expr = None
    for code, label in mapping.items():
        if mapping_expr is None:
            mapping_expr = when(normalized == lit(code), lit(label))
        else:
            mapping_expr = mapping_expr.when(normalized == lit(code), lit(label))

    if mapping_expr is None:
        return default_expr

    return mapping_expr.otherwise(default_expr)


def parse_int_date(column: str) -> Column:
    """
    Convert a YYYYMMDD integer column to a date.

    Zero, anything that is not exactly eight digits, and impossible calendar
    dates all become null.
    """
    as_text = col(column).cast("string")
    return when(
        (col(column) != 0) & as_text.rlike(r"^[0-9]{8}$"),
        to_date(try_to_timestamp(as_text, lit("yyyyMMdd"))),
    )
