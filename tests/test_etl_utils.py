"""
Tests for the shared ETL utilities.

This module contains tests for schema validation, code mapping and integer
date parsing.
"""

import unittest
from datetime import date

import pytest
from pyspark.sql.functions import col
from pyspark.sql.types import IntegerType, StringType, StructField, StructType

from etl.common.etl_utils import (
    DataQualityError,
    map_code_values,
    normalize_code,
    parse_int_date,
    require_schema,
    validate_schema,
)

SCHEMA = StructType(
    [
        StructField("id", IntegerType(), True),
        StructField("code", StringType(), True),
    ]
)


@pytest.mark.usefixtures("spark_class")
class TestEtlUtils(unittest.TestCase):
    """Test cases for the shared ETL utilities."""

    def test_normalize_code(self):
        """Test that codes are trimmed and upper-cased."""
        df = self.spark.createDataFrame([(1, "  ab ")], SCHEMA)

        result = df.select(normalize_code("code").alias("code")).first()

        self.assertEqual(result.code, "AB")

    def test_map_code_values_is_total(self):
        """Test that known, unknown, blank and null codes all map to a label."""
        df = self.spark.createDataFrame(
            [(1, "s"), (2, " M "), (3, "x"), (4, ""), (5, None)], SCHEMA
        )
        mapping = {"S": "Single", "M": "Married"}

        result = {
            row.id: row.label
            for row in df.select(
                "id", map_code_values("code", mapping).alias("label")
            ).collect()
        }

        self.assertEqual(
            result, {1: "Single", 2: "Married", 3: "n/a", 4: "n/a", 5: "n/a"}
        )

    def test_map_code_values_with_expression_default(self):
        """Test that an expression can be used as the default."""
        df = self.spark.createDataFrame([(1, "DE"), (2, "France")], SCHEMA)

        result = {
            row.id: row.label
            for row in df.select(
                "id",
                map_code_values("code", {"DE": "Germany"}, default=col("code")).alias(
                    "label"
                ),
            ).collect()
        }

        self.assertEqual(result, {1: "Germany", 2: "France"})

    def test_parse_int_date(self):
        """Test parsing of YYYYMMDD integers."""
        values = {
            1: 20230115,
            2: 0,
            3: 202301,
            4: 20231345,
            5: 123456789,
            6: None,
        }
        df = self.spark.createDataFrame(
            list(values.items()),
            StructType(
                [
                    StructField("id", IntegerType(), True),
                    StructField("raw", IntegerType(), True),
                ]
            ),
        )

        result = {
            row.id: row.parsed
            for row in df.select("id", parse_int_date("raw").alias("parsed")).collect()
        }

        self.assertEqual(result[1], date(2023, 1, 15))
        self.assertIsNone(result[2])
        self.assertIsNone(result[3])
        self.assertIsNone(result[4])
        self.assertIsNone(result[5])
        self.assertIsNone(result[6])

    def test_validate_schema_missing_field(self):
        """Test that a missing column fails validation."""
        df = self.spark.createDataFrame([(1,)], ["id"])

        success, error_msg, _ = validate_schema(df, SCHEMA)

        self.assertFalse(success)
        self.assertIn("code", error_msg)

    def test_validate_schema_strict_rejects_extra_fields(self):
        """Test that strict validation rejects extra columns."""
        df = self.spark.createDataFrame([(1, "a", "b")], ["id", "code", "extra"]).select(
            col("id").cast("int"), "code", "extra"
        )

        success, _, _ = validate_schema(df, SCHEMA, strict=False)
        self.assertTrue(success)

        success, error_msg, _ = validate_schema(df, SCHEMA, strict=True)
        self.assertFalse(success)
        self.assertIn("extra", error_msg)

    def test_require_schema_raises_data_quality_error(self):
        """Test that a type mismatch raises DataQualityError."""
        df = self.spark.createDataFrame([("1", "a")], ["id", "code"])

        with self.assertRaises(DataQualityError) as raised:
            require_schema(df, SCHEMA, "bronze.test")

        self.assertIn("bronze.test", str(raised.exception))
        self.assertEqual(raised.exception.error_code, "DATA_QUALITY")
        self.assertEqual(raised.exception.error_state, "22000")


if __name__ == "__main__":
    unittest.main()
