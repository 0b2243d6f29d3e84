"""
Tests for Silver CRM Product Info ETL.

This module contains tests for product key parsing and SCD Type 2 end dates.
"""

import unittest
from datetime import date, datetime

import pytest

from etl.common.etl_utils import DataQualityError
from etl.common.schemas import (
    BRONZE_CRM_PRD_INFO_SCHEMA,
    SILVER_CRM_PRD_INFO_SCHEMA,
)
from etl.silver.crm_prd_info_etl import (
    check_product_keys,
    parse_product_keys,
    transform_crm_prd_info_data,
)


@pytest.mark.usefixtures("spark_class")
class TestSilverCrmPrdInfoETL(unittest.TestCase):
    """Test cases for Silver CRM Product Info ETL."""

    def setUp(self):
        """Set up test fixtures."""
        # Versions of the same product are deliberately out of order
        data = [
            (212, "CO-RF-FR-R92B-58", "HL Road Frame", 20, "R", datetime(2022, 1, 1, 12), None),
            (210, "CO-RF-FR-R92B-58", "HL Road Frame", None, " r ", datetime(2021, 1, 1, 12), None),
            (211, "CO-RF-FR-R92B-58", "HL Road Frame", 12, "R", datetime(2021, 6, 1, 12), None),
            (300, "BI-MB-BK-M68B-38", "Mountain-200", 1000, "m", datetime(2023, 3, 1, 12), None),
            (301, "AC-HE-HL-U509", "Sport Helmet", -5, None, datetime(2023, 3, 1, 12), None),
            (302, "CL-JE-LJ-0192-S", "Jersey", 50, "S", datetime(2023, 3, 1, 12), None),
            (303, "CL-CA-CA-1098", "Cap", 8, "T", datetime(2023, 3, 1, 12), None),
            (304, "CL-SO-SO-B909-M", "Socks", 9, "Z", datetime(2023, 3, 1, 12), None),
        ]
        self.sample_df = self.spark.createDataFrame(data, BRONZE_CRM_PRD_INFO_SCHEMA)

    def test_parse_product_keys(self):
        """Test splitting of the composite product key."""
        result = parse_product_keys(self.sample_df).filter("prd_id = 300").first()

        self.assertEqual(result.cat_id, "BI_MB")
        self.assertEqual(result.prd_key, "BK-M68B-38")
        self.assertEqual(result._raw_prd_key, "BI-MB-BK-M68B-38")

    def test_check_product_keys_accepts_valid_keys(self):
        """Test that well formed keys pass the check."""
        check_product_keys(self.sample_df, strict=True)

    def test_check_product_keys_rejects_short_keys(self):
        """Test that short keys fail the stage in strict mode."""
        df = self.sample_df.union(
            self.spark.createDataFrame(
                [(999, "CO-R", "Broken", 1, "R", datetime(2023, 1, 1, 12), None)],
                BRONZE_CRM_PRD_INFO_SCHEMA,
            )
        )

        with self.assertRaises(DataQualityError) as raised:
            check_product_keys(df, strict=True)

        self.assertIn("CO-R", str(raised.exception))

        # Lenient mode only warns
        check_product_keys(df, strict=False)

    def test_transform_rejects_short_keys(self):
        """Test that the transformation fails on short keys in strict mode."""
        df = self.spark.createDataFrame(
            [(999, "CO-RF", "Broken", 1, "R", datetime(2023, 1, 1, 12), None)],
            BRONZE_CRM_PRD_INFO_SCHEMA,
        )

        with self.assertRaises(DataQualityError):
            transform_crm_prd_info_data(df, strict_keys=True)

        result = transform_crm_prd_info_data(df, strict_keys=False).first()
        self.assertEqual(result.cat_id, "CO_RF")

    def test_end_dates_follow_next_start_date(self):
        """Test SCD Type 2 end dates for one product key."""
        result_df = transform_crm_prd_info_data(self.sample_df)

        versions = [
            (row.prd_start_dt, row.prd_end_dt)
            for row in result_df.filter("prd_key = 'FR-R92B-58'")
            .orderBy("prd_start_dt")
            .collect()
        ]

        self.assertEqual(
            versions,
            [
                (date(2021, 1, 1), date(2021, 5, 31)),
                (date(2021, 6, 1), date(2021, 12, 31)),
                (date(2022, 1, 1), None),
            ],
        )

    def test_single_version_has_no_end_date(self):
        """Test that a product with one version is current."""
        result = transform_crm_prd_info_data(self.sample_df).filter("prd_id = 300").first()

        self.assertIsNone(result.prd_end_dt)

    def test_transform_crm_prd_info_data(self):
        """Test cost defaults, product lines and output schema."""
        result_df = transform_crm_prd_info_data(self.sample_df)

        self.assertEqual(result_df.schema.fieldNames(), SILVER_CRM_PRD_INFO_SCHEMA.fieldNames())

        result = {row.prd_id: row for row in result_df.collect()}

        self.assertEqual(result[210].prd_cost, 0)
        self.assertEqual(result[301].prd_cost, 0)
        self.assertEqual(result[211].prd_cost, 12)

        self.assertEqual(result[210].prd_line, "Road")
        self.assertEqual(result[300].prd_line, "Mountain")
        self.assertEqual(result[301].prd_line, "n/a")
        self.assertEqual(result[302].prd_line, "Other sales")
        self.assertEqual(result[303].prd_line, "Touring")
        self.assertEqual(result[304].prd_line, "n/a")

        self.assertEqual(result[210].cat_id, "CO_RF")
        self.assertEqual(result[301].prd_key, "HL-U509")


if __name__ == "__main__":
    unittest.main()
