"""
Tests for Silver CRM Customer Info ETL.

This module contains tests for deduplication and standardization of CRM customers.
"""

import unittest
from datetime import date

import pytest

from etl.silver.crm_cust_info_etl import (
    deduplicate_customers,
    standardize_customer_attributes,
    transform_crm_cust_info_data,
)
from etl.common.schemas import (
    BRONZE_CRM_CUST_INFO_SCHEMA,
    SILVER_CRM_CUST_INFO_SCHEMA,
)


@pytest.mark.usefixtures("spark_class")
class TestSilverCrmCustInfoETL(unittest.TestCase):
    """Test cases for Silver CRM Customer Info ETL."""

    def setUp(self):
        """Set up test fixtures."""
        data = [
            (11000, "AW00011000", " Jon", "Yang ", "m", "M", date(2025, 1, 10)),
            (11000, "AW00011000", "Jon", "Yang", " S ", "F", date(2026, 2, 1)),
            (11000, "AW00011000", "Jon", "Yang", "M", "M", None),
            (None, "AW00011999", "No", "Id", "S", "F", date(2026, 3, 1)),
            (11001, "AW00011001", "  Eugene ", " Huang", None, " f ", date(2025, 6, 1)),
            (11002, "AW00011002", "Ruben", "Torres", "x", "Male", date(2025, 7, 1)),
        ]
        self.sample_df = self.spark.createDataFrame(data, BRONZE_CRM_CUST_INFO_SCHEMA)

    def test_deduplicate_keeps_latest_record_per_id(self):
        """Test that one record per id survives, the most recent one."""
        result = deduplicate_customers(self.sample_df).collect()

        by_id = {row.cst_id: row for row in result}
        self.assertEqual(len(result), len(by_id))
        self.assertEqual(by_id[11000].cst_create_date, date(2026, 2, 1))

    def test_deduplicate_drops_null_ids(self):
        """Test that records without an id are discarded."""
        result = deduplicate_customers(self.sample_df).collect()

        self.assertNotIn(None, [row.cst_id for row in result])
        self.assertEqual(sorted(row.cst_id for row in result), [11000, 11001, 11002])

    def test_deduplicate_tie_keeps_first_record(self):
        """Test that the first record read wins when create dates are equal."""
        data = [
            (1, "first", "A", "A", "S", "F", date(2024, 1, 1)),
            (1, "second", "B", "B", "M", "M", date(2024, 1, 1)),
            (1, "older", "C", "C", "M", "M", date(2023, 1, 1)),
        ]
        df = self.spark.createDataFrame(data, BRONZE_CRM_CUST_INFO_SCHEMA)

        result = deduplicate_customers(df).collect()

        self.assertEqual(len(result), 1)
        self.assertEqual(result[0].cst_key, "first")

    def test_deduplicate_does_not_depend_on_input_order(self):
        """Test that the latest record wins whatever the input order."""
        reversed_df = self.spark.createDataFrame(
            list(reversed(self.sample_df.collect())), BRONZE_CRM_CUST_INFO_SCHEMA
        )

        result = {row.cst_id: row for row in deduplicate_customers(reversed_df).collect()}

        self.assertEqual(result[11000].cst_create_date, date(2026, 2, 1))

    def test_standardize_customer_attributes(self):
        """Test trimming of names and mapping of marital status and gender."""
        result = {
            row.cst_id: row
            for row in standardize_customer_attributes(
                self.sample_df.filter("cst_id is not null")
            ).collect()
        }

        eugene = result[11001]
        self.assertEqual(eugene.cst_firstname, "Eugene")
        self.assertEqual(eugene.cst_lastname, "Huang")
        self.assertEqual(eugene.cst_marital_status, "n/a")
        self.assertEqual(eugene.cst_gndr, "Female")

        ruben = result[11002]
        self.assertEqual(ruben.cst_marital_status, "n/a")
        # CRM gender only accepts single letters
        self.assertEqual(ruben.cst_gndr, "n/a")

    def test_transform_crm_cust_info_data(self):
        """Test the full customer transformation."""
        result_df = transform_crm_cust_info_data(self.sample_df)

        self.assertEqual(result_df.schema.fieldNames(), SILVER_CRM_CUST_INFO_SCHEMA.fieldNames())

        result = {row.cst_id: row for row in result_df.collect()}
        self.assertEqual(len(result), 3)

        jon = result[11000]
        self.assertEqual(jon.cst_firstname, "Jon")
        self.assertEqual(jon.cst_marital_status, "Single")
        self.assertEqual(jon.cst_gndr, "Female")

        for row in result.values():
            self.assertIn(row.cst_marital_status, {"Single", "Married", "n/a"})
            self.assertIn(row.cst_gndr, {"Female", "Male", "n/a"})


if __name__ == "__main__":
    unittest.main()
