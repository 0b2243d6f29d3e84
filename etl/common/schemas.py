"""
Schema definitions for the CRM/ERP data warehouse.

This module contains schema definitions for the tables moved from the bronze
layer to the silver layer. It includes schemas for:
- Bronze layer CRM tables (customers, products, sales details)
- Bronze layer ERP tables (customers, locations, product categories)
- The matching silver layer tables

Each schema is defined using PySpark's StructType and StructField classes.
"""

from pyspark.sql.types import (
    StructType,
    StructField,
    StringType,
    IntegerType,
    TimestampType,
    DateType,
)

# Bronze Layer Schemas

BRONZE_CRM_CUST_INFO_SCHEMA = StructType(
    [
        StructField("cst_id", IntegerType(), True),
        StructField("cst_key", StringType(), True),
        StructField("cst_firstname", StringType(), True),
        StructField("cst_lastname", StringType(), True),
        StructField("cst_marital_status", StringType(), True),
        StructField("cst_gndr", StringType(), True),
        StructField("cst_create_date", DateType(), True),
    ]
)

BRONZE_CRM_PRD_INFO_SCHEMA = StructType(
    [
        StructField("prd_id", IntegerType(), True),
        StructField("prd_key", StringType(), True),
        StructField("prd_nm", StringType(), True),
        StructField("prd_cost", IntegerType(), True),
        StructField("prd_line", StringType(), True),
        StructField("prd_start_dt", TimestampType(), True),
        StructField("prd_end_dt", TimestampType(), True),
    ]
)

BRONZE_CRM_SALES_DETAILS_SCHEMA = StructType(
    [
        StructField("sls_ord_num", StringType(), True),
        StructField("sls_prd_key", StringType(), True),
        StructField("sls_cust_id", IntegerType(), True),
        # Dates arrive as YYYYMMDD integers
        StructField("sls_order_dt", IntegerType(), True),
        StructField("sls_ship_dt", IntegerType(), True),
        StructField("sls_due_dt", IntegerType(), True),
        StructField("sls_sales", IntegerType(), True),
        StructField("sls_quantity", IntegerType(), True),
        StructField("sls_price", IntegerType(), True),
    ]
)

BRONZE_ERP_CUST_AZ12_SCHEMA = StructType(
    [
        StructField("cid", StringType(), True),
        StructField("bdate", DateType(), True),
        StructField("gen", StringType(), True),
    ]
)

BRONZE_ERP_LOC_A101_SCHEMA = StructType(
    [
        StructField("cid", StringType(), True),
        StructField("cntry", StringType(), True),
    ]
)

BRONZE_ERP_PX_CAT_G1V2_SCHEMA = StructType(
    [
        StructField("id", StringType(), True),
        StructField("cat", StringType(), True),
        StructField("subcat", StringType(), True),
        StructField("maintenance", StringType(), True),
    ]
)

# Silver Layer Schemas

SILVER_CRM_CUST_INFO_SCHEMA = StructType(
    [
        StructField("cst_id", IntegerType(), True),
        StructField("cst_key", StringType(), True),
        StructField("cst_firstname", StringType(), True),
        StructField("cst_lastname", StringType(), True),
        StructField("cst_marital_status", StringType(), True),
        StructField("cst_gndr", StringType(), True),
        StructField("cst_create_date", DateType(), True),
    ]
)

SILVER_CRM_PRD_INFO_SCHEMA = StructType(
    [
        StructField("prd_id", IntegerType(), True),
        StructField("cat_id", StringType(), True),
        StructField("prd_key", StringType(), True),
        StructField("prd_nm", StringType(), True),
        StructField("prd_cost", IntegerType(), True),
        StructField("prd_line", StringType(), True),
        StructField("prd_start_dt", DateType(), True),
        StructField("prd_end_dt", DateType(), True),
    ]
)

SILVER_CRM_SALES_DETAILS_SCHEMA = StructType(
    [
        StructField("sls_ord_num", StringType(), True),
        StructField("sls_prd_key", StringType(), True),
        StructField("sls_cust_id", IntegerType(), True),
        StructField("sls_order_dt", DateType(), True),
        StructField("sls_ship_dt", DateType(), True),
        StructField("sls_due_dt", DateType(), True),
        StructField("sls_sales", IntegerType(), True),
        StructField("sls_quantity", IntegerType(), True),
        StructField("sls_price", IntegerType(), True),
    ]
)

SILVER_ERP_CUST_AZ12_SCHEMA = StructType(
    [
        StructField("cid", StringType(), True),
        StructField("bdate", DateType(), True),
        StructField("gen", StringType(), True),
    ]
)

SILVER_ERP_LOC_A101_SCHEMA = StructType(
    [
        StructField("cid", StringType(), True),
        StructField("cntry", StringType(), True),
    ]
)

SILVER_ERP_PX_CAT_G1V2_SCHEMA = StructType(
    [
        StructField("id", StringType(), True),
        StructField("cat", StringType(), True),
        StructField("subcat", StringType(), True),
        StructField("maintenance", StringType(), True),
    ]
)
