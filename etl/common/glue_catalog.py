"""
AWS Glue Data Catalog utilities for the CRM/ERP data warehouse.

This module provides functions to interact with the AWS Glue Data Catalog, including:
- Creating Glue databases
- Registering Delta tables in the Glue Data Catalog with column comments
"""

import logging
from typing import Dict, Optional, Any

import boto3
from botocore.exceptions import ClientError

from pyspark.sql import SparkSession

from etl.common.spark_session import get_table_uri
from config import (
    AWS_REGION,
    GLUE_DATABASES,
    LOG_LEVEL,
    LOG_FORMAT,
)

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)
logger = logging.getLogger(__name__)


def create_glue_client(region_name: Optional[str] = None) -> Any:
    """
    Create and return an AWS Glue client.

    Args:
        region_name: AWS region name. If None, uses the default region from config.

    Returns:
        boto3.client: Configured Glue client
    """
    if region_name is None:
        region_name = AWS_REGION

    try:
        return boto3.client("glue", region_name=region_name)
    except Exception as e:
        logger.error(f"Failed to create Glue client: {str(e)}")
        raise


def create_database(
    database_name: str,
    description: Optional[str] = None,
    region_name: Optional[str] = None,
) -> bool:
    """
    Create a Glue Data Catalog database if it doesn't exist.

    Args:
        database_name: Name of the database to create
        description: Description of the database
        region_name: AWS region name. If None, uses the default region from config.

    Returns:
        bool: True if database was created or already exists, False otherwise
    """
    glue_client = create_glue_client(region_name)

    try:
        glue_client.get_database(Name=database_name)
        logger.info(f"Database {database_name} already exists")
        return True
    except ClientError as e:
        error_code = e.response["Error"]["Code"]
        if error_code != "EntityNotFoundException":
            logger.error(f"Error checking database {database_name}: {str(e)}")
            return False

    database_input = {"Name": database_name}
    if description:
        database_input["Description"] = description

    try:
        glue_client.create_database(DatabaseInput=database_input)
        logger.info(f"Database {database_name} created successfully")
        return True
    except ClientError as e:
        logger.error(f"Failed to create database {database_name}: {str(e)}")
        return False


def register_delta_table(
    spark: SparkSession,
    table_name: str,
    table_path: str,
    database_name: Optional[str] = None,
    description: Optional[str] = None,
    layer: str = "silver",
    bucket_name: Optional[str] = None,
    columns_description: Optional[Dict[str, str]] = None,
    region_name: Optional[str] = None,
) -> bool:
    """
    Register a Delta table in the Glue Data Catalog.

    Args:
        spark: Spark session
        table_name: Name of the table to register
        table_path: Path to the Delta table (without s3:// prefix)
        database_name: Name of the database. If None, uses the default for the layer.
        description: Description of the table
        layer: Data layer (bronze, silver)
        bucket_name: S3 bucket name. If None, uses the default from config.
        columns_description: Dictionary mapping column names to descriptions
        region_name: AWS region name. If None, uses the default region from config.

    Returns:
        bool: True if table was registered successfully, False otherwise
    """
    if database_name is None:
        database_name = GLUE_DATABASES.get(layer)
        if not database_name:
            logger.error(f"No database defined for layer: {layer}")
            return False

    full_path = get_table_uri(table_path, bucket_name)
    qualified_name = f"{database_name}.{table_name}"

    try:
        if not create_database(
            database_name, f"CRM/ERP data warehouse {layer} layer", region_name
        ):
            logger.error(f"Failed to create database {database_name}")
            return False

        spark.sql(
            f"CREATE TABLE IF NOT EXISTS {qualified_name} USING DELTA LOCATION '{full_path}'"
        )

        if description:
            spark.sql(f"COMMENT ON TABLE {qualified_name} IS '{description}'")

        if columns_description:
            for column_name, column_description in columns_description.items():
                spark.sql(
                    f"ALTER TABLE {qualified_name} ALTER COLUMN {column_name} "
                    f"COMMENT '{column_description}'"
                )

        logger.info(f"Successfully registered Delta table {qualified_name}")
        return True
    except Exception as e:
        logger.error(f"Failed to register Delta table {qualified_name}: {str(e)}")
        return False
