"""
Spark session utility for the CRM/ERP data warehouse.

This module provides functions to create and configure Spark sessions with Delta Lake
for the silver layer load. It includes:
- Creating a Spark session with appropriate configurations
- Setting up Delta Lake integration
- Reading and writing Delta tables on S3
- Clearing a Delta table ahead of a full refresh
"""

import logging
from typing import Dict, List, Optional, Union

from pyspark.sql import DataFrame, SparkSession

from config import (
    AWS_REGION,
    S3_BUCKET_NAME,
    DELTA_TABLE_PROPERTIES,
    LOG_LEVEL,
    LOG_FORMAT,
)

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)
logger = logging.getLogger(__name__)


def create_spark_session(
    app_name: str = "CRM ERP Silver Load",
    master: str = "local[*]",
    config_props: Optional[Dict[str, str]] = None,
    enable_hive_support: bool = True,
    enable_delta: bool = True,
    log_level: str = "WARN",
) -> SparkSession:
    """
    Create and configure a Spark session with Delta Lake support.

    Args:
        app_name: Name of the Spark application
        master: Spark master URL (local[*] for local mode, yarn for YARN cluster)
        config_props: Additional configuration properties for Spark
        enable_hive_support: Whether to enable Hive support
        enable_delta: Whether to enable Delta Lake support
        log_level: Log level for Spark (WARN, INFO, DEBUG, etc.)

    Returns:
        SparkSession: Configured Spark session
    """
    builder = SparkSession.builder.appName(app_name).master(master)

    default_configs = {
        # General Spark configs
        "spark.sql.extensions": "io.delta.sql.DeltaSparkSessionExtension",
        "spark.sql.catalog.spark_catalog": "org.apache.spark.sql.delta.catalog.DeltaCatalog",
        "spark.sql.adaptive.enabled": "true",
        "spark.sql.adaptive.coalescePartitions.enabled": "true",
        # Malformed bronze values become null instead of failing the query
        "spark.sql.ansi.enabled": "false",
        "spark.sql.legacy.timeParserPolicy": "CORRECTED",
        # AWS configs
        "spark.hadoop.fs.s3a.impl": "org.apache.hadoop.fs.s3a.S3AFileSystem",
        "spark.hadoop.fs.s3a.aws.credentials.provider": "com.amazonaws.auth.DefaultAWSCredentialsProviderChain",
        "spark.hadoop.fs.s3a.endpoint": f"s3.{AWS_REGION}.amazonaws.com",
        "spark.hadoop.fs.s3a.path.style.access": "false",
        "spark.hadoop.fs.s3a.connection.ssl.enabled": "true",
        # Delta Lake configs
        "spark.databricks.delta.optimizeWrite.enabled": "true",
        "spark.databricks.delta.autoCompact.enabled": "true",
    }

    # Add Delta table properties from config
    for key, value in DELTA_TABLE_PROPERTIES.items():
        default_configs[key] = value

    # Add user-provided configs, overriding defaults if needed
    if config_props:
        default_configs.update(config_props)

    for key, value in default_configs.items():
        builder = builder.config(key, value)

    if enable_hive_support:
        builder = builder.enableHiveSupport()

    if enable_delta:
        from delta import configure_spark_with_delta_pip

        builder = configure_spark_with_delta_pip(builder)
        logger.info("Delta Lake support enabled")

    spark = builder.getOrCreate()
    spark.sparkContext.setLogLevel(log_level)

    logger.info(f"Created Spark session with app name: {app_name}")

    return spark


def get_table_uri(table_path: str, bucket_name: Optional[str] = None) -> str:
    """
    Build the s3a URI of a Delta table.

    Args:
        table_path: Path to the Delta table (without s3:// prefix)
        bucket_name: S3 bucket name. If None, uses the default from config.

    Returns:
        str: Full s3a URI
    """
    if bucket_name is None:
        bucket_name = S3_BUCKET_NAME

    # Ensure the path doesn't start with a slash
    if table_path.startswith("/"):
        table_path = table_path[1:]

    return f"s3a://{bucket_name}/{table_path}"


def read_delta_table(
    spark: SparkSession,
    table_path: str,
    bucket_name: Optional[str] = None,
) -> DataFrame:
    """
    Read a Delta table from S3.

    Args:
        spark: Spark session
        table_path: Path to the Delta table (without s3:// prefix)
        bucket_name: S3 bucket name. If None, uses the default from config.

    Returns:
        DataFrame: Spark DataFrame containing the Delta table data
    """
    full_path = get_table_uri(table_path, bucket_name)

    try:
        df = spark.read.format("delta").load(full_path)
        logger.info(f"Successfully read Delta table from {full_path}")
        return df
    except Exception as e:
        logger.error(f"Failed to read Delta table from {full_path}: {str(e)}")
        raise


def delta_table_exists(
    spark: SparkSession, table_path: str, bucket_name: Optional[str] = None
) -> bool:
    """Check whether a Delta table has been created at the given path."""
    from delta.tables import DeltaTable

    return DeltaTable.isDeltaTable(spark, get_table_uri(table_path, bucket_name))


def clear_delta_table(
    spark: SparkSession, table_path: str, bucket_name: Optional[str] = None
) -> None:
    """
    Delete every row of a Delta table, keeping the table and its schema.

    A path that does not hold a Delta table yet is left alone.

    Args:
        spark: Spark session
        table_path: Path to the Delta table (without s3:// prefix)
        bucket_name: S3 bucket name. If None, uses the default from config.

    Returns:
        None
    """
    from delta.tables import DeltaTable

    full_path = get_table_uri(table_path, bucket_name)

    if not delta_table_exists(spark, table_path, bucket_name):
        logger.info(f"No Delta table at {full_path} yet, nothing to clear")
        return

    try:
        DeltaTable.forPath(spark, full_path).delete()
        logger.info(f"Cleared Delta table at {full_path}")
    except Exception as e:
        logger.error(f"Failed to clear Delta table at {full_path}: {str(e)}")
        raise


def write_delta_table(
    df: DataFrame,
    table_path: str,
    mode: str = "overwrite",
    partition_by: Optional[Union[str, List[str]]] = None,
    bucket_name: Optional[str] = None,
    table_properties: Optional[Dict[str, str]] = None,
) -> None:
    """
    Write a DataFrame to a Delta table in S3.

    Args:
        df: Spark DataFrame to write
        table_path: Path to the Delta table (without s3:// prefix)
        mode: Write mode (overwrite, append, etc.)
        partition_by: Column(s) to partition by
        bucket_name: S3 bucket name. If None, uses the default from config.
        table_properties: Additional Delta table properties

    Returns:
        None
    """
    full_path = get_table_uri(table_path, bucket_name)

    try:
        writer = df.write.format("delta").mode(mode)

        if partition_by:
            if isinstance(partition_by, str):
                partition_by = [partition_by]
            writer = writer.partitionBy(*partition_by)

        if table_properties:
            for key, value in table_properties.items():
                writer = writer.option(key, value)

        writer.save(full_path)

        logger.info(f"Successfully wrote Delta table to {full_path}")
    except Exception as e:
        logger.error(f"Failed to write Delta table to {full_path}: {str(e)}")
        raise
