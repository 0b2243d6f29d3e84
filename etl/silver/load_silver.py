#!/usr/bin/env python
"""
Silver Layer Load

This script loads the silver layer from the bronze layer of the CRM/ERP data warehouse.
It runs one stage per silver table, in a fixed order:
1. crm_cust_info
2. crm_prd_info
3. crm_sales_details
4. erp_cust_az12
5. erp_loc_a101
6. erp_px_cat_g1v2

Every stage reads its bronze table, transforms it, deletes all rows of the
silver table and inserts the transformed rows (full refresh). The first
failing stage stops the batch; stages that already finished keep their data.

Usage:
    python -m etl.silver.load_silver [--bucket-name BUCKET_NAME] [--region REGION] [--skip-catalog]
"""

import argparse
import logging
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from pyspark.sql import DataFrame, SparkSession

from etl.common.glue_catalog import register_delta_table
from etl.common.run_context import BatchStatus, RunContext
from etl.common.spark_session import (
    clear_delta_table,
    create_spark_session,
    read_delta_table,
    write_delta_table,
)
from etl.silver import (
    crm_cust_info_etl,
    crm_prd_info_etl,
    crm_sales_details_etl,
    erp_cust_az12_etl,
    erp_loc_a101_etl,
    erp_px_cat_g1v2_etl,
)
from config import (
    AWS_REGION,
    LOG_FORMAT,
    LOG_LEVEL,
    REGISTER_GLUE_TABLES,
    S3_BUCKET_NAME,
    SILVER_LOAD_ORDER,
    get_all_settings,
    get_prefix,
)

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)
logger = logging.getLogger(__name__)

BANNER = "=" * 48


@dataclass
class SilverStage:
    """One silver table and the rule set that derives it from bronze."""

    table_name: str
    transform: Callable[[DataFrame, RunContext], DataFrame]
    description: str = ""
    columns_description: Dict[str, str] = field(default_factory=dict)


@dataclass
class StageResult:
    table_name: str
    row_count: int
    duration_seconds: float


@dataclass
class BatchReport:
    """Outcome of one silver load."""

    status: BatchStatus
    stage_results: List[StageResult]
    total_duration_seconds: float
    failed_stage: Optional[str] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    error_state: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == BatchStatus.COMPLETED


def build_silver_stages() -> List[SilverStage]:
    """
    Build the silver stages in load order.

    Returns:
        List[SilverStage]: One stage per table of SILVER_LOAD_ORDER
    """
    stage_modules = {
        module.TABLE_NAME: module
        for module in (
            crm_cust_info_etl,
            crm_prd_info_etl,
            crm_sales_details_etl,
            erp_cust_az12_etl,
            erp_loc_a101_etl,
            erp_px_cat_g1v2_etl,
        )
    }

    stages = []
    for table_name in SILVER_LOAD_ORDER:
        module = stage_modules[table_name]
        stages.append(
            SilverStage(
                table_name=table_name,
                transform=getattr(module, f"transform_{table_name}_data"),
                description=f"Silver layer {table_name} table",
                columns_description=module.COLUMNS_DESCRIPTION,
            )
        )

    return stages


class BronzeReader:
    """Reads the current contents of bronze tables."""

    def __init__(self, spark: SparkSession, bucket_name: Optional[str] = None):
        self.spark = spark
        self.bucket_name = bucket_name

    def read(self, table_name: str) -> DataFrame:
        return read_delta_table(
            spark=self.spark,
            table_path=get_prefix("bronze", table_name),
            bucket_name=self.bucket_name,
        )


class DeltaTableSink:
    """Replaces all rows of silver Delta tables."""

    def __init__(
        self,
        spark: SparkSession,
        bucket_name: Optional[str] = None,
        register_in_catalog: bool = REGISTER_GLUE_TABLES,
        region_name: Optional[str] = None,
    ):
        self.spark = spark
        self.bucket_name = bucket_name
        self.register_in_catalog = register_in_catalog
        self.region_name = region_name

    def replace_table(
        self, table_name: str, df: DataFrame, stage: Optional[SilverStage] = None
    ) -> None:
        """
        Delete every row of a silver table, then insert the given rows.

        Args:
            table_name: Silver table name
            df: Rows to insert
            stage: Stage that produced the rows, used for catalog comments

        Returns:
            None
        """
        table_path = get_prefix("silver", table_name)

        logger.info(f">> Deleting data from: silver.{table_name}")
        clear_delta_table(self.spark, table_path, self.bucket_name)

        logger.info(f">> Inserting data into: silver.{table_name}")
        write_delta_table(
            df=df,
            table_path=table_path,
            mode="append",
            bucket_name=self.bucket_name,
        )

        if self.register_in_catalog:
            success = register_delta_table(
                spark=self.spark,
                table_name=table_name,
                table_path=table_path,
                description=stage.description if stage else None,
                layer="silver",
                bucket_name=self.bucket_name,
                columns_description=stage.columns_description if stage else None,
                region_name=self.region_name,
            )
            if not success:
                logger.error(f"Failed to register silver.{table_name} in Glue Data Catalog")


def describe_error(error: Exception) -> Tuple[str, str, Optional[str]]:
    """
    Extract message, error code and error state from an exception.

    Data quality errors carry their own code and state; Spark errors expose
    their error class and SQLSTATE. Anything else is reported by class name.

    Args:
        error: The exception that stopped the batch

    Returns:
        Tuple[str, str, Optional[str]]: message, code, state
    """
    code = getattr(error, "error_code", None)
    state = getattr(error, "error_state", None)

    if code is None:
        for getter in ("getCondition", "getErrorClass"):
            if hasattr(error, getter):
                code = getattr(error, getter)()
                break
        if hasattr(error, "getSqlState"):
            state = error.getSqlState()

    if code is None:
        code = type(error).__name__

    return str(error), code, state


class LoadRunner:
    """
    Runs the silver stages one after another.

    The run moves from NOT_STARTED to RUNNING and ends in COMPLETED, or in
    FAILED at the first stage that raises. There is no retry and no rollback
    of stages that already finished.
    """

    def __init__(
        self,
        stages: List[SilverStage],
        reader: Any,
        sink: Any,
        context: Optional[RunContext] = None,
    ):
        self.stages = stages
        self.reader = reader
        self.sink = sink
        self.context = context or RunContext()

    def run(self) -> BatchReport:
        """
        Run every stage in order.

        Returns:
            BatchReport: Status, per stage results and error details
        """
        context = self.context
        context.start()
        stage_results: List[StageResult] = []

        logger.info(BANNER)
        logger.info(f"Loading silver layer (run date: {context.run_date})")
        logger.info(BANNER)

        try:
            for stage in self.stages:
                stage_results.append(self._run_stage(stage))
        except Exception as e:
            context.fail()
            message, code, state = describe_error(e)

            logger.error(BANNER)
            logger.error(f"Error occurred while loading silver.{context.current_stage}")
            logger.error(f"Error message: {message}")
            logger.error(f"Error code: {code}")
            logger.error(f"Error state: {state}")
            logger.error(BANNER)

            return BatchReport(
                status=context.status,
                stage_results=stage_results,
                total_duration_seconds=context.elapsed_seconds,
                failed_stage=context.current_stage,
                error_message=message,
                error_code=code,
                error_state=state,
            )

        context.complete()

        logger.info(BANNER)
        logger.info("Loading silver layer is completed")
        logger.info(f"    - Total load duration: {context.elapsed_seconds:.2f} seconds")
        logger.info(BANNER)

        return BatchReport(
            status=context.status,
            stage_results=stage_results,
            total_duration_seconds=context.elapsed_seconds,
        )

    def _run_stage(self, stage: SilverStage) -> StageResult:
        context = self.context
        context.enter_stage(stage.table_name)
        start_time = time.time()

        logger.info(f">> Loading silver.{stage.table_name}")

        bronze_df = self.reader.read(stage.table_name)
        silver_df = stage.transform(bronze_df, context)

        # The count and the write must see the same rows
        silver_df.persist()
        try:
            row_count = silver_df.count()
            self.sink.replace_table(stage.table_name, silver_df, stage)
        finally:
            silver_df.unpersist()

        duration = time.time() - start_time
        logger.info(
            f">> Load duration for silver.{stage.table_name}: {duration:.2f} seconds "
            f"({row_count} rows)"
        )
        context.finish_stage()

        return StageResult(stage.table_name, row_count, duration)


def parse_arguments() -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        argparse.Namespace: Parsed arguments
    """
    parser = argparse.ArgumentParser(
        description="Load the silver layer from the bronze layer (full refresh)"
    )
    parser.add_argument(
        "--bucket-name",
        type=str,
        default=S3_BUCKET_NAME,
        help=f"S3 bucket name (default: {S3_BUCKET_NAME})",
    )
    parser.add_argument(
        "--region",
        type=str,
        default=AWS_REGION,
        help=f"AWS region (default: {AWS_REGION})",
    )
    parser.add_argument(
        "--skip-catalog",
        action="store_true",
        help="Do not register silver tables in the Glue Data Catalog",
    )

    return parser.parse_args()


def main(
    bucket_name: str = S3_BUCKET_NAME,
    region: str = AWS_REGION,
    register_catalog: bool = REGISTER_GLUE_TABLES,
) -> int:
    """
    Main function to run the silver load.

    Args:
        bucket_name: S3 bucket name
        region: AWS region
        register_catalog: Whether to register silver tables in the Glue Data Catalog

    Returns:
        int: Exit code (0 for success, 1 for failure)
    """
    logger.info(f"Starting silver load from bucket: {bucket_name}")
    logger.debug(f"Settings: {get_all_settings()}")

    try:
        spark = create_spark_session(
            app_name="silver_load",
            config_props={"spark.hadoop.fs.s3a.endpoint": f"s3.{region}.amazonaws.com"},
        )
    except Exception as e:
        logger.error(f"Error creating Spark session: {str(e)}")
        return 1

    runner = LoadRunner(
        stages=build_silver_stages(),
        reader=BronzeReader(spark, bucket_name),
        sink=DeltaTableSink(spark, bucket_name, register_catalog, region),
        context=RunContext(),
    )

    try:
        report = runner.run()
    finally:
        spark.stop()

    return 0 if report.succeeded else 1


if __name__ == "__main__":
    args = parse_arguments()
    exit_code = main(
        args.bucket_name, args.region, REGISTER_GLUE_TABLES and not args.skip_catalog
    )
    sys.exit(exit_code)
