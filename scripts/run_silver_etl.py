#!/usr/bin/env python
"""
Run Silver Layer Load

This script runs the full refresh of the silver layer.

Usage:
    python scripts/run_silver_etl.py [--bucket-name BUCKET_NAME] [--region REGION] [--skip-catalog]
"""

import logging
import sys
from pathlib import Path

# Add the project root to the Python path
sys.path.append(str(Path(__file__).resolve().parents[1]))

from etl.silver.load_silver import main, parse_arguments
from config import LOG_LEVEL, LOG_FORMAT, REGISTER_GLUE_TABLES

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format=LOG_FORMAT
)
logger = logging.getLogger(__name__)


if __name__ == "__main__":
    args = parse_arguments()
    logger.info(f"Running silver load against bucket: {args.bucket_name}")
    exit_code = main(
        args.bucket_name,
        args.region,
        REGISTER_GLUE_TABLES and not args.skip_catalog
    )
    logger.info(f"Silver load completed with exit code: {exit_code}")
    sys.exit(exit_code)
