"""
Common utilities for ETL processes.

This package contains common utilities used across the silver stages,
including Spark session management, schemas, shared column rules and Glue
catalog operations.
"""
