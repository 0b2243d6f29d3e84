"""
Silver layer ETL processes for the CRM/ERP data warehouse.

This package contains one stage per silver table, each cleansing and
standardizing a bronze CRM or ERP table, and the load that runs them.
"""
