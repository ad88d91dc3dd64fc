"""
Database Connectors Module

Engine adapters for the supported target databases.

Available Connectors:
    - BaseConnector: Abstract base class
    - PostgresConnector: PostgreSQL connector (asyncpg)
    - MySQLConnector: MySQL connector (mysql-connector-python)

Usage:
    from askdb.connectors import create_connector

    connector = create_connector(
        engine="postgresql",
        host="localhost",
        port=5432,
        database="mydb",
        user="postgres",
        password="secret",
    )

    result = await connector.run("SELECT * FROM users")
"""

from askdb.connectors.base import BaseConnector, QueryResult
from askdb.connectors.factory import CONNECTORS, connector_for, create_connector
from askdb.connectors.mysql import MySQLConnector
from askdb.connectors.postgres import PostgresConnector

__all__ = [
    "BaseConnector",
    "CONNECTORS",
    "MySQLConnector",
    "PostgresConnector",
    "QueryResult",
    "connector_for",
    "create_connector",
]
