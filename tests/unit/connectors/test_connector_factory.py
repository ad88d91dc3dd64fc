"""Unit tests for connector factory helpers."""

import pytest
from pydantic import SecretStr

from askdb.config import SandboxSettings
from askdb.connectors import factory as connector_factory
from askdb.connectors.mysql import MySQLConnector
from askdb.connectors.postgres import PostgresConnector
from askdb.errors import UnsupportedEngine
from askdb.models.connection import ConnectionCreate


def test_create_connector_postgres():
    connector = connector_factory.create_connector(
        engine="postgresql",
        host="db.example.com",
        port=5432,
        database="warehouse",
        user="u",
        password="p",
    )
    assert isinstance(connector, PostgresConnector)
    assert connector.host == "db.example.com"
    assert connector.database == "warehouse"


def test_create_connector_normalizes_engine():
    connector = connector_factory.create_connector(
        engine=" MySQL ",
        host="localhost",
        port=3306,
        database="app",
        user="root",
        password="secret",
    )
    assert isinstance(connector, MySQLConnector)


@pytest.mark.parametrize("engine", ["sqlite", "clickhouse", "", None])
def test_create_connector_rejects_unknown_engine(engine):
    with pytest.raises(UnsupportedEngine):
        connector_factory.create_connector(
            engine=engine,
            host="localhost",
            port=1234,
            database="app",
            user="root",
            password="secret",
        )


def test_connector_for_unwraps_secret_and_applies_limits(sample_connection):
    settings = SandboxSettings(connect_timeout=3, statement_timeout=20)

    connector = connector_factory.connector_for(sample_connection, settings)

    assert isinstance(connector, PostgresConnector)
    assert connector.password == "secret"
    assert connector.connect_timeout == 3
    assert connector.statement_timeout == 20


def test_connector_for_accepts_registration_payload():
    payload = ConnectionCreate(
        engine="mysql",
        host="localhost",
        port=3306,
        user="root",
        password=SecretStr("pw"),
        database="app",
    )

    connector = connector_factory.connector_for(payload)

    assert isinstance(connector, MySQLConnector)
    assert connector.password == "pw"
