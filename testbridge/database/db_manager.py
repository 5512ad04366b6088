"""
Database connection helpers for test sessions.

Connections are opened once when the session starts and closed once when it
ends; failures are logged and re-raised so the session fails.
"""
import logging
from typing import Optional

import oracledb
from pymongo import MongoClient

logger = logging.getLogger(__name__)


def connect_to_mongodb(connection_string: str) -> MongoClient:
    """
    Establish the connection to a MongoDB database

    Args:
        connection_string: MongoDB connection URI

    Returns:
        Connected MongoClient
    """
    logger.info("Connecting to MongoDB...")
    try:
        client = MongoClient(connection_string)
        # MongoClient connects lazily
        client.admin.command("ping")
    except Exception as e:
        logger.error(f"Error trying to connect to MongoDB: {e}")
        raise
    logger.info("Connection to MongoDB established...")
    return client


def close_mongodb_connection(client: Optional[MongoClient]):
    """Close the MongoDB client if there is one"""
    if client is None:
        return
    try:
        client.close()
    except Exception as e:
        logger.error(f"Error closing MongoDB connection: {e}")
        raise
    logger.info("Connection to MongoDB closed...")


def connect_to_oracledb(username: str, password: str, connection_string: str) -> oracledb.Connection:
    """
    Establish the connection to an OracleDB database

    Args:
        username: Database user
        password: Database password
        connection_string: Oracle connect string (DSN)

    Returns:
        Open oracledb Connection
    """
    # Fetch CLOB columns as str
    oracledb.defaults.fetch_lobs = False
    logger.info("Connecting to OracleDB...")
    try:
        connection = oracledb.connect(user=username, password=password, dsn=connection_string)
    except oracledb.Error as e:
        logger.error(f"Error trying to connect to OracleDB: {e}")
        raise
    logger.info("Connection to OracleDB established...")
    return connection


def close_oracledb_connection(connection: Optional[oracledb.Connection]):
    """Close the OracleDB connection if there is one"""
    if connection is None:
        return
    try:
        connection.close()
    except oracledb.Error as e:
        logger.error(f"Error closing OracleDB connection: {e}")
        raise
    logger.info("Connection to OracleDB closed...")
