# Database connection helpers for test sessions
from .db_manager import (
    connect_to_mongodb,
    close_mongodb_connection,
    connect_to_oracledb,
    close_oracledb_connection
)

__all__ = [
    'connect_to_mongodb',
    'close_mongodb_connection',
    'connect_to_oracledb',
    'close_oracledb_connection'
]
