"""
SwagCo Core
===========

Core utilities and shared functionality for SwagCo modules.
"""

from .config import Config, get_config_value
from .database import Database, init_shop_db, get_shop_db
from .logging_service import LoggingService, db_log, logger

__all__ = ['Config', 'get_config_value', 'Database', 'init_shop_db', 'get_shop_db',
           'LoggingService', 'db_log', 'logger']
