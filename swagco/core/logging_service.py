"""
Centralized logging service for the SwagCo shop.
Provides structured logging with database storage and easy integration.
"""

import json
import os
import traceback
from datetime import datetime, timedelta
from flask import request, session, has_request_context
from .database import Database
from .config import get_config_value


class LoggingService:
    """Centralized logging service for application-wide logging"""

    @staticmethod
    def _get_logs_db():
        return get_config_value('ANALYTICS_DB', 'analytics_log.db')

    @staticmethod
    def _ensure_logs_table():
        """Ensure the app_logs table exists"""
        try:
            db_path = LoggingService._get_logs_db()
            db_dir = os.path.dirname(db_path)
            if db_dir:
                os.makedirs(db_dir, exist_ok=True)
            with Database.connect(db_path) as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS app_logs (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        timestamp TEXT NOT NULL,
                        level TEXT NOT NULL,
                        source TEXT NOT NULL,
                        message TEXT NOT NULL,
                        details TEXT,
                        ip_address TEXT,
                        user_agent TEXT,
                        request_path TEXT,
                        user_id TEXT
                    )
                """)

                # Create index for better performance
                cursor.execute("""
                    CREATE INDEX IF NOT EXISTS idx_logs_timestamp
                    ON app_logs(timestamp DESC)
                """)
                cursor.execute("""
                    CREATE INDEX IF NOT EXISTS idx_logs_level
                    ON app_logs(level)
                """)
                conn.commit()
        except Exception as e:
            print(f"Failed to ensure logs table: {e}")

    @staticmethod
    def _get_request_context():
        """Extract request context information"""
        if not has_request_context():
            return None, None, None, None

        try:
            ip_address = request.headers.get('X-Forwarded-For', request.remote_addr)
            if ip_address and ',' in ip_address:
                ip_address = ip_address.split(',')[0].strip()

            user_agent = request.headers.get('User-Agent', '')
            user_id = session.get('user_id') or session.get('admin_id')
            return ip_address, user_agent, request.path, user_id
        except Exception:
            return None, None, None, None

    @staticmethod
    def log(level, source, message, details=None, user_id=None):
        """
        Log a message to the database

        Args:
            level (str): Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            source (str): Source component (orders, campaigns, payments, etc.)
            message (str): Main log message
            details (str/dict): Additional details (will be JSON-encoded if dict)
            user_id (str): Optional user identifier, defaults to the session user
        """
        try:
            LoggingService._ensure_logs_table()

            ip_address, user_agent, request_path, session_user = LoggingService._get_request_context()

            if isinstance(details, dict):
                details = json.dumps(details, indent=2, default=str)

            timestamp = datetime.now().isoformat()

            with Database.connect(LoggingService._get_logs_db()) as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    INSERT INTO app_logs
                    (timestamp, level, source, message, details, ip_address, user_agent, request_path, user_id)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    timestamp, level.upper(), source, message, details,
                    ip_address, user_agent, request_path,
                    str(user_id or session_user) if (user_id or session_user) else None
                ))
                conn.commit()

        except Exception as e:
            # Fallback to console logging if database fails
            print(f"[{datetime.now().isoformat()}] [{level.upper()}] [{source}] {message}")
            if details:
                print(f"Details: {details}")
            print(f"Logging service error: {e}")

    @staticmethod
    def info(source, message, details=None, user_id=None):
        """Log info message"""
        LoggingService.log('INFO', source, message, details, user_id)

    @staticmethod
    def error(source, message, details=None, user_id=None):
        """Log error message"""
        LoggingService.log('ERROR', source, message, details, user_id)

    @staticmethod
    def log_error_with_traceback(source, error, details=None):
        """Log error with full traceback"""
        error_details = {
            'error_type': type(error).__name__,
            'error_message': str(error),
            'traceback': traceback.format_exc()
        }
        if details:
            error_details['additional_details'] = details

        LoggingService.error(source, f"Exception occurred: {type(error).__name__}", error_details)

    @staticmethod
    def get_recent_logs(level=None, source=None, limit=100):
        """Most recent log entries, optionally filtered by level and source"""
        query = 'SELECT * FROM app_logs WHERE 1=1'
        params = []
        if level:
            query += ' AND level = ?'
            params.append(level.upper())
        if source:
            query += ' AND source = ?'
            params.append(source)
        query += ' ORDER BY id DESC LIMIT ?'
        params.append(limit)

        LoggingService._ensure_logs_table()
        with Database.connect(LoggingService._get_logs_db()) as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [dict(row) for row in cursor.fetchall()]

    @staticmethod
    def count_errors_since(hours=1):
        """Count ERROR/CRITICAL entries in the last N hours"""
        cutoff = (datetime.now() - timedelta(hours=hours)).isoformat()
        LoggingService._ensure_logs_table()
        with Database.connect(LoggingService._get_logs_db()) as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT COUNT(*) FROM app_logs
                WHERE level IN ('ERROR', 'CRITICAL')
                AND timestamp > ?
            """, (cutoff,))
            return cursor.fetchone()[0]

    @staticmethod
    def cleanup_old_logs(days_to_keep=30):
        """Clean up old log entries"""
        try:
            cutoff_iso = (datetime.now() - timedelta(days=days_to_keep)).isoformat()

            with Database.connect(LoggingService._get_logs_db()) as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    DELETE FROM app_logs
                    WHERE timestamp < ?
                """, (cutoff_iso,))

                deleted_count = cursor.rowcount
                conn.commit()

            LoggingService.info('system', f"Cleaned up {deleted_count} old log entries")
            return deleted_count

        except Exception as e:
            LoggingService.error('system', f"Failed to cleanup old logs: {e}")
            return 0


def db_log(level, source, message, details=None):
    """Write a log entry to app_logs (convenience wrapper used by modules)"""
    LoggingService.log(level, source, message, details)


# Convenience instance for easy importing
logger = LoggingService()
