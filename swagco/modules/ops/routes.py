"""
Ops Routes
==========

Health check combining database reachability, disk and memory usage, and
the recent error rate from app_logs.
"""

import shutil
from datetime import datetime

from flask import current_app, jsonify

from swagco.core import Database, LoggingService, get_shop_db
from . import ops_health_bp


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------

def _check_database():
    """Run a trivial query against the shop database."""
    try:
        with Database.connect(get_shop_db()) as conn:
            conn.execute('SELECT 1 FROM app_config LIMIT 1').fetchone()
        return {'status': 'ok'}
    except Exception as e:
        return {'status': 'error', 'error': str(e)}


def _get_disk_usage():
    """Get disk usage for root partition."""
    try:
        usage = shutil.disk_usage('/')
        return {
            'total_gb': round(usage.total / (1024 ** 3), 1),
            'used_gb': round(usage.used / (1024 ** 3), 1),
            'free_gb': round(usage.free / (1024 ** 3), 1),
            'percent': round((usage.used / usage.total) * 100, 1),
        }
    except Exception as e:
        return {'total_gb': 0, 'used_gb': 0, 'free_gb': 0, 'percent': 0, 'error': str(e)}


def _get_memory_info():
    """Get memory info from /proc/meminfo (Linux only; zeros elsewhere)."""
    try:
        with open('/proc/meminfo', 'r') as f:
            lines = f.readlines()

        mem = {}
        for line in lines:
            parts = line.split()
            mem[parts[0].rstrip(':')] = int(parts[1])

        total_kb = mem.get('MemTotal', 0)
        available_kb = mem.get('MemAvailable', mem.get('MemFree', 0))
        used_kb = total_kb - available_kb

        return {
            'total_mb': round(total_kb / 1024, 1),
            'used_mb': round(used_kb / 1024, 1),
            'available_mb': round(available_kb / 1024, 1),
            'percent': round((used_kb / total_kb) * 100, 1) if total_kb else 0,
        }
    except (OSError, ValueError, IndexError) as e:
        return {'total_mb': 0, 'used_mb': 0, 'available_mb': 0, 'percent': 0, 'error': str(e)}


def _compute_status(database, disk, memory):
    """Compute overall status and issues list from the individual checks."""
    issues = []
    status = 'ok'

    if database.get('status') != 'ok':
        issues.append({'type': 'database_unreachable',
                       'message': f"Database unreachable: {database.get('error', 'unknown error')}"})
        status = 'critical'

    # Disk checks
    disk_pct = disk.get('percent', 0)
    if disk_pct >= 90:
        issues.append({'type': 'disk_critical', 'message': f'Disk usage critical: {disk_pct}%'})
        status = 'critical'
    elif disk_pct >= 80:
        issues.append({'type': 'disk_warning', 'message': f'Disk usage high: {disk_pct}%'})
        if status != 'critical':
            status = 'warning'

    # Memory checks
    mem_pct = memory.get('percent', 0)
    if mem_pct >= 95:
        issues.append({'type': 'memory_critical', 'message': f'Memory usage critical: {mem_pct}%'})
        status = 'critical'
    elif mem_pct >= 85:
        issues.append({'type': 'memory_warning', 'message': f'Memory usage high: {mem_pct}%'})
        if status != 'critical':
            status = 'warning'

    return status, issues


def _get_error_count_last_hour():
    """Count ERROR / CRITICAL entries in last hour for error-spike detection."""
    try:
        return LoggingService.count_errors_since(hours=1)
    except Exception as e:
        current_app.logger.debug(f"ops: Could not query recent errors: {e}")
        return 0


# ---------------------------------------------------------------------------
# Public health endpoint
# ---------------------------------------------------------------------------

@ops_health_bp.route('', methods=['GET'])
@ops_health_bp.route('/', methods=['GET'])
def health():
    """Public health check for uptime monitors. 503 when critical."""
    database = _check_database()
    disk = _get_disk_usage()
    memory = _get_memory_info()
    status, issues = _compute_status(database, disk, memory)

    payload = {
        'status': status,
        'timestamp': datetime.now().isoformat(),
        'checks': {
            'database': database,
            'disk': disk,
            'memory': memory,
        },
        'issues': issues,
        'error_count_1h': _get_error_count_last_hour(),
    }
    return jsonify(payload), 503 if status == 'critical' else 200
