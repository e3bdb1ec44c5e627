# app/monitoring/health.py
from flask import Blueprint, current_app, jsonify
from datetime import datetime, timezone
import logging
import os
import psutil

from app.utils.database_helpers import check_database_health

logger = logging.getLogger(__name__)

health_bp = Blueprint('health', __name__)


@health_bp.route('/health')
def health_check():
    checks = {
        'database': check_database_health(),
        'memory': check_memory(),
        'disk': check_disk_space(current_app.config.get('UPLOAD_FOLDER')),
    }

    overall_status = 'healthy' if all(check['status'] == 'healthy' for check in checks.values()) else 'unhealthy'
    status_code = 200 if overall_status == 'healthy' else 503

    if overall_status != 'healthy':
        logger.warning(f"Health check failed: {checks}")

    return jsonify({
        'status': overall_status,
        'service': 'farm-marketplace-api',
        'checks': checks,
        'timestamp': datetime.now(timezone.utc).isoformat()
    }), status_code


def check_memory():
    memory = psutil.virtual_memory()
    if memory.percent > 90:
        return {'status': 'unhealthy', 'usage_percent': memory.percent}
    return {'status': 'healthy', 'usage_percent': memory.percent}


def check_disk_space(path=None):
    """Disk usage of the volume holding uploaded assets"""
    target = path if path and os.path.isdir(path) else '/'
    disk = psutil.disk_usage(target)
    if disk.percent > 95:
        return {'status': 'unhealthy', 'usage_percent': disk.percent}
    return {'status': 'healthy', 'usage_percent': disk.percent}
