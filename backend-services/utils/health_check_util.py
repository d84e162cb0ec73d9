"""
The contents of this file are property of Doorman Dev, LLC
Review the Apache License 2.0 for valid authorization of use
See https://github.com/pypeople-dev/doorman for more information
"""

# External imports
import time
import logging
from datetime import datetime, timedelta, timezone

# Internal imports
from utils.connection_cache import ConnectionCache

logger = logging.getLogger('caregate.gateway')

START_TIME = time.time()

def backing_store_status(connection_cache: ConnectionCache | None) -> str:
    try:
        if connection_cache is not None and connection_cache.is_connected:
            return 'connected'
    except Exception as e:
        logger.error(f'MongoDB health check failed: {str(e)}')
    return 'disconnected'

def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')

def get_uptime():
    try:
        uptime_seconds = time.time() - START_TIME
        uptime = timedelta(seconds=int(uptime_seconds))
        days = uptime.days
        hours, remainder = divmod(uptime.seconds, 3600)
        minutes, seconds = divmod(remainder, 60)
        if days > 0:
            return f'{days}d {hours}h {minutes}m'
        elif hours > 0:
            return f'{hours}h {minutes}m'
        else:
            return f'{minutes}m {seconds}s'
    except Exception as e:
        logger.error(f'Uptime check failed: {str(e)}')
        return 'unknown'
