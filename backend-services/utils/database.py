"""
The contents of this file are property of Doorman Dev, LLC
Review the Apache License 2.0 for valid authorization of use
See https://github.com/apidoorman/doorman for more information
"""

import logging
from typing import Any

from fastapi import Request

from utils.connection_cache import ConnectionCache

logger = logging.getLogger('caregate.gateway')

def get_connection_cache(request: Request) -> ConnectionCache:
    return request.app.state.connection_cache

def get_database(request: Request) -> Any:
    """FastAPI dependency returning the database of the cached connection.

    The connection gate has already run, so this never connects by itself.
    """
    return get_connection_cache(request).database

def collection_name_for(prefix: str) -> str:
    return prefix.strip('/').replace('-', '_')
