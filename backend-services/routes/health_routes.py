"""
Health check for the gateway and its backing store.
"""

import logging

from fastapi import APIRouter, Request
from pydantic import BaseModel

from utils.constants import Messages
from utils.error_util import success_response
from utils.health_check_util import backing_store_status, get_uptime, utc_timestamp


class HealthResponse(BaseModel):
    status: str
    message: str
    timestamp: str
    environment: str
    backingStoreStatus: str
    uptime: str | None = None


health_router = APIRouter()
logger = logging.getLogger('caregate.gateway')

"""
Endpoint

Request:
{}
Response:
{status, message, timestamp, environment, backingStoreStatus, uptime}
"""


@health_router.get('/health', description='Gateway health (no auth)', response_model=HealthResponse)
async def health(request: Request):
    settings = request.app.state.settings
    store_status = backing_store_status(getattr(request.app.state, 'connection_cache', None))
    if store_status != 'connected':
        logger.warning('Health check: backing store disconnected')
    return success_response(
        message=Messages.API_RUNNING,
        extra={
            'timestamp': utc_timestamp(),
            'environment': settings.node_env or 'production',
            'backingStoreStatus': store_status,
            'uptime': get_uptime(),
        },
    )
