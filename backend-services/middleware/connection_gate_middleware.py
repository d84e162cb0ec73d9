import logging

from starlette.types import ASGIApp, Receive, Scope, Send

from utils.connection_cache import ConnectionCache
from utils.constants import Messages
from utils.error_util import create_error_response

logger = logging.getLogger('caregate.gateway')

class ConnectionGateMiddleware:
    """Makes sure the backing store is connected before any route handler runs.

    Soft paths (the health check) still trigger the connection attempt, which
    warms a cold process, but are let through when it fails so they can
    report the store as disconnected.
    """

    def __init__(self, app: ASGIApp, connection_cache: ConnectionCache, soft_paths=('/api/health',), development: bool | None = None):
        self.app = app
        self.development = development
        self.connection_cache = connection_cache
        self.soft_paths = frozenset(soft_paths)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get('type') != 'http':
            return await self.app(scope, receive, send)

        path = scope.get('path') or ''
        try:
            await self.connection_cache.ensure_connected()
        except Exception as e:
            if path in self.soft_paths:
                logger.warning(f'Database unavailable, continuing for {path}: {e}')
            else:
                logger.error(f'Database connection middleware error: {e}')
                response = create_error_response(500, Messages.DATABASE_FAILED, e, development=self.development)
                return await response(scope, receive, send)
        await self.app(scope, receive, send)
