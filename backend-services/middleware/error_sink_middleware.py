import logging

from pymongo.errors import ConnectionFailure
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from utils.connection_cache import ConnectionCache
from utils.correlation_util import get_correlation_id
from utils.error_util import exception_response

logger = logging.getLogger('caregate.gateway')

class ErrorSinkMiddleware:
    """Turns any exception a handler lets escape into the error envelope.

    A lost store connection also drops the cached handle so the next request
    reconnects instead of reusing a dead client.
    """

    def __init__(self, app: ASGIApp, connection_cache: ConnectionCache | None = None, development: bool | None = None):
        self.app = app
        self.development = development
        self.connection_cache = connection_cache

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get('type') != 'http':
            return await self.app(scope, receive, send)

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message.get('type') == 'http.response.start':
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            rid = get_correlation_id()
            logger.error(
                f'{rid} | Unhandled error on {scope.get("method")} {scope.get("path")}: {exc}',
                exc_info=True,
            )
            if isinstance(exc, ConnectionFailure) and self.connection_cache is not None:
                await self.connection_cache.invalidate()
            if response_started:
                raise
            response = exception_response(exc, development=self.development, request_id=rid)
            await response(scope, receive, send)
