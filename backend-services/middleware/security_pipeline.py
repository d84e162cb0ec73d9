"""
The contents of this file are property of Doorman Dev, LLC
Review the Apache License 2.0 for valid authorization of use
See https://github.com/apidoorman/doorman for more information
"""

import json
import logging
from typing import Any, Sequence
from urllib.parse import parse_qsl, urlencode

from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from utils.error_util import create_error_response

logger = logging.getLogger('caregate.gateway')

class Exchange:
    """Mutable view of one request as it moves through the pipeline stages.

    Stages read and rewrite the decoded body and query pairs; the pipeline
    writes them back into the ASGI scope and receive channel before the
    request is handed to the application.
    """

    def __init__(self, scope: Scope, receive: Receive):
        self.scope = dict(scope)
        self.scope.setdefault('state', {})
        self._receive = receive
        self.method = str(scope.get('method', 'GET')).upper()
        self.path = scope.get('path') or ''
        self.headers = Headers(scope=scope)
        self.query_pairs: list[tuple[str, str]] = parse_qsl(
            (scope.get('query_string') or b'').decode('utf-8', errors='replace'), keep_blank_values=True
        )
        self.body: bytes | None = None
        self.body_kind: str | None = None
        self.body_data: Any = None
        self.body_dirty = False
        self.query_dirty = False

    @property
    def state(self) -> dict:
        return self.scope['state']

    @property
    def origin(self) -> str | None:
        return self.headers.get('origin')

    def set_query(self, pairs: list[tuple[str, str]]) -> None:
        if pairs != self.query_pairs:
            self.query_pairs = pairs
            self.query_dirty = True

    def set_body_data(self, data: Any) -> None:
        if data != self.body_data:
            self.body_data = data
            self.body_dirty = True

    async def read_body(self, limit: int) -> bool:
        """Buffer the request body. Returns False once more than limit bytes arrive."""
        chunks = []
        received = 0
        more_body = True
        while more_body:
            message = await self._receive()
            if message.get('type') != 'http.request':
                break
            chunk = message.get('body', b'') or b''
            received += len(chunk)
            if received > limit:
                return False
            chunks.append(chunk)
            more_body = message.get('more_body', False)
        self.body = b''.join(chunks)
        return True

    def _encode_body(self) -> bytes:
        if self.body_kind == 'json':
            return json.dumps(self.body_data, ensure_ascii=False).encode('utf-8')
        if self.body_kind == 'form':
            return urlencode(self.body_data).encode('ascii')
        return self.body or b''

    def commit(self) -> None:
        if self.query_dirty:
            self.scope['query_string'] = urlencode(self.query_pairs).encode('ascii')
        if self.body_dirty:
            self.body = self._encode_body()
            raw = [(k, v) for k, v in self.scope.get('headers') or [] if k.lower() != b'content-length']
            raw.append((b'content-length', str(len(self.body)).encode('latin-1')))
            self.scope['headers'] = raw

    @property
    def receive(self) -> Receive:
        if self.body is None:
            return self._receive
        replayed = False

        async def receive() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {'type': 'http.request', 'body': self.body, 'more_body': False}
            return await self._receive()

        return receive

class Stage:
    """One step of the security pipeline.

    on_request may return a Response to end the pipeline early,
    on_response_start decorates outgoing headers, and wrap_app lets a stage
    wrap the downstream application (used for response compression).
    """

    name = 'stage'

    async def on_request(self, exchange: Exchange) -> Response | None:
        return None

    def on_response_start(self, exchange: Exchange, headers: MutableHeaders) -> None:
        return None

    def wrap_app(self, app: ASGIApp) -> ASGIApp:
        return app

class SecurityPipelineMiddleware:
    """Runs the stages in order, then hands the rewritten request to the app."""

    def __init__(self, app: ASGIApp, stages: Sequence[Stage], development: bool | None = None):
        self.app = app
        self.development = development
        self.stages = tuple(stages)
        downstream = app
        for stage in reversed(self.stages):
            downstream = stage.wrap_app(downstream)
        self.downstream = downstream

    def _decorate(self, exchange: Exchange, stages: Sequence[Stage], send: Send) -> Send:
        async def send_wrapper(message: Message) -> None:
            if message.get('type') == 'http.response.start':
                message = dict(message)
                headers = MutableHeaders(raw=list(message.get('headers') or []))
                for stage in stages:
                    stage.on_response_start(exchange, headers)
                message['headers'] = headers.raw
            await send(message)

        return send_wrapper

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get('type') != 'http':
            return await self.app(scope, receive, send)

        exchange = Exchange(scope, receive)
        ran: list[Stage] = []
        for stage in self.stages:
            ran.append(stage)
            try:
                response = await stage.on_request(exchange)
            except Exception as e:
                logger.error(f'Security pipeline stage {stage.name} failed: {e}', exc_info=True)
                response = create_error_response(500, 'Internal Server Error', e, development=self.development)
            if response is not None:
                await response(exchange.scope, exchange.receive, self._decorate(exchange, ran, send))
                return

        exchange.commit()
        await self.downstream(exchange.scope, exchange.receive, self._decorate(exchange, self.stages, send))
