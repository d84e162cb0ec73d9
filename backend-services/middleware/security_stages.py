"""
The contents of this file are property of Doorman Dev, LLC
Review the Apache License 2.0 for valid authorization of use
See https://github.com/apidoorman/doorman for more information
"""

import json
import logging
from urllib.parse import parse_qsl

from fastapi.middleware.gzip import GZipMiddleware
from starlette.datastructures import MutableHeaders
from starlette.responses import Response
from starlette.types import ASGIApp

from middleware.security_pipeline import Exchange, Stage
from utils.config_util import Settings
from utils.constants import Messages, payload_too_large
from utils.error_util import create_error_response
from utils.sanitize_util import sanitize_pairs, sanitize_value

logger = logging.getLogger('caregate.gateway')

CORS_METHODS = ('GET', 'POST', 'PUT', 'DELETE', 'PATCH', 'OPTIONS')
CORS_ALLOW_HEADERS = ('Content-Type', 'Authorization', 'X-Requested-With', 'Accept')
CORS_EXPOSE_HEADERS = ('Content-Range', 'X-Content-Range')

HARDENING_HEADERS = (
    ('Cross-Origin-Opener-Policy', 'same-origin'),
    ('Cross-Origin-Resource-Policy', 'same-origin'),
    ('Origin-Agent-Cluster', '?1'),
    ('Referrer-Policy', 'no-referrer'),
    ('Strict-Transport-Security', 'max-age=15552000; includeSubDomains'),
    ('X-Content-Type-Options', 'nosniff'),
    ('X-DNS-Prefetch-Control', 'off'),
    ('X-Download-Options', 'noopen'),
    ('X-Frame-Options', 'SAMEORIGIN'),
    ('X-Permitted-Cross-Domain-Policies', 'none'),
    ('X-XSS-Protection', '0'),
)

class CorsStage(Stage):
    """Reflects the caller's origin and answers every OPTIONS request itself."""

    name = 'cors'

    def __init__(
        self,
        methods=CORS_METHODS,
        allow_headers=CORS_ALLOW_HEADERS,
        expose_headers=CORS_EXPOSE_HEADERS,
        credentials: bool = True,
        options_success_status: int = 200,
    ):
        self.methods = tuple(methods)
        self.allow_headers = tuple(allow_headers)
        self.expose_headers = tuple(expose_headers)
        self.credentials = credentials
        self.options_success_status = options_success_status

    async def on_request(self, exchange: Exchange) -> Response | None:
        if exchange.method != 'OPTIONS':
            return None
        return Response(
            status_code=self.options_success_status,
            headers={
                'Access-Control-Allow-Methods': ','.join(self.methods),
                'Access-Control-Allow-Headers': ','.join(self.allow_headers),
                'Content-Length': '0',
            },
        )

    def on_response_start(self, exchange: Exchange, headers: MutableHeaders) -> None:
        origin = exchange.origin
        if origin:
            headers['Access-Control-Allow-Origin'] = origin
        headers.add_vary_header('Origin')
        if self.credentials:
            headers['Access-Control-Allow-Credentials'] = 'true'
        if exchange.method != 'OPTIONS' and self.expose_headers:
            headers['Access-Control-Expose-Headers'] = ','.join(self.expose_headers)

class HardeningHeadersStage(Stage):
    """Protective response headers.

    Content-Security-Policy and Cross-Origin-Embedder-Policy are left out:
    the UI and its assets are deployed separately and load cross-origin.
    """

    name = 'hardening_headers'

    def __init__(self, headers=HARDENING_HEADERS):
        self.headers = tuple(headers)

    def on_response_start(self, exchange: Exchange, headers: MutableHeaders) -> None:
        for key, value in self.headers:
            headers.setdefault(key, value)
        if 'x-powered-by' in headers:
            del headers['x-powered-by']

class BodyDecodingStage(Stage):
    """Buffers the body up to a cap and decodes JSON and URL-encoded payloads."""

    name = 'body_decoding'

    def __init__(self, max_body_size: int, development: bool | None = None):
        self.max_body_size = int(max_body_size)
        self.development = development

    def _too_large(self, exchange: Exchange, size: int | None) -> Response:
        logger.warning(
            f'Request body too large: {exchange.method} {exchange.path} '
            f'size={size if size is not None else "stream"} limit={self.max_body_size}'
        )
        return create_error_response(413, payload_too_large(self.max_body_size), development=self.development)

    async def on_request(self, exchange: Exchange) -> Response | None:
        cl = exchange.headers.get('content-length')
        if cl and cl.strip():
            try:
                content_length = int(cl)
            except (ValueError, TypeError):
                return create_error_response(400, 'Invalid Content-Length header', development=self.development)
            if content_length > self.max_body_size:
                return self._too_large(exchange, content_length)

        if not await exchange.read_body(self.max_body_size):
            return self._too_large(exchange, None)
        if not exchange.body:
            return None

        content_type = (exchange.headers.get('content-type') or '').split(';')[0].strip().lower()
        if content_type == 'application/json' or content_type.endswith('+json'):
            try:
                exchange.body_data = json.loads(exchange.body)
            except (ValueError, UnicodeDecodeError, RecursionError) as e:
                logger.info(f'Rejected malformed JSON body on {exchange.path}: {e}')
                return create_error_response(400, Messages.INVALID_JSON, e, development=self.development)
            exchange.body_kind = 'json'
        elif content_type == 'application/x-www-form-urlencoded':
            exchange.body_data = parse_qsl(exchange.body.decode('utf-8', errors='replace'), keep_blank_values=True)
            exchange.body_kind = 'form'
        return None

class SanitizeStage(Stage):
    """Drops operator-like keys and neutralizes markup in body and query values."""

    name = 'sanitize'

    async def on_request(self, exchange: Exchange) -> Response | None:
        if exchange.query_pairs:
            exchange.set_query(sanitize_pairs(exchange.query_pairs))
        if exchange.body_kind == 'json':
            exchange.set_body_data(sanitize_value(exchange.body_data))
        elif exchange.body_kind == 'form':
            exchange.set_body_data(sanitize_pairs(exchange.body_data))
        return None

def collapse_pairs(pairs: list[tuple[str, str]], whitelist: frozenset[str]) -> tuple[list[tuple[str, str]], dict[str, list[str]]]:
    """Keep the last value of each repeated key unless the key is whitelisted.

    Returns the collapsed pairs and the discarded multi-value originals.
    """
    values: dict[str, list[str]] = {}
    for key, value in pairs:
        values.setdefault(key, []).append(value)
    polluted = {k: v for k, v in values.items() if len(v) > 1 and k not in whitelist}
    if not polluted:
        return pairs, {}
    collapsed = []
    seen = set()
    for key, value in pairs:
        if key in polluted:
            if key not in seen:
                seen.add(key)
                collapsed.append((key, polluted[key][-1]))
            continue
        collapsed.append((key, value))
    return collapsed, polluted

class ParameterPollutionStage(Stage):
    name = 'parameter_pollution'

    def __init__(self, whitelist=()):
        self.whitelist = frozenset(whitelist)

    async def on_request(self, exchange: Exchange) -> Response | None:
        if exchange.query_pairs:
            collapsed, polluted = collapse_pairs(exchange.query_pairs, self.whitelist)
            if polluted:
                exchange.state['query_polluted'] = polluted
                exchange.set_query(collapsed)
        if exchange.body_kind == 'form':
            collapsed, polluted = collapse_pairs(exchange.body_data, self.whitelist)
            if polluted:
                exchange.state['body_polluted'] = polluted
                exchange.set_body_data(collapsed)
        return None

class CompressionStage(Stage):
    name = 'compression'

    def __init__(self, minimum_size: int = 1024, compresslevel: int = 6):
        self.minimum_size = minimum_size
        self.compresslevel = compresslevel

    def wrap_app(self, app: ASGIApp) -> ASGIApp:
        return GZipMiddleware(app, minimum_size=self.minimum_size, compresslevel=self.compresslevel)

def build_default_stages(settings: Settings) -> list[Stage]:
    """The fixed stage order; each stage relies on the ones before it."""
    stages: list[Stage] = [
        CorsStage(),
        HardeningHeadersStage(),
        BodyDecodingStage(settings.max_body_size_bytes, development=settings.is_development),
        SanitizeStage(),
        ParameterPollutionStage(settings.hpp_whitelist_set),
    ]
    if settings.compression_enabled:
        level = settings.compression_level
        if not 1 <= level <= 9:
            logger.warning(f'Invalid COMPRESSION_LEVEL={level}. Must be 1-9. Using default: 6')
            level = 6
        stages.append(CompressionStage(settings.compression_minimum_size, level))
        logger.info(
            f'Response compression enabled: level={level}, '
            f'minimum_size={settings.compression_minimum_size} bytes'
        )
    else:
        logger.info('Response compression disabled (COMPRESSION_ENABLED=false)')
    return stages
