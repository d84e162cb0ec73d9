"""
The contents of this file are property of Doorman Dev, LLC
Review the Apache License 2.0 for valid authorization of use
See https://github.com/apidoorman/doorman for more information
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import json
import re
import os
import sys
import uvicorn

from middleware.connection_gate_middleware import ConnectionGateMiddleware
from middleware.error_sink_middleware import ErrorSinkMiddleware
from middleware.logging_middleware import AccessLogMiddleware
from middleware.security_pipeline import SecurityPipelineMiddleware
from middleware.security_stages import build_default_stages
from routes.route_table import build_route_table, mount_route_table
from utils.config_util import Settings, get_settings
from utils.connection_cache import ConnectionCache
from utils.constants import Messages
from utils.error_util import create_error_response, exception_response

"""Logging configuration

Serverless hosts capture stdout, so every logger writes to the console.
Respects LOG_FORMAT=json|plain and LOG_LEVEL.
"""

class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            'time': self.formatTime(record, '%Y-%m-%dT%H:%M:%S'),
            'name': record.name,
            'level': record.levelname,
            'message': record.getMessage(),
        }
        if record.exc_info:
            payload['exc_info'] = self.formatException(record.exc_info)
        try:
            return json.dumps(payload, ensure_ascii=False)
        except Exception:
            return f'{payload}'

class RedactFilter(logging.Filter):
    """Redacts credentials before records reach a handler.

    Covers authorization headers, tokens, passwords, cookies and the
    user:password part of MongoDB connection strings.
    """

    PATTERNS = [
        re.compile(r'(?i)(authorization\s*[:=]\s*)([^;\r\n]+)'),
        re.compile(r'(?i)(access[_-]?token\s*["\']?\s*[:=]\s*["\']?)([^"\';\r\n\s]+)(["\']?)'),
        re.compile(r'(?i)(refresh[_-]?token\s*["\']?\s*[:=]\s*["\']?)([^"\';\r\n\s]+)(["\']?)'),
        re.compile(r'(?i)(password\s*["\']?\s*[:=]\s*["\']?)([^"\';\r\n]+)(["\']?)'),
        re.compile(r'(?i)(secret\s*["\']?\s*[:=]\s*["\']?)([^"\';\r\n\s]+)(["\']?)'),
        re.compile(r'(?i)(cookie\s*[:=]\s*)([^;\r\n]+)'),
        re.compile(r'(?i)(mongodb(?:\+srv)?://)([^@/\s]+)(@)'),
        re.compile(r'\b(eyJ[a-zA-Z0-9_\-]+\.eyJ[a-zA-Z0-9_\-]+\.[a-zA-Z0-9_\-]+)\b'),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            msg = str(record.getMessage())
            red = msg
            for pat in self.PATTERNS:
                if pat.groups >= 2:
                    red = pat.sub(lambda m: (
                        m.group(1) +
                        '[REDACTED]' +
                        (m.group(3) if m.lastindex and m.lastindex >= 3 else '')
                    ), red)
                else:
                    red = pat.sub('[REDACTED]', red)
            if red != msg:
                record.msg = red
                record.args = None
        except Exception:
            pass
        return True

def configure_logger(logger_name, settings: Settings):
    logger = logging.getLogger(logger_name)
    level = getattr(logging, (settings.log_level or 'INFO').upper(), logging.INFO)
    logger.setLevel(level)
    logger.propagate = False

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    fmt_is_json = (settings.log_format or 'plain').lower() == 'json'
    console = logging.StreamHandler(stream=sys.stdout)
    console.setLevel(level)
    console.setFormatter(JSONFormatter() if fmt_is_json else logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    console.addFilter(RedactFilter())
    logger.addHandler(console)
    return logger

gateway_logger = configure_logger('caregate.gateway', get_settings())
access_logger = configure_logger('caregate.access', get_settings())

@asynccontextmanager
async def app_lifespan(app: FastAPI):
    settings = app.state.settings
    if not settings.mongodb_uri:
        gateway_logger.warning('MONGODB_URI is not set; /api routes will fail until it is configured')
    gateway_logger.info(f'Hospital Management API starting (environment={settings.node_env})')
    try:
        yield
    finally:
        gateway_logger.info('Closing database connections...')
        try:
            await app.state.connection_cache.close()
        except Exception as e:
            gateway_logger.error(f'Error closing database connections: {e}')

def create_app(settings: Settings | None = None, connection_cache: ConnectionCache | None = None, route_overrides=None, stages=None) -> FastAPI:
    """Build the gateway application.

    Middleware runs outermost first: access log, security pipeline,
    connection gate, error sink, then the router.
    """
    settings = settings or get_settings()
    connection_cache = connection_cache or ConnectionCache(settings)

    app = FastAPI(
        title='caregate',
        description='Hospital operations record API gateway.',
        version='1.0.0',
        lifespan=app_lifespan,
    )
    app.state.settings = settings
    app.state.connection_cache = connection_cache

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return exception_response(exc, development=settings.is_development)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        gateway_logger.info(f'Validation error on {request.method} {request.url.path}: {exc.errors()}')
        return create_error_response(422, Messages.VALIDATION_ERROR, exc, development=settings.is_development)

    mount_route_table(app, build_route_table(route_overrides))

    # add_middleware wraps: the last one added runs first.
    app.add_middleware(ErrorSinkMiddleware, connection_cache=connection_cache, development=settings.is_development)
    app.add_middleware(ConnectionGateMiddleware, connection_cache=connection_cache, development=settings.is_development)
    app.add_middleware(
        SecurityPipelineMiddleware,
        stages=stages if stages is not None else build_default_stages(settings),
        development=settings.is_development,
    )
    app.add_middleware(AccessLogMiddleware)
    return app

caregate = create_app()

def run():
    settings = get_settings()
    gateway_logger.info(f'Started caregate on port {settings.port}')
    uvicorn.run(
        'caregate:caregate',
        host=settings.host,
        port=settings.port,
        reload=os.getenv('DEV_RELOAD', 'false').lower() == 'true',
        log_level='info',
    )

if __name__ == '__main__':
    run()
