"""
The contents of this file are property of Doorman Dev, LLC
Review the Apache License 2.0 for valid authorization of use
See https://github.com/apidoorman/doorman for more information
"""

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from motor.motor_asyncio import AsyncIOMotorClient

from utils.config_util import Settings, get_settings
from utils.constants import Defaults

logger = logging.getLogger('caregate.gateway')

class BackingStoreConnectionError(ConnectionError):
    """Raised when the document store is unreachable or not configured."""

class ConnectionState(str, enum.Enum):
    DISCONNECTED = 'disconnected'
    CONNECTING = 'connecting'
    CONNECTED = 'connected'
    FAILED = 'failed'

@dataclass
class ConnectionHandle:
    client: Any = None
    db: Any = None
    state: ConnectionState = ConnectionState.DISCONNECTED
    max_pool_size: int = 10
    connect_timeout_ms: int = 5000
    socket_timeout_ms: int = 45000
    last_error: str | None = field(default=None, repr=False)

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED and self.client is not None

def _motor_client_factory(uri: str, **options) -> Any:
    return AsyncIOMotorClient(uri, **options)

class ConnectionCache:
    """Holds the single backing-store connection for this process.

    Warm invocations reuse the cached handle without any I/O. A cold start (or a
    handle that has gone bad) creates a new client, pings it, and caches it only
    once the ping succeeds. Concurrent cold-start callers wait on one attempt.
    """

    def __init__(self, settings: Settings | None = None, client_factory: Callable[..., Any] | None = None):
        self._settings = settings
        self._client_factory = client_factory or _motor_client_factory
        self._handle: ConnectionHandle | None = None
        self._state = ConnectionState.DISCONNECTED
        self._lock: asyncio.Lock | None = None

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    @property
    def state(self) -> ConnectionState:
        if self._handle is not None and self._handle.connected:
            return ConnectionState.CONNECTED
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._handle is not None and self._handle.connected

    @property
    def database(self) -> Any:
        if not self.is_connected:
            raise BackingStoreConnectionError('Database connection is not established')
        return self._handle.db

    def _get_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def ensure_connected(self) -> ConnectionHandle:
        handle = self._handle
        if handle is not None and handle.connected:
            logger.debug('Using cached database connection')
            return handle

        async with self._get_lock():
            handle = self._handle
            if handle is not None and handle.connected:
                return handle
            if handle is not None:
                self._handle = None
                await self._discard(handle)
            self._handle = await self._connect()
            return self._handle

    async def _connect(self) -> ConnectionHandle:
        settings = self.settings
        uri = (settings.mongodb_uri or '').strip()
        if not uri:
            self._state = ConnectionState.FAILED
            logger.error('MongoDB connection error: MONGODB_URI is not configured')
            raise BackingStoreConnectionError('MONGODB_URI is not configured')

        logger.info('Creating new database connection...')
        self._state = ConnectionState.CONNECTING
        handle = ConnectionHandle(
            state=ConnectionState.CONNECTING,
            max_pool_size=settings.mongo_max_pool_size,
            connect_timeout_ms=settings.mongo_connect_timeout_ms,
            socket_timeout_ms=settings.mongo_socket_timeout_ms,
        )
        try:
            handle.client = self._client_factory(
                uri,
                maxPoolSize=handle.max_pool_size,
                serverSelectionTimeoutMS=handle.connect_timeout_ms,
                socketTimeoutMS=handle.socket_timeout_ms,
            )
            await handle.client.admin.command('ping')
            handle.db = handle.client.get_default_database(default=Defaults.DATABASE_NAME)
        except Exception as e:
            self._state = ConnectionState.FAILED
            handle.state = ConnectionState.FAILED
            handle.last_error = str(e)
            logger.error(f'MongoDB connection error: {e}')
            await self._discard(handle)
            raise BackingStoreConnectionError(str(e)) from e

        handle.state = ConnectionState.CONNECTED
        self._state = ConnectionState.CONNECTED
        logger.info('MongoDB Connected Successfully')
        return handle

    async def _discard(self, handle: ConnectionHandle) -> None:
        client = handle.client
        handle.client = None
        handle.db = None
        if client is None:
            return
        try:
            result = client.close()
            if asyncio.iscoroutine(result):
                await result
        except Exception as e:
            logger.warning(f'Error closing stale MongoDB client: {e}')

    async def invalidate(self) -> None:
        """Drop the cached handle so the next request reconnects."""
        handle = self._handle
        self._handle = None
        self._state = ConnectionState.DISCONNECTED
        if handle is not None:
            logger.info('Invalidating cached database connection')
            await self._discard(handle)

    async def close(self) -> None:
        await self.invalidate()
