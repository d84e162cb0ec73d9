import asyncio

import pytest

from utils.connection_cache import BackingStoreConnectionError, ConnectionCache, ConnectionState

@pytest.mark.asyncio
async def test_warm_calls_reuse_cached_connection(connection_cache, client_factory, fake_db):
    first = await connection_cache.ensure_connected()
    second = await connection_cache.ensure_connected()
    assert first is second
    assert client_factory.calls == 1
    assert client_factory.clients[0].commands == ['ping']
    assert connection_cache.state is ConnectionState.CONNECTED
    assert connection_cache.database is fake_db

@pytest.mark.asyncio
async def test_client_created_with_pool_and_timeouts(connection_cache, client_factory):
    await connection_cache.ensure_connected()
    opts = client_factory.clients[0].options
    assert opts['maxPoolSize'] == 10
    assert opts['serverSelectionTimeoutMS'] == 5000
    assert opts['socketTimeoutMS'] == 45000

@pytest.mark.asyncio
async def test_failed_connect_is_not_cached(connection_cache, client_factory):
    client_factory.fail = True
    with pytest.raises(BackingStoreConnectionError):
        await connection_cache.ensure_connected()
    assert connection_cache.state is ConnectionState.FAILED
    assert not connection_cache.is_connected
    assert client_factory.clients[0].closed

    client_factory.fail = False
    handle = await connection_cache.ensure_connected()
    assert handle.connected
    assert client_factory.calls == 2

@pytest.mark.asyncio
async def test_missing_uri_fails_without_creating_client(settings_factory, client_factory):
    cache = ConnectionCache(settings_factory(MONGODB_URI=''), client_factory=client_factory)
    with pytest.raises(BackingStoreConnectionError):
        await cache.ensure_connected()
    assert client_factory.calls == 0

@pytest.mark.asyncio
async def test_concurrent_cold_start_connects_once(connection_cache, client_factory):
    handles = await asyncio.gather(*[connection_cache.ensure_connected() for _ in range(5)])
    assert client_factory.calls == 1
    assert all(h is handles[0] for h in handles)

@pytest.mark.asyncio
async def test_invalidate_forces_reconnect(connection_cache, client_factory):
    await connection_cache.ensure_connected()
    await connection_cache.invalidate()
    assert client_factory.clients[0].closed
    assert connection_cache.state is ConnectionState.DISCONNECTED
    await connection_cache.ensure_connected()
    assert client_factory.calls == 2

def test_database_requires_connection(connection_cache):
    with pytest.raises(BackingStoreConnectionError):
        connection_cache.database
