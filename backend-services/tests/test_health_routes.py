import pytest
from httpx import ASGITransport, AsyncClient

@pytest.mark.asyncio
async def test_health_reports_connected_store(client):
    r = await client.get('/api/health')
    assert r.status_code == 200
    body = r.json()
    assert body['status'] == 'success'
    assert body['message'] == 'Hospital Management API is running'
    assert body['environment'] == 'test'
    assert body['backingStoreStatus'] == 'connected'
    assert body['timestamp'].endswith('Z')

@pytest.mark.asyncio
async def test_health_stays_up_when_store_unreachable(client, client_factory):
    client_factory.fail = True
    r = await client.get('/api/health')
    assert r.status_code == 200
    body = r.json()
    assert body['status'] == 'success'
    assert body['backingStoreStatus'] == 'disconnected'
    # The gate still attempted to connect.
    assert client_factory.calls == 1

@pytest.mark.asyncio
async def test_health_without_uri_configured(build_app, settings_factory, client_factory):
    app = build_app(settings=settings_factory(MONGODB_URI=''))
    async with AsyncClient(transport=ASGITransport(app=app), base_url='http://testserver') as client:
        r = await client.get('/api/health')
    assert r.status_code == 200
    assert r.json()['backingStoreStatus'] == 'disconnected'
    assert client_factory.calls == 0

@pytest.mark.asyncio
async def test_health_warms_the_connection(client, connection_cache):
    assert not connection_cache.is_connected
    await client.get('/api/health')
    assert connection_cache.is_connected

@pytest.mark.asyncio
async def test_only_exact_health_path_is_exempt_from_gate(client, client_factory):
    client_factory.fail = True
    r = await client.get('/api/health/')
    assert r.status_code == 500
    assert r.json()['message'] == 'Database connection failed'
