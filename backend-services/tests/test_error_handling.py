import pytest
from fastapi import APIRouter
from httpx import ASGITransport, AsyncClient
from pymongo.errors import ConnectionFailure

class ConflictError(Exception):
    status_code = 409

def _failing_router():
    router = APIRouter()

    @router.get('/boom')
    async def boom():
        raise RuntimeError('boom: collection scan exploded')

    @router.get('/conflict')
    async def conflict():
        raise ConflictError('Bed already assigned')

    @router.get('/lost')
    async def lost():
        raise ConnectionFailure('connection reset by peer')

    return router

async def _client(app):
    return AsyncClient(transport=ASGITransport(app=app), base_url='http://testserver')

@pytest.mark.asyncio
async def test_unmatched_api_path_returns_envelope(client):
    r = await client.get('/api/no-such-thing/deeper')
    assert r.status_code == 404
    assert r.json() == {'status': 'error', 'message': 'API route /api/no-such-thing/deeper not found'}

@pytest.mark.asyncio
async def test_unmatched_api_path_any_method(client):
    r = await client.delete('/api/no-such-thing')
    assert r.status_code == 404
    assert r.json()['message'] == 'API route /api/no-such-thing not found'

@pytest.mark.asyncio
async def test_path_outside_api_uses_error_envelope(client):
    r = await client.get('/not-api')
    assert r.status_code == 404
    assert r.json()['status'] == 'error'

@pytest.mark.asyncio
async def test_unhandled_error_is_generic_outside_development(build_app):
    app = build_app(route_overrides={'faulty': _failing_router()})
    async with await _client(app) as client:
        r = await client.get('/api/faulty/boom')
    assert r.status_code == 500
    assert r.json() == {'status': 'error', 'message': 'Internal Server Error'}

@pytest.mark.asyncio
async def test_unhandled_error_detail_in_development(build_app, settings_factory):
    app = build_app(settings=settings_factory(NODE_ENV='development'), route_overrides={'faulty': _failing_router()})
    async with await _client(app) as client:
        r = await client.get('/api/faulty/boom')
    assert r.status_code == 500
    body = r.json()
    assert body['message'] == 'Internal Server Error'
    assert body['error'] == 'boom: collection scan exploded'

@pytest.mark.asyncio
async def test_error_with_status_keeps_status_and_message(build_app):
    app = build_app(route_overrides={'faulty': _failing_router()})
    async with await _client(app) as client:
        r = await client.get('/api/faulty/conflict')
    assert r.status_code == 409
    assert r.json()['message'] == 'Bed already assigned'

@pytest.mark.asyncio
async def test_lost_connection_invalidates_cache(build_app, connection_cache, client_factory):
    app = build_app(route_overrides={'faulty': _failing_router()})
    async with await _client(app) as client:
        r = await client.get('/api/faulty/lost')
        assert r.status_code == 500
        assert not connection_cache.is_connected
        r = await client.get('/api/patients')
    assert r.status_code == 200
    assert client_factory.calls == 2

@pytest.mark.asyncio
async def test_store_unavailable_blocks_api_routes(client, client_factory):
    client_factory.fail = True
    r = await client.get('/api/patients')
    assert r.status_code == 500
    assert r.json() == {'status': 'error', 'message': 'Database connection failed'}

@pytest.mark.asyncio
async def test_store_failure_detail_in_development(build_app, settings_factory, client_factory):
    client_factory.fail = True
    app = build_app(settings=settings_factory(NODE_ENV='development'))
    async with await _client(app) as client:
        r = await client.get('/api/patients')
    assert r.status_code == 500
    body = r.json()
    assert body['message'] == 'Database connection failed'
    assert 'server selection timed out' in body['error']

@pytest.mark.asyncio
async def test_store_recovers_after_failed_attempt(client, client_factory):
    client_factory.fail = True
    r = await client.get('/api/patients')
    assert r.status_code == 500
    client_factory.fail = False
    r = await client.get('/api/patients')
    assert r.status_code == 200
    assert client_factory.calls == 2

@pytest.mark.asyncio
async def test_validation_error_uses_envelope(client):
    r = await client.get('/api/patients?page=abc')
    assert r.status_code == 422
    body = r.json()
    assert body['status'] == 'error'
    assert body['message'] == 'Validation Error'

@pytest.mark.asyncio
async def test_unmatched_api_path_echoes_query_string(client):
    r = await client.get('/api/no-such-thing?ward=B2')
    assert r.status_code == 404
    assert r.json()['message'] == 'API route /api/no-such-thing?ward=B2 not found'
