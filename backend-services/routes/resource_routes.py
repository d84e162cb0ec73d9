"""
Generic route group for one resource collection.

Every resource domain without its own handlers is served by one of these
routers, mounted at /api/<prefix>.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends

from models.response_model import ResponseModel
from services.resource_service import ResourceService
from utils.constants import Defaults
from utils.database import get_database
from utils.response_util import process_response

logger = logging.getLogger('caregate.gateway')

def build_resource_router(collection_name: str, resource_label: str | None = None) -> APIRouter:
    router = APIRouter()
    label = resource_label or collection_name

    def _collection(db: Any = Depends(get_database)) -> Any:
        return db[collection_name]

    @router.get('', description=f'List {label}', response_model=ResponseModel)
    @router.get('/', include_in_schema=False)
    async def list_resources(
        page: int = Defaults.PAGE,
        page_size: int = Defaults.PAGE_SIZE,
        collection: Any = Depends(_collection),
    ):
        return process_response(await ResourceService.list_documents(collection, page, page_size))

    @router.get('/{resource_id}', description=f'Get one {label} record', response_model=ResponseModel)
    async def get_resource(resource_id: str, collection: Any = Depends(_collection)):
        return process_response(await ResourceService.get_document(collection, label, resource_id))

    @router.post('', status_code=201, description=f'Create a {label} record', response_model=ResponseModel)
    @router.post('/', status_code=201, include_in_schema=False)
    async def create_resource(payload: Any = Body(None), collection: Any = Depends(_collection)):
        return process_response(await ResourceService.create_document(collection, label, payload))

    @router.put('/{resource_id}', description=f'Replace a {label} record', response_model=ResponseModel)
    async def replace_resource(resource_id: str, payload: Any = Body(None), collection: Any = Depends(_collection)):
        return process_response(await ResourceService.replace_document(collection, label, resource_id, payload))

    @router.patch('/{resource_id}', description=f'Update fields of a {label} record', response_model=ResponseModel)
    async def update_resource(resource_id: str, payload: Any = Body(None), collection: Any = Depends(_collection)):
        return process_response(await ResourceService.update_document(collection, label, resource_id, payload))

    @router.delete('/{resource_id}', description=f'Delete a {label} record', response_model=ResponseModel)
    async def delete_resource(resource_id: str, collection: Any = Depends(_collection)):
        return process_response(await ResourceService.delete_document(collection, label, resource_id))

    return router
