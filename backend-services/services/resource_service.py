"""
The contents of this file are property of Doorman Dev, LLC
Review the Apache License 2.0 for valid authorization of use
See https://github.com/apidoorman/doorman for more information
"""

import logging
from datetime import datetime, timezone
from typing import Any

from bson import ObjectId

from models.response_model import ResponseModel
from utils.async_db import (
    db_count,
    db_delete_one,
    db_find_one,
    db_find_paginated,
    db_insert_one,
    db_replace_one,
    db_update_one,
)
from utils.constants import Messages
from utils.paging_util import skip_for, validate_page_params

logger = logging.getLogger('caregate.gateway')

PROTECTED_FIELDS = ('_id', 'createdAt')

class ResourceService:
    """Create/read/update/delete over one collection.

    Documents get createdAt/updatedAt timestamps and their ObjectIds are
    returned as strings.
    """

    @staticmethod
    def _object_id(resource_id: str) -> ObjectId | None:
        if not ObjectId.is_valid(resource_id):
            return None
        return ObjectId(resource_id)

    @staticmethod
    def serialize(value: Any) -> Any:
        if isinstance(value, ObjectId):
            return str(value)
        if isinstance(value, dict):
            return {k: ResourceService.serialize(v) for k, v in value.items()}
        if isinstance(value, list):
            return [ResourceService.serialize(v) for v in value]
        return value

    @staticmethod
    def _strip_protected(payload: dict) -> dict:
        return {k: v for k, v in payload.items() if k not in PROTECTED_FIELDS}

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def _not_found(resource: str, resource_id: str) -> dict:
        logger.info(f'{resource} {resource_id} not found')
        return ResponseModel(
            status_code=404,
            status='error',
            message=f'{Messages.RESOURCE_NOT_FOUND}: {resource_id}',
        ).dict()

    @staticmethod
    def _invalid_payload(message: str) -> dict:
        return ResponseModel(status_code=400, status='error', message=message).dict()

    @staticmethod
    async def list_documents(collection: Any, page: int, page_size: int, filters: dict | None = None) -> dict:
        try:
            page, page_size = validate_page_params(page, page_size)
        except ValueError as e:
            return ResourceService._invalid_payload(str(e))
        query = dict(filters or {})
        docs = await db_find_paginated(
            collection,
            query,
            skip=skip_for(page, page_size),
            limit=page_size,
            sort=[('createdAt', -1)],
        )
        total = await db_count(collection, query)
        return ResponseModel(
            status_code=200,
            status='success',
            data=ResourceService.serialize(docs),
            response={'results': len(docs), 'total': total, 'page': page, 'page_size': page_size},
        ).dict()

    @staticmethod
    async def get_document(collection: Any, resource: str, resource_id: str) -> dict:
        oid = ResourceService._object_id(resource_id)
        doc = await db_find_one(collection, {'_id': oid}) if oid is not None else None
        if doc is None:
            return ResourceService._not_found(resource, resource_id)
        return ResponseModel(status_code=200, status='success', data=ResourceService.serialize(doc)).dict()

    @staticmethod
    async def create_document(collection: Any, resource: str, payload: Any) -> dict:
        if not isinstance(payload, dict) or not payload:
            return ResourceService._invalid_payload('Request body must be a non-empty JSON object')
        now = ResourceService._now()
        doc = ResourceService._strip_protected(payload)
        doc['createdAt'] = now
        doc['updatedAt'] = now
        result = await db_insert_one(collection, doc)
        doc['_id'] = getattr(result, 'inserted_id', doc.get('_id'))
        logger.info(f'Created {resource} {doc["_id"]}')
        return ResponseModel(status_code=201, status='success', data=ResourceService.serialize(doc)).dict()

    @staticmethod
    async def replace_document(collection: Any, resource: str, resource_id: str, payload: Any) -> dict:
        if not isinstance(payload, dict) or not payload:
            return ResourceService._invalid_payload('Request body must be a non-empty JSON object')
        oid = ResourceService._object_id(resource_id)
        existing = await db_find_one(collection, {'_id': oid}) if oid is not None else None
        if existing is None:
            return ResourceService._not_found(resource, resource_id)
        doc = ResourceService._strip_protected(payload)
        doc['createdAt'] = existing.get('createdAt')
        doc['updatedAt'] = ResourceService._now()
        await db_replace_one(collection, {'_id': oid}, doc)
        doc['_id'] = oid
        return ResponseModel(status_code=200, status='success', data=ResourceService.serialize(doc)).dict()

    @staticmethod
    async def update_document(collection: Any, resource: str, resource_id: str, payload: Any) -> dict:
        if not isinstance(payload, dict) or not payload:
            return ResourceService._invalid_payload('Request body must be a non-empty JSON object')
        oid = ResourceService._object_id(resource_id)
        if oid is None:
            return ResourceService._not_found(resource, resource_id)
        changes = ResourceService._strip_protected(payload)
        changes['updatedAt'] = ResourceService._now()
        result = await db_update_one(collection, {'_id': oid}, {'$set': changes})
        if not getattr(result, 'matched_count', 0):
            return ResourceService._not_found(resource, resource_id)
        doc = await db_find_one(collection, {'_id': oid})
        return ResponseModel(status_code=200, status='success', data=ResourceService.serialize(doc)).dict()

    @staticmethod
    async def delete_document(collection: Any, resource: str, resource_id: str) -> dict:
        oid = ResourceService._object_id(resource_id)
        if oid is None:
            return ResourceService._not_found(resource, resource_id)
        result = await db_delete_one(collection, {'_id': oid})
        if not getattr(result, 'deleted_count', 0):
            return ResourceService._not_found(resource, resource_id)
        logger.info(f'Deleted {resource} {resource_id}')
        return ResponseModel(status_code=200, status='success', message=f'{resource} deleted').dict()

    @staticmethod
    async def count_documents(collection: Any) -> int:
        return await db_count(collection, {})
