"""
The contents of this file are property of Doorman Dev, LLC
Review the Apache License 2.0 for valid authorization of use
See https://github.com/apidoorman/doorman for more information
"""

import logging
from dataclasses import dataclass
from typing import Mapping

from fastapi import APIRouter, FastAPI, Request

from routes.dashboard_routes import dashboard_router
from routes.health_routes import health_router
from routes.resource_routes import build_resource_router
from utils.constants import route_not_found
from utils.database import collection_name_for
from utils.error_util import create_error_response

logger = logging.getLogger('caregate.gateway')

API_PREFIX = '/api'

# One entry per resource domain, in mount order.
RESOURCE_PREFIXES = (
    'auth',
    'users',
    'patients',
    'doctors',
    'surgeons',
    'nurses',
    'departments',
    'appointments',
    'visits',
    'wards',
    'beds',
    'ipd-records',
    'dashboard',
    'lab-tests',
    'radiology',
    'theatres',
    'theatre-procedures',
    'prescriptions',
    'medicines',
    'billing',
    'services',
    'stock',
    'dispensing',
    'direct-dispensing',
    'requisitions',
    'item-pricing',
    'item-receiving',
    'incoming-items',
    'corpses',
    'cabinets',
    'releases',
)

# Prefixes served by externally supplied groups only.
EXTERNAL_PREFIXES = frozenset({'auth'})

@dataclass(frozen=True)
class RouteTableEntry:
    prefix: str
    router: APIRouter

    @property
    def mount_path(self) -> str:
        return f'{API_PREFIX}/{self.prefix}'

def validate_route_table(entries) -> tuple[RouteTableEntry, ...]:
    seen = set()
    for entry in entries:
        if not entry.prefix or entry.prefix.strip('/') != entry.prefix:
            raise ValueError(f'Invalid route prefix: {entry.prefix!r}')
        if entry.prefix == 'health':
            raise ValueError('The health prefix is reserved')
        if entry.prefix in seen:
            raise ValueError(f'Duplicate route prefix: {entry.prefix}')
        seen.add(entry.prefix)
    return tuple(entries)

def default_router_for(prefix: str) -> APIRouter | None:
    if prefix in EXTERNAL_PREFIXES:
        return None
    if prefix == 'dashboard':
        return dashboard_router
    return build_resource_router(collection_name_for(prefix), prefix)

def build_route_table(overrides: Mapping[str, APIRouter] | None = None) -> tuple[RouteTableEntry, ...]:
    """Build the prefix table; overrides replace (or add) groups by prefix."""
    overrides = dict(overrides or {})
    entries = []
    for prefix in RESOURCE_PREFIXES:
        router = overrides.pop(prefix, None) or default_router_for(prefix)
        if router is None:
            logger.info(f'No route group registered for {API_PREFIX}/{prefix}')
            continue
        entries.append(RouteTableEntry(prefix, router))
    for prefix, router in overrides.items():
        entries.append(RouteTableEntry(prefix, router))
    return validate_route_table(entries)

not_found_router = APIRouter()

@not_found_router.api_route(
    '/{unmatched_path:path}',
    methods=['GET', 'POST', 'PUT', 'DELETE', 'PATCH', 'HEAD', 'OPTIONS'],
    include_in_schema=False,
)
async def api_route_not_found(request: Request, unmatched_path: str):
    path = request.url.path
    if request.url.query:
        path = f'{path}?{request.url.query}'
    logger.info(f'API route not found: {request.method} {path}')
    return create_error_response(404, route_not_found(path))

def mount_route_table(app: FastAPI, entries) -> None:
    app.include_router(health_router, prefix=API_PREFIX, tags=['Health'])
    for entry in entries:
        tag = entry.prefix.replace('-', ' ').title()
        app.include_router(entry.router, prefix=entry.mount_path, tags=[tag])
    # Must stay last: everything under /api that nothing above matched.
    app.include_router(not_found_router, prefix=API_PREFIX)
