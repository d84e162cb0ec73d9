"""
Routes to expose record counts to the dashboard.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends

from models.response_model import ResponseModel
from services.resource_service import ResourceService
from utils.database import get_database
from utils.error_util import success_response
from utils.health_check_util import utc_timestamp

dashboard_router = APIRouter()
logger = logging.getLogger('caregate.gateway')

DASHBOARD_COLLECTIONS = (
    'patients',
    'doctors',
    'nurses',
    'appointments',
    'visits',
    'wards',
    'beds',
    'prescriptions',
    'billing',
)

"""
Endpoint

Request:
{}
Response:
{status, data: {patients: int, doctors: int, ...}, generatedAt}
"""


@dashboard_router.get('/stats', description='Record counts per collection', response_model=ResponseModel)
async def dashboard_stats(db: Any = Depends(get_database)):
    counts = {}
    for name in DASHBOARD_COLLECTIONS:
        counts[name] = await ResourceService.count_documents(db[name])
    return success_response(data=counts, extra={'generatedAt': utc_timestamp()})
