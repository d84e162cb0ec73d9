import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from utils.constants import Headers
from utils.correlation_util import CorrelationContext, new_correlation_id

logger = logging.getLogger('caregate.access')

class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = (
            request.headers.get('x-request-id')
            or request.headers.get('request-id')
            or new_correlation_id()
        )
        request.state.request_id = request_id

        with CorrelationContext(request_id):
            start_time = time.time()
            try:
                response = await call_next(request)
            except Exception as e:
                duration = (time.time() - start_time) * 1000
                logger.error(
                    f'{request_id} | Request failed: {request.method} {request.url.path} '
                    f'| Error: {str(e)} | Time: {duration:.2f}ms',
                    exc_info=True,
                )
                raise

            duration = (time.time() - start_time) * 1000
            logger.info(
                f'{request_id} | Endpoint: {request.method} {request.url.path} '
                f'| status_code: {response.status_code} '
                f'| Total time: {duration:.2f}ms'
            )
            response.headers[Headers.REQUEST_ID] = request_id
            return response
