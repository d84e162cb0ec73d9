from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
import logging

from models.response_model import ResponseModel

logger = logging.getLogger('caregate.gateway')

def _normalize_headers(hdrs: dict | None) -> dict | None:
    try:
        if not hdrs:
            return hdrs

        out = dict(hdrs)
        rid = out.get('request_id') or out.get('Request-Id') or out.get('X-Request-ID')

        if rid and 'X-Request-ID' not in out:
            out['X-Request-ID'] = rid
        out.pop('request_id', None)
        return out
    except Exception:
        return hdrs

def _envelope(response: ResponseModel) -> dict:
    ok = 200 <= int(response.status_code or 200) < 400
    content = {'status': response.status or ('success' if ok else 'error')}
    if response.message:
        content['message'] = response.message
    elif not ok:
        content['message'] = 'Request failed'
    if response.error is not None:
        content['error'] = response.error
    if response.data is not None:
        content['data'] = response.data
    if response.response:
        for key, value in response.response.items():
            content.setdefault(key, value)
    return content

def process_rest_response(response):
    try:
        http_status = int(response.status_code or 200)
        content = jsonable_encoder(_envelope(response))
        return JSONResponse(
            content=content,
            status_code=http_status,
            headers=_normalize_headers(response.response_headers),
        )
    except Exception as e:
        logger.error(f'An error occurred while processing the response: {e}')
        return JSONResponse(
            content={'status': 'error', 'message': 'Unable to process response'},
            status_code=500,
        )

def process_response(response):
    return process_rest_response(ResponseModel(**response))
