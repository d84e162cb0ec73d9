class Headers:
    REQUEST_ID = 'X-Request-ID'

class Defaults:
    PAGE = 1
    PAGE_SIZE = 20
    MAX_PAGE_SIZE = 100
    DATABASE_NAME = 'hospital'

class Messages:
    API_RUNNING = 'Hospital Management API is running'
    DATABASE_FAILED = 'Database connection failed'
    INTERNAL_ERROR = 'Internal Server Error'
    REQUEST_FAILED = 'Request failed'
    VALIDATION_ERROR = 'Validation Error'
    INVALID_JSON = 'Malformed JSON in request body'
    RESOURCE_NOT_FOUND = 'Resource not found'

def route_not_found(path: str) -> str:
    return f'API route {path} not found'

def payload_too_large(limit: int) -> str:
    return f'Request entity too large (max: {limit} bytes)'
