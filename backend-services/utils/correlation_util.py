"""
The contents of this file are property of Doorman Dev, LLC
Review the Apache License 2.0 for valid authorization of use
See https://github.com/apidoorman/doorman for more information
"""

import uuid
from contextvars import ContextVar

correlation_id: ContextVar[str | None] = ContextVar('correlation_id', default=None)


def get_correlation_id() -> str | None:
    """
    Get the current correlation ID from context.
    """
    return correlation_id.get()


def new_correlation_id() -> str:
    return str(uuid.uuid4())


class CorrelationContext:
    """
    Context manager for setting correlation ID in a scope.
    """

    def __init__(self, correlation_id_value: str):
        self.correlation_id_value = correlation_id_value
        self.token = None

    def __enter__(self):
        self.token = correlation_id.set(self.correlation_id_value)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token:
            correlation_id.reset(self.token)
