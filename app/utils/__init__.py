from .responses import (
    ok,
    error,
    error_response,
    internal_error_response,
    service_error_response,
    validation_error_response,
)
from .validation import validate_schema, validate_query
from .db import transactional
from .clock import utcnow
from .money import to_money
from .tokens import generate_order_number, generate_session_id

__all__ = [
    'ok',
    'error',
    'error_response',
    'internal_error_response',
    'service_error_response',
    'validation_error_response',
    'validate_schema',
    'validate_query',
    'transactional',
    'utcnow',
    'to_money',
    'generate_order_number',
    'generate_session_id',
]
