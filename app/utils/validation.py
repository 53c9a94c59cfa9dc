from functools import wraps
from flask import request
from pydantic import ValidationError
from .responses import validation_error_response


def _json_safe(errors):
    # pydantic puts the raw exception under "ctx" for custom validators
    return [
        {key: value for key, value in err.items() if key in ("type", "loc", "msg")}
        for err in errors
    ]


def validate_schema(schema):
    """Decorator to validate request JSON against a Pydantic schema."""

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                obj = schema(**(request.get_json(silent=True) or {}))
            except ValidationError as ve:
                return validation_error_response(_json_safe(ve.errors()))
            request.validated_data = obj
            return fn(*args, **kwargs)
        return wrapper

    return decorator


def validate_query(schema):
    """Same as ``validate_schema`` but for query-string arguments."""

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                obj = schema(**request.args.to_dict())
            except ValidationError as ve:
                return validation_error_response(_json_safe(ve.errors()))
            request.validated_query = obj
            return fn(*args, **kwargs)
        return wrapper

    return decorator
