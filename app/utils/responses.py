from flask import jsonify


def ok(data=None, message="success", status=200):
    payload = {"status": "success", "message": message}
    if data is not None:
        payload["data"] = data
    return jsonify(payload), status


def error(message, status=400, code=None, data=None):
    payload = {
        "status": "error",
        "message": message,
        "code": code or status
    }
    if data is not None:
        payload["data"] = data
    return jsonify(payload), status


def service_error_response(exc):
    """Envelope for a domain ``ServiceError``."""
    return error(exc.message, status=exc.status, code=exc.code)


def validation_error_response(errors):
    return error("Validation failed", status=400, code="VALIDATION_ERROR", data=errors)


def error_response(message: str, status_code: int):
    return jsonify({"status": "error", "message": message}), status_code


def internal_error_response():
    return error_response("An unexpected error occurred, please try again later", 500)
