"""Decorators that validate request bodies and query strings with Pydantic."""

import logging
from functools import wraps

from flask import jsonify, request
from pydantic import ValidationError

logger = logging.getLogger(__name__)


def _validation_failed(f, e):
    logger.warning(f"Validation error for {f.__name__}: {e.error_count()} error(s)")
    return jsonify({
        "error": "Validation failed",
        "code": "invalid_input",
        # Inputs are left out so a rejected password is never echoed back
        "details": e.errors(include_url=False, include_context=False, include_input=False),
    }), 400


def validate_json(model_class):
    """Decorator to validate the JSON body using a Pydantic model.

    The parsed model is stored on ``request.validated_data``.
    """
    def decorator(f):
        @wraps(f)
        def wrapped(*args, **kwargs):
            data = request.get_json(silent=True)
            if not isinstance(data, dict):
                return jsonify({
                    "error": "Request body must be a JSON object",
                    "code": "invalid_input",
                }), 400
            try:
                request.validated_data = model_class.model_validate(data)
            except ValidationError as e:
                return _validation_failed(f, e)
            return f(*args, **kwargs)
        return wrapped
    return decorator


def validate_query(model_class):
    """Decorator to validate query parameters using a Pydantic model.

    The parsed model is stored on ``request.validated_params``.
    """
    def decorator(f):
        @wraps(f)
        def wrapped(*args, **kwargs):
            try:
                request.validated_params = model_class.model_validate(request.args.to_dict())
            except ValidationError as e:
                return _validation_failed(f, e)
            return f(*args, **kwargs)
        return wrapped
    return decorator
