"""Helper functions for the application."""
from flask import jsonify
from typing import Dict, Any

def handle_error(error, status_code: int):
    """Handle application errors with consistent format."""
    message = getattr(error, 'description', None) or str(error)
    return error_response(message, status_code)

def success_response(data: Dict[str, Any] = None, message: str = None, status_code: int = 200):
    """Return consistent success response."""
    response = dict(data or {})

    if message is not None:
        response['message'] = message

    return jsonify(response), status_code

def error_response(message: str, status_code: int = 400, **extra):
    """Return consistent error response."""
    response = {
        'error': message,
        'status_code': status_code
    }
    response.update(extra)

    return jsonify(response), status_code
