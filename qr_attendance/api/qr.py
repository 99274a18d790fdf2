# File: qr_attendance/api/qr.py
"""QR attendance API endpoints."""
from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from flask_limiter.util import get_remote_address
from qr_attendance import limiter
from qr_attendance.services.attendance_service import AttendanceService
from qr_attendance.utils.errors import AttendanceError
from qr_attendance.utils.helpers import success_response, error_response

qr_bp = Blueprint('qr', __name__)

def _status_rate_key() -> str:
    """Throttle polling per client and session."""
    return f"{get_remote_address()}:{request.view_args.get('session_id')}"

def _status_rate_limit() -> str:
    return current_app.config.get('QR_STATUS_RATE_LIMIT', '3 per 5 seconds')

def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}

@qr_bp.errorhandler(AttendanceError)
def handle_attendance_error(error):
    return error_response(error.message, error.status_code, **error.details)

@qr_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='QR service is running')

@qr_bp.route('/generate', methods=['POST'])
@jwt_required(optional=True)
@limiter.limit("30 per minute")
def generate_qr():
    """Open a QR attendance session for a class."""
    data = _json_body()
    current_app.logger.debug('QR generate request: %s', data)

    result = AttendanceService.from_app().generate_session(
        class_id=data.get('classId'),
        class_name=data.get('className'),
        latitude=data.get('latitude'),
        longitude=data.get('longitude'),
        expires_in=data.get('expiresIn'),
        created_by=get_jwt_identity()
    )
    return success_response(result, status_code=201)

@qr_bp.route('/mark/<session_id>', methods=['POST'])
@limiter.limit("60 per minute")
def mark_attendance(session_id):
    """Mark the scanning student present."""
    data = _json_body()

    result = AttendanceService.from_app().mark_attendance(
        session_id,
        data.get('studentId'),
        data.get('studentName'),
        latitude=data.get('latitude'),
        longitude=data.get('longitude')
    )
    return success_response(result)

@qr_bp.route('/scan', methods=['POST'])
@limiter.limit("60 per minute")
def scan_qr():
    """Mark attendance from raw scanned QR contents."""
    data = _json_body()

    result = AttendanceService.from_app().scan(
        data.get('qrData'),
        data.get('studentId'),
        data.get('studentName'),
        latitude=data.get('latitude'),
        longitude=data.get('longitude')
    )
    return success_response(result)

@qr_bp.route('/session/<session_id>', methods=['GET'])
@limiter.limit(_status_rate_limit, key_func=_status_rate_key)
def session_status(session_id):
    """Session status for polling clients."""
    return success_response(AttendanceService.from_app().get_status(session_id))

@qr_bp.route('/session/<session_id>/close', methods=['POST'])
@jwt_required(optional=True)
def close_session(session_id):
    """End a session early."""
    current_app.logger.info('Close of %s requested by %s', session_id, get_jwt_identity() or 'anonymous')
    return success_response(AttendanceService.from_app().close_session(session_id))
