# File: qr_attendance/services/qr_service.py
"""QR Code generation and payload parsing service."""
import qrcode
import io
import base64
import json
import re
import secrets
import time
import hashlib
from typing import Tuple, Optional, Dict
from urllib.parse import urlparse, parse_qs

from qr_attendance.services.session_store import QRSession
from qr_attendance.utils.errors import ValidationError

SESSION_ID_PATTERN = re.compile(r'^[A-Za-z0-9_-]{1,64}$')

class QRService:
    """Service for QR code operations."""

    PAYLOAD_TYPE = 'attendance'

    @staticmethod
    def generate_session_id() -> str:
        """Generate a unique, URL-safe session ID."""
        return f"qr_{int(time.time() * 1000)}_{secrets.token_hex(5)}"

    @staticmethod
    def payload_hash(session_id: str, class_id: str, expires_at: str) -> str:
        """Short integrity hash over the fields a scanner acts on."""
        data_string = f"{session_id}{class_id}{expires_at}"
        return hashlib.sha256(data_string.encode()).hexdigest()[:16]

    @staticmethod
    def mark_url(api_url: str, session_id: str) -> str:
        return f"{api_url.rstrip('/')}/api/qr/mark/{session_id}"

    @staticmethod
    def build_payload(session: QRSession, api_url: str, issued_at=None) -> Dict:
        """Build the JSON object embedded in the QR code."""
        expires_at = session.expires_at.isoformat()
        return {
            'type': QRService.PAYLOAD_TYPE,
            'sessionId': session.session_id,
            'classId': session.class_id,
            'className': session.class_name,
            'apiUrl': QRService.mark_url(api_url, session.session_id),
            'expiresAt': expires_at,
            'timestamp': (issued_at or session.created_at).isoformat(),
            'requiresLocation': session.requires_location,
            'hash': QRService.payload_hash(session.session_id, session.class_id, expires_at)
        }

    @staticmethod
    def render_qr_image(qr_string: str) -> str:
        """Render a QR code as a base64 PNG data URL."""
        qr = qrcode.QRCode(
            version=None,  # Auto-determine size
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=4,
        )
        qr.add_data(qr_string)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffered = io.BytesIO()
        img.save(buffered, format="PNG")
        img_str = base64.b64encode(buffered.getvalue()).decode()

        return f"data:image/png;base64,{img_str}"

    @staticmethod
    def parse_qr_payload(qr_data_string: str) -> Tuple[str, Optional[str]]:
        """
        Extract the session from scanned QR data.

        Accepts the JSON payload, the older URL form
        (``...?session=<id>&class=<name>``) and a bare session ID.
        Returns: (session_id, class_name)
        """
        if not isinstance(qr_data_string, str) or not qr_data_string.strip():
            raise ValidationError("QR data is required")

        text = qr_data_string.strip()

        if text.startswith('{'):
            return QRService._parse_json_payload(text)

        if '?' in text or '://' in text:
            return QRService._parse_url_payload(text)

        if SESSION_ID_PATTERN.match(text):
            return text, None

        raise ValidationError("Invalid QR code format")

    @staticmethod
    def _parse_json_payload(text: str) -> Tuple[str, Optional[str]]:
        try:
            qr_data = json.loads(text)
        except json.JSONDecodeError:
            raise ValidationError("Invalid QR code format")

        if not isinstance(qr_data, dict):
            raise ValidationError("Invalid QR code format")

        if qr_data.get('type', QRService.PAYLOAD_TYPE) != QRService.PAYLOAD_TYPE:
            raise ValidationError("Not an attendance QR code")

        session_id = qr_data.get('sessionId')
        if not isinstance(session_id, str) or not SESSION_ID_PATTERN.match(session_id):
            raise ValidationError("Missing field: sessionId")

        if 'hash' in qr_data:
            expected_hash = QRService.payload_hash(
                session_id, str(qr_data.get('classId', '')), str(qr_data.get('expiresAt', ''))
            )
            if qr_data['hash'] != expected_hash:
                raise ValidationError("Invalid QR code")

        return session_id, qr_data.get('className')

    @staticmethod
    def _parse_url_payload(text: str) -> Tuple[str, Optional[str]]:
        parsed = urlparse(text)
        params = parse_qs(parsed.query)

        session_id = (params.get('session') or params.get('sessionId') or [None])[0]
        class_name = (params.get('class') or params.get('className') or [None])[0]

        # .../api/qr/mark/<id>
        if session_id is None:
            segments = [s for s in parsed.path.split('/') if s]
            if len(segments) >= 2 and segments[-2] == 'mark':
                session_id = segments[-1]

        if not session_id or not SESSION_ID_PATTERN.match(session_id):
            raise ValidationError("Missing field: session")

        return session_id, class_name
