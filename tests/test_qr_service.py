"""Test QR payload building and parsing."""
import json
from datetime import datetime, timedelta

import pytest

from qr_attendance.services.qr_service import QRService
from qr_attendance.services.session_store import QRSession
from qr_attendance.utils.errors import ValidationError

@pytest.fixture
def session():
    created = datetime(2024, 9, 2, 9, 0, 0)
    return QRSession(
        session_id='qr_1725267600000_a1b2c3d4e5',
        class_id='CS301',
        class_name='Data Structures',
        created_at=created,
        expires_at=created + timedelta(seconds=300)
    )

def test_session_ids_are_unique():
    ids = {QRService.generate_session_id() for _ in range(200)}
    assert len(ids) == 200
    assert all(i.startswith('qr_') for i in ids)

def test_build_payload(session):
    payload = QRService.build_payload(session, 'https://attendance.example.edu/')

    assert payload['apiUrl'] == 'https://attendance.example.edu/api/qr/mark/qr_1725267600000_a1b2c3d4e5'
    assert payload['expiresAt'] == '2024-09-02T09:05:00'
    assert payload['hash'] == QRService.payload_hash(session.session_id, 'CS301', '2024-09-02T09:05:00')

def test_parse_json_payload(session):
    text = json.dumps(QRService.build_payload(session, 'http://localhost:5000'))
    assert QRService.parse_qr_payload(text) == (session.session_id, 'Data Structures')

def test_parse_json_without_hash():
    assert QRService.parse_qr_payload('{"sessionId": "qr_1", "className": "DS"}') == ('qr_1', 'DS')

def test_parse_rejects_tampered_hash(session):
    payload = QRService.build_payload(session, 'http://localhost:5000')
    payload['classId'] = 'CS999'

    with pytest.raises(ValidationError, match='Invalid QR code'):
        QRService.parse_qr_payload(json.dumps(payload))

def test_parse_rejects_other_payload_types():
    with pytest.raises(ValidationError):
        QRService.parse_qr_payload('{"type": "wifi", "sessionId": "qr_1"}')

@pytest.mark.parametrize('text, expected', [
    ('https://attendance.example.edu/scan?session=qr_9&class=Math%20101', ('qr_9', 'Math 101')),
    ('/attend?sessionId=qr_9', ('qr_9', None)),
    ('http://localhost:5000/api/qr/mark/qr_9', ('qr_9', None)),
    ('  qr_9  ', ('qr_9', None)),
])
def test_parse_legacy_forms(text, expected):
    assert QRService.parse_qr_payload(text) == expected

@pytest.mark.parametrize('text', ['', None, '{not json', '[1, 2]', 'hello world', 'https://x.edu/scan?class=DS'])
def test_parse_rejects_garbage(text):
    with pytest.raises(ValidationError):
        QRService.parse_qr_payload(text)

def test_render_qr_image():
    image = QRService.render_qr_image('{"sessionId":"qr_1"}')
    assert image.startswith('data:image/png;base64,')
    assert len(image) > 100
