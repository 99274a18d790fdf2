# File: qr_attendance/services/session_store.py
"""QR session storage.

A session lives only as long as the QR code it backs, so it is kept out of
the relational database. Two backends share one interface:

* ``MemorySessionStore`` - a dict guarded by a lock, for a single process.
* ``RedisSessionStore`` - shared between worker processes; keys expire on
  their own and attendee claims use ``HSETNX``.

Expiry is never swept in the background: a session carries its
``expires_at`` and callers compare it with ``store.now()``.
"""
import json
import math
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

import redis
from flask import Flask, current_app

from qr_attendance.utils.errors import SessionNotFoundError

EXTENSION_KEY = 'qr_session_store'

@dataclass(frozen=True)
class Attendee:
    """A student marked present in a session."""
    student_id: str
    student_name: str
    marked_at: datetime
    department: Optional[str] = None
    class_name: Optional[str] = None
    status: str = 'present'

    def to_dict(self) -> Dict:
        return {
            'studentId': self.student_id,
            'studentName': self.student_name,
            'department': self.department,
            'class': self.class_name,
            'markedAt': self.marked_at.isoformat(),
            'status': self.status
        }

    @classmethod
    def from_record(cls, record: Dict) -> 'Attendee':
        return cls(
            student_id=record['studentId'],
            student_name=record['studentName'],
            marked_at=datetime.fromisoformat(record['markedAt']),
            department=record.get('department'),
            class_name=record.get('class'),
            status=record.get('status', 'present')
        )

@dataclass
class QRSession:
    """A short-lived attendance session behind one QR code."""
    session_id: str
    class_id: str
    class_name: str
    created_at: datetime
    expires_at: datetime
    created_by: str = 'anonymous'
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    closed: bool = False
    attendees: List[Attendee] = field(default_factory=list)

    def is_active(self, now: datetime) -> bool:
        return not self.closed and now < self.expires_at

    def time_left(self, now: datetime) -> int:
        """Whole seconds until expiry, never negative."""
        if self.closed:
            return 0
        return max(0, math.ceil((self.expires_at - now).total_seconds()))

    def has_attendee(self, student_id: str) -> bool:
        return any(a.student_id == student_id for a in self.attendees)

    @property
    def requires_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def to_record(self) -> Dict:
        """Serialize the session metadata (attendees are stored separately)."""
        return {
            'sessionId': self.session_id,
            'classId': self.class_id,
            'className': self.class_name,
            'createdAt': self.created_at.isoformat(),
            'expiresAt': self.expires_at.isoformat(),
            'createdBy': self.created_by,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'closed': self.closed
        }

    @classmethod
    def from_record(cls, record: Dict, attendees: List[Attendee] = None) -> 'QRSession':
        return cls(
            session_id=record['sessionId'],
            class_id=record['classId'],
            class_name=record['className'],
            created_at=datetime.fromisoformat(record['createdAt']),
            expires_at=datetime.fromisoformat(record['expiresAt']),
            created_by=record.get('createdBy', 'anonymous'),
            latitude=record.get('latitude'),
            longitude=record.get('longitude'),
            closed=record.get('closed', False),
            attendees=attendees or []
        )

class MemorySessionStore:
    """In-process session store."""

    def __init__(self, retention_seconds: int = 3600, clock: Callable[[], datetime] = None):
        self._sessions: Dict[str, QRSession] = {}
        self._lock = threading.Lock()
        self.retention = timedelta(seconds=retention_seconds)
        self.clock = clock or datetime.utcnow

    def now(self) -> datetime:
        return self.clock()

    def add(self, session: QRSession) -> None:
        with self._lock:
            self._purge_locked(self.now())
            self._sessions[session.session_id] = session

    def get(self, session_id: str) -> Optional[QRSession]:
        """Return a snapshot of the session, or None."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            return replace(session, attendees=list(session.attendees))

    def add_attendee(self, session_id: str, attendee: Attendee) -> bool:
        """Append an attendee; False if the student is already present."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError()
            if session.has_attendee(attendee.student_id):
                return False
            session.attendees.append(attendee)
            return True

    def remove_attendee(self, session_id: str, student_id: str) -> None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                session.attendees = [a for a in session.attendees if a.student_id != student_id]

    def close(self, session_id: str) -> Optional[QRSession]:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            session.closed = True
            return replace(session, attendees=list(session.attendees))

    def purge_expired(self, now: datetime = None) -> int:
        with self._lock:
            return self._purge_locked(now or self.now())

    def _purge_locked(self, now: datetime) -> int:
        cutoff = now - self.retention
        stale = [sid for sid, s in self._sessions.items() if s.expires_at < cutoff]
        for sid in stale:
            del self._sessions[sid]
        return len(stale)

    def __len__(self) -> int:
        return len(self._sessions)

class RedisSessionStore:
    """Session store shared through Redis."""

    def __init__(self, client, retention_seconds: int = 3600,
                 clock: Callable[[], datetime] = None, prefix: str = 'qr:session:'):
        self.client = client
        self.retention = timedelta(seconds=retention_seconds)
        self.clock = clock or datetime.utcnow
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, **kwargs) -> 'RedisSessionStore':
        return cls(redis.Redis.from_url(url, decode_responses=True), **kwargs)

    def now(self) -> datetime:
        return self.clock()

    def _key(self, session_id: str) -> str:
        return f"{self.prefix}{session_id}"

    def _attendees_key(self, session_id: str) -> str:
        return f"{self.prefix}{session_id}:attendees"

    def _ttl_for(self, session: QRSession) -> int:
        remaining = (session.expires_at - self.now()) + self.retention
        return max(1, math.ceil(remaining.total_seconds()))

    def add(self, session: QRSession) -> None:
        self.client.set(
            self._key(session.session_id),
            json.dumps(session.to_record()),
            ex=self._ttl_for(session)
        )

    def get(self, session_id: str) -> Optional[QRSession]:
        raw = self.client.get(self._key(session_id))
        if raw is None:
            return None

        attendees = [
            Attendee.from_record(json.loads(value))
            for value in self.client.hvals(self._attendees_key(session_id))
        ]
        attendees.sort(key=lambda a: a.marked_at)
        return QRSession.from_record(json.loads(raw), attendees)

    def add_attendee(self, session_id: str, attendee: Attendee) -> bool:
        key = self._key(session_id)
        ttl = self.client.ttl(key)
        if ttl is None or ttl == -2:
            raise SessionNotFoundError()

        attendees_key = self._attendees_key(session_id)
        claimed = self.client.hsetnx(attendees_key, attendee.student_id, json.dumps(attendee.to_dict()))
        if claimed and ttl > 0:
            self.client.expire(attendees_key, ttl)
        return bool(claimed)

    def remove_attendee(self, session_id: str, student_id: str) -> None:
        self.client.hdel(self._attendees_key(session_id), student_id)

    def close(self, session_id: str) -> Optional[QRSession]:
        session = self.get(session_id)
        if session is None:
            return None
        session.closed = True
        self.client.set(self._key(session_id), json.dumps(session.to_record()), keepttl=True)
        return session

    def purge_expired(self, now: datetime = None) -> int:
        # Keys carry their own TTL
        return 0

def init_session_store(app: Flask):
    """Build the configured session store and attach it to the app."""
    backend = app.config.get('QR_SESSION_BACKEND', 'memory')
    retention = app.config.get('QR_SESSION_RETENTION_SECONDS', 3600)

    if backend == 'redis':
        url = app.config.get('REDIS_URL')
        if not url:
            raise RuntimeError('QR_SESSION_BACKEND=redis requires REDIS_URL')
        store = RedisSessionStore.from_url(url, retention_seconds=retention)
    elif backend == 'memory':
        store = MemorySessionStore(retention_seconds=retention)
    else:
        raise RuntimeError(f'Unknown QR_SESSION_BACKEND: {backend}')

    app.extensions[EXTENSION_KEY] = store
    app.logger.info('QR session store: %s', backend)
    return store

def get_session_store():
    """Session store of the current app."""
    return current_app.extensions[EXTENSION_KEY]
