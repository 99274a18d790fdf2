"""Validation utilities for the application."""
import re
from typing import Dict, List, Any, Optional, Tuple

from qr_attendance.utils.errors import ValidationError

class Validator:
    """Validation helper class."""

    @staticmethod
    def validate_email(email: str) -> bool:
        """Validate email format."""
        if not email:
            return False
        pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        return bool(re.match(pattern, email))

    @staticmethod
    def validate_required_fields(data: Dict, required_fields: List[str]) -> Dict[str, Any]:
        """Validate required fields in data."""
        errors = []

        for field in required_fields:
            value = data.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                errors.append(f"{field} is required")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def require_fields(data: Dict, required_fields: List[str]) -> None:
        """Raise ValidationError when any required field is missing."""
        result = Validator.validate_required_fields(data, required_fields)
        if not result['is_valid']:
            raise ValidationError('; '.join(result['errors']), fields=required_fields)

    @staticmethod
    def validate_coordinates(latitude, longitude) -> Optional[Tuple[float, float]]:
        """Return (lat, lng) as floats, or None when neither is given."""
        if latitude is None and longitude is None:
            return None
        if latitude is None or longitude is None:
            raise ValidationError("Both latitude and longitude are required")

        try:
            lat, lng = float(latitude), float(longitude)
        except (TypeError, ValueError):
            raise ValidationError("Coordinates must be numbers")

        if not (-90 <= lat <= 90 and -180 <= lng <= 180):
            raise ValidationError("Coordinates are out of range")

        return lat, lng

    @staticmethod
    def validate_expiry(value, default: int, minimum: int, maximum: int) -> int:
        """Parse a session lifetime in seconds, clamped to the allowed range."""
        if value is None:
            return default
        if isinstance(value, bool):
            raise ValidationError("expiresIn must be a number of seconds")
        try:
            seconds = int(value)
        except (TypeError, ValueError):
            raise ValidationError("expiresIn must be a number of seconds")

        return max(minimum, min(seconds, maximum))
