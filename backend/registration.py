"""
KrishiMitra - Consumer and farmer registration.
Validates the sign-up forms and echoes a mocked account back; nothing is stored.
"""
import re
import secrets
import string
from datetime import datetime, timezone
from typing import Any, Dict

from crop_database import to_number

REQUIRED_FIELDS = ("firstName", "lastName", "email", "phone", "address", "city", "state", "pincode")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[0-9]{10}$")
PINCODE_RE = re.compile(r"^[0-9]{6}$")

ID_ALPHABET = string.ascii_lowercase + string.digits


def _field_label(field: str) -> str:
    return field[0].upper() + field[1:]


def _mock_id(prefix: str) -> str:
    return prefix + "".join(secrets.choice(ID_ALPHABET) for _ in range(9))


def validate_contact(data: Any) -> None:
    """Required fields and email / phone / PIN formats. Raises ValueError on the first problem."""
    if not isinstance(data, dict):
        raise ValueError("Invalid registration data")
    for field in REQUIRED_FIELDS:
        if not data.get(field):
            raise ValueError(f"{_field_label(field)} is required")
    if not EMAIL_RE.match(str(data["email"])):
        raise ValueError("Please enter a valid email address")
    if not PHONE_RE.match(str(data["phone"])):
        raise ValueError("Please enter a valid 10-digit phone number")
    if not PINCODE_RE.match(str(data["pincode"])):
        raise ValueError("Please enter a valid 6-digit PIN code")


def _registered(prefix: str, data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "message": "Registration successful",
        "data": {
            "id": _mock_id(prefix),
            **data,
            "createdAt": datetime.now(timezone.utc).isoformat(),
        },
    }


def register_consumer(data: Any) -> Dict[str, Any]:
    validate_contact(data)
    return _registered("CONSUMER_", data)


def register_farmer(data: Any) -> Dict[str, Any]:
    """Farmer form: consumer contact fields plus optional farmSize (acres) and primaryCrop."""
    validate_contact(data)
    farm_size = data.get("farmSize")
    if farm_size not in (None, ""):
        size = to_number(farm_size)
        if size is None or size < 0:
            raise ValueError("Farm size must be a non-negative number")
    return _registered("FARMER_", data)
