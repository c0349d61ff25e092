"""
Identifier and random code generation.

Ids are time-ordered: eight base36 digits of milliseconds since
2000-01-01T00:00:00Z followed by two random base36 digits, so sorting ids
sorts by creation time and the creation instant can be parsed back out.
"""

import secrets
from datetime import datetime, timedelta, timezone

BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"

# Lowercase alphanumerics without 0/o, 1/l/i
UNAMBIGUOUS_CHARS = "23456789abcdefghjkmnpqrstuvwxyz"

EPOCH = datetime(2000, 1, 1, tzinfo=timezone.utc)

_TIME_LENGTH = 8
_RANDOM_LENGTH = 2


def _to_base36(value: int, length: int) -> str:
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36[remainder])
    return "".join(reversed(digits)).rjust(length, "0")


def generate_id(at: datetime) -> str:
    """
    Generate a time-ordered id for the given instant.

    Args:
        at: Timezone-aware creation instant (must not predate EPOCH)

    Returns:
        10-character id string
    """
    millis = (at - EPOCH) // timedelta(milliseconds=1)
    if millis < 0:
        raise ValueError(f"Cannot generate id before {EPOCH.isoformat()}")
    suffix = "".join(secrets.choice(BASE36) for _ in range(_RANDOM_LENGTH))
    return _to_base36(millis, _TIME_LENGTH) + suffix


def parse_id(id_: str) -> datetime:
    """Return the creation instant embedded in an id from generate_id()."""
    if len(id_) != _TIME_LENGTH + _RANDOM_LENGTH:
        raise ValueError(f"Malformed id: {id_!r}")
    millis = int(id_[:_TIME_LENGTH], 36)
    return EPOCH + timedelta(milliseconds=millis)


def secure_random_string(length: int, chars: str = UNAMBIGUOUS_CHARS) -> str:
    """
    Generate a cryptographically secure random string.

    Uses secrets module so codes cannot be predicted from earlier ones.
    """
    return "".join(secrets.choice(chars) for _ in range(length))
