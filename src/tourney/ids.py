"""
Identifier and clock helpers.
"""
import secrets
import string
from datetime import datetime, timezone

_ALPHABET = string.digits + string.ascii_lowercase


def uid(prefix: str = 'id') -> str:
    """Return a random opaque identifier like 'm_k3j9x0a'."""
    suffix = ''.join(secrets.choice(_ALPHABET) for _ in range(7))
    return f"{prefix}_{suffix}"


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def parse_iso(value: str) -> datetime:
    """Parse an ISO timestamp, treating naive values as UTC."""
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
