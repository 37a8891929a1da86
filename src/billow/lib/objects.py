"""
Object utilities for hashing.

Provides stable hashes for parameter tuples, used as cache-equivalence
keys.
"""

import hashlib
import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any


class HashResult:
    """Wrapper around a sha256 digest."""

    def __init__(self, data: bytes) -> None:
        self._hash = hashlib.sha256(data)

    def hexdigest(self) -> str:
        """Return the hexadecimal digest of the hash."""
        return self._hash.hexdigest()


def hash(obj: Any) -> HashResult:
    """
    Create a stable hash of an object or list of objects.

    Objects are serialized to JSON with sorted keys before hashing so that
    equal values hash equally across sessions.

    Args:
        obj: Any JSON-serializable object; decimals, dates and enums are
            converted to strings.

    Returns:
        HashResult instance with hexdigest() method.
    """
    json_str = json.dumps(obj, sort_keys=True, default=_default_serializer)
    return HashResult(json_str.encode("utf-8"))


def _default_serializer(obj: Any) -> Any:
    """Serialize types that the json module does not handle natively."""
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    return str(obj)
