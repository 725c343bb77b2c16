"""
Time-ordered record identifiers.

Identifiers are ULIDs: 26 characters of Crockford base32, a 48-bit
millisecond timestamp followed by 80 random bits. The random part makes ids
globally unique across processes without coordination; the timestamp prefix
makes them sort by creation time.

Within one process ids are strictly increasing: when two ids fall in the
same millisecond (or the clock steps backwards) the previous random part is
incremented instead of drawn again.

Examples:
    >>> a, b = new_id(), new_id()
    >>> len(a), a < b
    (26, True)

Tags:
    ulid, unique-id, redmap
"""

from __future__ import annotations

import secrets
import threading
import time

# ULID base32 alphabet (Crockford's)
_ENCODING = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_ENCODING_LEN = len(_ENCODING)

_RANDOM_BITS = 80
_RANDOM_MAX = (1 << _RANDOM_BITS) - 1

_lock = threading.Lock()
_last_ms = -1
_last_random = 0


def _encode_base32(value: int, length: int) -> str:
    """Encode integer to base32 string of fixed length."""
    result = []
    for _ in range(length):
        result.append(_ENCODING[value % _ENCODING_LEN])
        value //= _ENCODING_LEN
    return "".join(reversed(result))


def new_id() -> str:
    """Generate a new monotonic ULID string."""
    global _last_ms, _last_random

    with _lock:
        now_ms = int(time.time() * 1000)
        if now_ms <= _last_ms:
            now_ms = _last_ms
            _last_random += 1
            if _last_random > _RANDOM_MAX:
                # Random space exhausted for this millisecond; borrow the next one.
                now_ms += 1
                _last_random = secrets.randbits(_RANDOM_BITS - 1)
        else:
            _last_random = secrets.randbits(_RANDOM_BITS - 1)
        _last_ms = now_ms

        return _encode_base32(now_ms, 10) + _encode_base32(_last_random, 16)


def id_timestamp_ms(record_id: str) -> int:
    """Return the millisecond timestamp embedded in a ULID."""
    value = 0
    for char in record_id[:10].upper():
        value = value * _ENCODING_LEN + _ENCODING.index(char)
    return value


__all__ = ["new_id", "id_timestamp_ms"]
