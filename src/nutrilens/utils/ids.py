"""ID utilities."""

from __future__ import annotations

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(n: int) -> str:
    if n == 0:
        return "0"
    digits: list[str] = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def hash_url(url: str) -> str:
    """Return a short, deterministic rolling hash of a URL.

    The hash is the classic `h * 31 + c` string hash kept in signed 32-bit range and rendered
    in base 36, so the same URL always yields the same id.
    """

    h = 0
    for ch in url:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return _to_base36(abs(h))


def format_evidence_id(prefix: str, native_id: str) -> str:
    """Format an evidence id from a source prefix and a source-native id."""

    return f"{prefix}-{native_id}"
