"""
Canonical byte encodings for snapshots, commitments and signed calls.

Every hash in the venue is taken over `domain_sep_bytes(label, version)`
followed by a canonical JSON payload, so two encodings of the same value can
never disagree and a digest from one context cannot be replayed in another.
"""

from __future__ import annotations

import hashlib
import json
import string
from typing import Any, List, Tuple


DOMAIN_PREFIX = b"swaptrade"

_HEX_DIGITS = frozenset(string.hexdigits)


def _check_encodable(value: Any) -> None:
    """Reject floats anywhere in the tree and non-string object keys."""
    pending: List[Tuple[str, Any]] = [("$", value)]
    while pending:
        path, item = pending.pop()
        if isinstance(item, float):
            raise TypeError(f"float at {path} has no canonical encoding")
        if isinstance(item, dict):
            for k, v in item.items():
                if not isinstance(k, str):
                    raise TypeError(f"object key at {path} must be a str, got {type(k).__name__}")
                pending.append((f"{path}.{k}", v))
        elif isinstance(item, (list, tuple)):
            pending.extend((f"{path}[{i}]", v) for i, v in enumerate(item))


def canonical_json_bytes(value: Any) -> bytes:
    """UTF-8 JSON with sorted keys and no whitespace. Integers are exact; floats are refused."""
    _check_encodable(value)
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False).encode(
        "utf-8"
    )


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """`swaptrade:<label>:v<version>` terminated by NUL."""
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if "\x00" in label or not label.isascii():
        raise ValueError(f"label must be NUL-free ASCII: {label!r}")
    if not isinstance(version, int) or isinstance(version, bool) or version < 1:
        raise ValueError(f"version must be a positive int: {version!r}")
    return b"%s:%s:v%d\x00" % (DOMAIN_PREFIX, label.encode("ascii"), version)


def domain_digest(label: str, payload: bytes, version: int = 1) -> bytes:
    """SHA-256 of the domain prefix followed by `payload`."""
    return hashlib.sha256(domain_sep_bytes(label, version) + payload).digest()


def hex_to_bytes_fixed(hex_str: str, *, nbytes: int, name: str) -> bytes:
    """Decode exactly `nbytes` bytes of hex, with or without a 0x prefix."""
    if not isinstance(hex_str, str):
        raise TypeError(f"{name} must be a str")
    body = hex_str[2:] if hex_str[:2] in ("0x", "0X") else hex_str
    if len(body) != 2 * nbytes:
        raise ValueError(f"{name} must be {nbytes} bytes, got {len(body)} hex chars")
    if not _HEX_DIGITS.issuperset(body):
        raise ValueError(f"{name} is not hex")
    return bytes.fromhex(body)
