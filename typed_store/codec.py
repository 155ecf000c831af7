"""
Codec: typed scalar coercion and whole-map blob serialization.

Blob format is a compact UTF-8 JSON object. Known keys come first in schema
declaration order, keys unknown to the schema follow in sorted order with their
raw JSON values, so encode(decode(b)) == b for any blob this module produced.
"""

from __future__ import annotations

import enum
import json
import logging
import math
import re
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Iterable, Mapping, Optional, Union

import numpy as np
import pandas as pd

from typed_store import config
from typed_store.core.errors import CoercionError, DecodeError, DisallowedValueError

if TYPE_CHECKING:
    from typed_store.schema import StoreSchema

logger = logging.getLogger(__name__)

Blob = Union[bytes, bytearray, memoryview, str, None]


class AttributeType(enum.Enum):
    """Supported attribute types; value is the declaration token."""

    BOOLEAN = "boolean"
    STRING = "string"
    INTEGER = "integer"
    TEXT = "text"
    FLOAT = "float"
    DATETIME = "datetime"

    @classmethod
    def tokens(cls) -> list[str]:
        return [t.value for t in cls]


_TRUE_TOKENS = frozenset({"true", "t", "yes", "y", "on", "1"})
_FALSE_TOKENS = frozenset({"false", "f", "no", "n", "off", "0"})
_TEXTUAL = (AttributeType.STRING, AttributeType.TEXT)
# Date part of an ISO-8601 timestamp, extended or basic form
_ISO_DATE_RE = re.compile(r"^[+-]?\d{4}-?\d{2}-?\d{2}")


# ---------------------------------------------------------------------------
# Scalar coercion
# ---------------------------------------------------------------------------


def _to_boolean(raw: Any) -> bool:
    if isinstance(raw, (bool, np.bool_)):
        return bool(raw)
    if isinstance(raw, (int, np.integer)) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        token = raw.strip().lower()
        if token in _TRUE_TOKENS:
            return True
        if token in _FALSE_TOKENS:
            return False
    raise ValueError(raw)


def _to_integer(raw: Any) -> int:
    if isinstance(raw, (bool, np.bool_)):
        return int(raw)
    if isinstance(raw, (int, np.integer)):
        return int(raw)
    if isinstance(raw, (float, np.floating, Decimal)):
        if not math.isfinite(raw) or raw != int(raw):
            raise ValueError(raw)
        return int(raw)
    if isinstance(raw, str):
        text = raw.strip()
        try:
            return int(text)
        except ValueError:
            return _to_integer(float(text))
    raise ValueError(raw)


def _to_float(raw: Any) -> float:
    if isinstance(raw, (bool, np.bool_)):
        raise ValueError(raw)
    if isinstance(raw, (int, float, np.integer, np.floating, Decimal)):
        value = float(raw)
    elif isinstance(raw, str):
        value = float(raw.strip())
    else:
        raise ValueError(raw)
    if not np.isfinite(value):
        raise ValueError(raw)
    return value


def _to_string(raw: Any) -> str:
    if isinstance(raw, str):
        # Lone surrogates cannot be stored as UTF-8
        raw.encode("utf-8")
        return raw
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode("utf-8")
    if isinstance(raw, (bool, int, float, Decimal, np.generic)):
        return str(raw.item() if isinstance(raw, np.generic) else raw)
    raise ValueError(raw)


def _to_datetime(raw: Any) -> datetime:
    if isinstance(raw, (bool, np.bool_)):
        raise ValueError(raw)
    if isinstance(raw, datetime):
        value = raw
    elif isinstance(raw, date):
        value = datetime(raw.year, raw.month, raw.day)
    elif isinstance(raw, (int, float, np.integer, np.floating)):
        value = datetime.fromtimestamp(float(raw), tz=timezone.utc)
    elif isinstance(raw, str):
        value = _parse_iso(raw.strip())
    elif isinstance(raw, np.datetime64):
        value = pd.Timestamp(raw).to_pydatetime()
    else:
        raise ValueError(raw)
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_iso(text: str) -> datetime:
    """ISO-8601 text only; pandas handles the forms fromisoformat rejects (e.g. nanoseconds)."""
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    if not _ISO_DATE_RE.match(text):
        raise ValueError(text)
    ts = pd.to_datetime(text, format="ISO8601", utc=True)
    if pd.isna(ts):
        raise ValueError(text)
    return ts.to_pydatetime()


def _is_missing_timestamp(raw: Any) -> bool:
    if raw is pd.NaT:
        return True
    return isinstance(raw, np.datetime64) and bool(np.isnat(raw))


_COERCERS = {
    AttributeType.BOOLEAN: _to_boolean,
    AttributeType.STRING: _to_string,
    AttributeType.TEXT: _to_string,
    AttributeType.INTEGER: _to_integer,
    AttributeType.FLOAT: _to_float,
    AttributeType.DATETIME: _to_datetime,
}


def coerce(raw: Any, type: AttributeType, attribute: Optional[str] = None) -> Any:
    """
    Convert raw input into the canonical in-memory value for type.
    None, NaT and "" (for non-textual types) become None.
    Raises CoercionError when raw cannot be interpreted as type.
    """
    if raw is None or _is_missing_timestamp(raw):
        return None
    if type not in _TEXTUAL and isinstance(raw, str) and not raw.strip():
        return None
    try:
        return _COERCERS[type](raw)
    except (ValueError, TypeError, OverflowError, ArithmeticError, OSError) as exc:
        raise CoercionError(attribute, type, raw) from exc


def validate_allowed(value: Any, allowed: Optional[Iterable[Any]], attribute: Optional[str] = None) -> None:
    """Raise DisallowedValueError if allowed is set and does not contain value. None always passes."""
    if allowed is None or value is None:
        return
    if value not in allowed:
        raise DisallowedValueError(attribute, value, allowed)


# ---------------------------------------------------------------------------
# Blob serialization
# ---------------------------------------------------------------------------


def _dump_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def encode_map(values: Mapping[str, Any], schema: "StoreSchema") -> bytes:
    """
    Serialize an attribute map into one deterministic blob.
    Only keys present in values are written; absent schema keys stay absent.
    """
    ordered: Dict[str, Any] = {}
    for name in schema.attributes:
        if name in values:
            ordered[name] = _dump_value(values[name])
    for name in sorted(k for k in values if k not in schema.attributes):
        ordered[name] = values[name]
    text = json.dumps(ordered, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    return text.encode("utf-8")


def _blob_text(blob: Blob) -> str:
    if isinstance(blob, str):
        return blob
    if isinstance(blob, (bytes, bytearray, memoryview)):
        try:
            return bytes(blob).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"Blob is not valid UTF-8: {exc}") from exc
    raise DecodeError(f"Unsupported blob type: {type(blob).__name__}")


def _reject_constant(token: str) -> Any:
    raise DecodeError(f"Non-finite number {token} in blob")


def decode_map(blob: Blob, schema: "StoreSchema", strict: Optional[bool] = None) -> Dict[str, Any]:
    """
    Inverse of encode_map. Empty/None blobs decode to {}.
    Unknown keys are kept verbatim. A stored value that no longer coerces to its
    declared type raises CoercionError when strict, else is dropped (default applies).
    """
    if blob is None:
        return {}
    text = _blob_text(blob)
    if not text.strip():
        return {}
    try:
        raw = json.loads(text, parse_constant=_reject_constant)
    except (json.JSONDecodeError, DecodeError) as exc:
        raise DecodeError(f"Store '{schema.name}' blob is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise DecodeError(f"Store '{schema.name}' blob must encode an object, got {type(raw).__name__}")
    if strict is None:
        strict = config.strict_decode()

    out: Dict[str, Any] = {}
    for name, stored in raw.items():
        definition = schema.attributes.get(name)
        if definition is None:
            out[name] = stored
            continue
        try:
            out[name] = coerce(stored, definition.type, attribute=name)
        except CoercionError:
            if strict:
                raise
            logger.warning(
                "Dropping stored value %r for %s.%s: not a valid %s",
                stored,
                schema.name,
                name,
                definition.type.value,
            )
    return out


__all__ = [
    "AttributeType",
    "Blob",
    "coerce",
    "decode_map",
    "encode_map",
    "validate_allowed",
]
