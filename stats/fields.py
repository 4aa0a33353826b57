"""
stats/fields.py

Field-resolution primitives shared by the normalizer and by company ID
resolution.

Backend payloads name the same concept differently depending on the
endpoint (``invoiceNumber`` vs ``purchaseNumber`` vs ``billNumber``).
Each logical field is therefore resolved through an explicit, ordered
tuple of accessor functions evaluated left to right.  The first value
the acceptance predicate admits wins; otherwise the caller's default is
returned.  Keeping the chains as data makes their precedence testable.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Optional

Accessor = Callable[[Mapping[str, Any]], Any]
Provider = Callable[[], Optional[str]]
Predicate = Callable[[Any], bool]


# ---------------------------------------------------------------------------
# Acceptance predicates
# ---------------------------------------------------------------------------


def is_present(value: Any) -> bool:
    """True for anything except ``None`` and blank strings."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def is_nonzero_number(value: Any) -> bool:
    """
    True for a finite, non-zero numeric value (numeric strings included).

    Amount chains skip zeros so that a later field can still supply the
    figure, matching how the backend leaves unused amount fields at 0.
    """
    number = to_number(value, default=0.0)
    return number != 0.0


# ---------------------------------------------------------------------------
# Accessors
# ---------------------------------------------------------------------------


def key(*path: str) -> Accessor:
    """
    Build an accessor reading a (possibly nested) key path.

    ``key("payment", "dueDate")`` reads ``record["payment"]["dueDate"]`` and
    yields ``None`` when any step is missing or not a mapping.
    """

    def _read(record: Mapping[str, Any]) -> Any:
        current: Any = record
        for step in path:
            if not isinstance(current, Mapping):
                return None
            current = current.get(step)
        return current

    _read.__name__ = "key_" + "_".join(path)
    return _read


def first_of(
    record: Mapping[str, Any],
    accessors: Iterable[Accessor],
    default: Any = None,
    *,
    accept: Predicate = is_present,
) -> Any:
    """
    Return the first accessor value admitted by *accept*, else *default*.
    """
    return resolve_first(
        (lambda accessor=accessor: accessor(record) for accessor in accessors),
        default=default,
        accept=accept,
    )


def resolve_first(
    providers: Iterable[Callable[[], Any]],
    default: Any = None,
    *,
    accept: Predicate = is_present,
) -> Any:
    """
    Evaluate side-effect-free *providers* in order and return the first
    admitted value.

    Providers after the winning one are never called.
    """
    for provider in providers:
        value = provider()
        if accept(value):
            return value.strip() if isinstance(value, str) else value
    return default


# ---------------------------------------------------------------------------
# Coercions
# ---------------------------------------------------------------------------


def is_active_default_true(flag: Any) -> bool:
    """
    Undefined means active: only an explicit ``False`` marks an entity inactive.
    """
    return flag is not False


def to_number(value: Any, default: float = 0.0) -> float:
    """
    Coerce *value* to a finite float, returning *default* when impossible.

    Booleans are not numbers here.  NaN and infinities collapse to
    *default* so that sums never become NaN.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return default
        try:
            number = float(stripped)
        except ValueError:
            return default
    else:
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def to_count(value: Any) -> int:
    """Coerce *value* to a non-negative int; invalid input is zero."""
    return max(0, int(to_number(value, default=0.0)))


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse backend timestamps into timezone-aware UTC datetimes.

    Accepts ISO-8601 strings (``Z`` suffix included), ``datetime``
    instances and epoch milliseconds.  Returns ``None`` for anything
    unparseable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        try:
            parsed = datetime.fromtimestamp(float(value) / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        normalized = text[:-1] + "+00:00" if text.endswith("Z") else text
        try:
            parsed = datetime.fromisoformat(normalized)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def record_id(record: Mapping[str, Any]) -> str:
    """Backend documents carry ``_id``; some endpoints flatten it to ``id``."""
    value = first_of(record, (key("_id"), key("id")), default="")
    return str(value)
