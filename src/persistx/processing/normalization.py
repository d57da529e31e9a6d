"""Recursive payload cleaning applied before mapping."""

from __future__ import annotations

import re
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict

from persistx.processing.values import UNDEFINED, is_plain_object

if TYPE_CHECKING:
    from persistx.settings import Settings

_DATE_PREFIX = re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})(.*)$", re.DOTALL)


class NormalizeOptions(BaseModel):
    """Normalization switches."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    trim_strings: bool = True
    coerce_dates_to_iso: bool = True
    drop_undefined: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> NormalizeOptions:
        """Build options from runtime settings.

        Args:
            settings (Settings): Runtime settings.

        Returns:
            NormalizeOptions: Options mirroring the settings switches.
        """
        return cls(
            trim_strings=settings.trim_strings,
            coerce_dates_to_iso=settings.coerce_dates_to_iso,
            drop_undefined=settings.drop_undefined,
        )


def normalize_payload(payload: object, options: NormalizeOptions | None = None) -> dict[str, Any]:
    """Normalize a payload recursively.

    Strings are trimmed, dates and date-like strings become ISO-8601 UTC
    timestamps, and undefined object values are dropped, each according to
    `options`. Arrays are normalized element-wise and never shrink.

    Args:
        payload (object): Raw payload.
        options (NormalizeOptions | None): Switches, all enabled by default.

    Returns:
        dict[str, Any]: Normalized payload; `{}` when the input is not an object.
    """
    normalized = _normalize_value(payload, options or NormalizeOptions())
    return normalized if is_plain_object(normalized) else {}


def _normalize_value(value: Any, options: NormalizeOptions) -> Any:
    if value is UNDEFINED:
        return UNDEFINED

    if isinstance(value, date):
        return to_iso_string(value) if options.coerce_dates_to_iso else value

    if isinstance(value, str):
        text = value.strip() if options.trim_strings else value
        if options.coerce_dates_to_iso:
            parsed = parse_date_like(text)
            if parsed is not None:
                return to_iso_string(parsed)
        return text

    if isinstance(value, list | tuple):
        return [_normalize_value(item, options) for item in value]

    if is_plain_object(value):
        out: dict[str, Any] = {}
        for key, item in value.items():
            normalized = _normalize_value(item, options)
            if normalized is UNDEFINED and options.drop_undefined:
                continue
            out[key] = normalized
        return out

    return value


def parse_date_like(text: str) -> datetime | None:
    """Parse a string only when it clearly looks like a date.

    A string qualifies when it starts with `YYYY-M-D` / `YYYY/M/D`, or contains
    a `T` together with a `-`, `/` or trailing `Z`, and it parses as a valid
    date. Everything else is left alone so ordinary text is never rewritten.

    Args:
        text (str): Candidate string.

    Returns:
        datetime | None: Parsed timestamp, or None when the string is not date-like.
    """
    match = _DATE_PREFIX.match(text)
    if match:
        year, month, day, rest = int(match[1]), int(match[2]), int(match[3]), match[4]
        try:
            if not rest:
                return datetime(year, month, day, tzinfo=UTC)
            return datetime.fromisoformat(f"{year:04d}-{month:02d}-{day:02d}{rest}")
        except ValueError:
            return None

    if "T" in text and ("-" in text or "/" in text or text.endswith("Z")):
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None
    return None


def to_iso_string(value: date) -> str:
    """Render a date or datetime as `YYYY-MM-DDTHH:MM:SS.mmmZ` in UTC.

    Naive datetimes are taken to be UTC already.

    Args:
        value (date): Date or datetime.

    Returns:
        str: ISO-8601 timestamp with millisecond precision.
    """
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day, tzinfo=UTC)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    else:
        value = value.astimezone(UTC)
    return f"{value:%Y-%m-%dT%H:%M:%S}.{value.microsecond // 1000:03d}Z"
