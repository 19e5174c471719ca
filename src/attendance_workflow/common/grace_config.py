"""Bounded operational knobs read from the environment.

Invalid values never raise: a misconfigured knob silently falls back to its
default so the grace window can never become negative or open-ended.
"""

from __future__ import annotations

import os
import re
from datetime import timedelta
from typing import Mapping, Optional

from ..core.constants import ADJUST_REQUEST_MAX_DAYS, CHECKOUT_GRACE_HOURS

_DIGITS_RE = re.compile(r"^\d+$")


def read_int_env(
    name: str,
    default: int,
    *,
    min_value: int = 0,
    max_value: int | None = None,
    environ: Optional[Mapping[str, str]] = None,
) -> int:
    env = os.environ if environ is None else environ
    raw = env.get(name)
    if raw is None or raw == "":
        return default

    # Reject trailing garbage such as "12abc" or "12.5"
    raw = raw.strip()
    if not _DIGITS_RE.match(raw):
        return default

    value = int(raw)
    if value < min_value or (max_value is not None and value > max_value):
        return default
    return value


def checkout_grace_hours(environ: Optional[Mapping[str, str]] = None) -> int:
    default, lo, hi = CHECKOUT_GRACE_HOURS
    return read_int_env("CHECKOUT_GRACE_HOURS", default, min_value=lo, max_value=hi, environ=environ)


def checkout_grace_ms(environ: Optional[Mapping[str, str]] = None) -> int:
    return checkout_grace_hours(environ) * 60 * 60 * 1000


def checkout_grace(environ: Optional[Mapping[str, str]] = None) -> timedelta:
    return timedelta(milliseconds=checkout_grace_ms(environ))


def adjust_request_max_days(environ: Optional[Mapping[str, str]] = None) -> int:
    default, lo, hi = ADJUST_REQUEST_MAX_DAYS
    return read_int_env("ADJUST_REQUEST_MAX_DAYS", default, min_value=lo, max_value=hi, environ=environ)


def adjust_request_max_ms(environ: Optional[Mapping[str, str]] = None) -> int:
    return adjust_request_max_days(environ) * 24 * 60 * 60 * 1000


def adjust_request_max(environ: Optional[Mapping[str, str]] = None) -> timedelta:
    return timedelta(milliseconds=adjust_request_max_ms(environ))
