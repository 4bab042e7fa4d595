"""Parsers for the CLI list syntax.

Lists are separated by `;` or `,`, e.g. `12:Alice;bob:Bob` for users and
`101,102` for contests. Errors are raised as `InputError` so the CLI can
report them before any request is made.
"""

from __future__ import annotations

import math
import re

from core.domain.models import Action, UserSpec
from core.errors import InputError

_LIST_SEPARATORS = re.compile(r"[;,]")

_NUMBER = r"(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)"
_INTEGER = re.compile(r"[+-]?[0-9]+")
_BARE_SECONDS = re.compile(r"[+-]?" + _NUMBER)
_DURATION_PART = re.compile("(" + _NUMBER + ")(ns|us|µs|μs|ms|s|m|h)")

_DURATION_UNITS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def split_list(raw: str) -> list[str]:
    """Split on `;`/`,`, trim and drop empty items."""

    return [item.strip() for item in _LIST_SEPARATORS.split(raw or "") if item.strip()]


def _parse_int(token: str) -> int | None:
    # ASCII base-10 only: int() also accepts "1_000" and non-ASCII digits.
    if not _INTEGER.fullmatch(token):
        return None
    return int(token)


def parse_users(raw: str) -> list[UserSpec]:
    items = split_list(raw)
    if not items:
        raise InputError("user list is empty")

    users: list[UserSpec] = []
    for item in items:
        if ":" not in item:
            raise InputError(f"invalid user specification '{item}'")

        ident, name = (part.strip() for part in item.split(":", 1))
        if not ident:
            raise InputError(f"user identifier is empty in '{item}'")
        if not name:
            raise InputError(f"user name is empty in '{item}'")

        users.append(UserSpec(id=_parse_int(ident), login=ident, name=name))
    return users


def parse_contest_ids(raw: str) -> list[int]:
    items = split_list(raw)
    if not items:
        raise InputError("contest list is empty")

    ids: list[int] = []
    for item in items:
        contest_id = _parse_int(item)
        if contest_id is None:
            raise InputError(f"invalid contest ID '{item}'")
        ids.append(contest_id)
    return ids


def parse_action(raw: str) -> Action:
    """Case-insensitive `register` / `unregister`."""

    try:
        return Action((raw or "").strip().lower())
    except ValueError as exc:
        raise InputError(f"unsupported action '{raw}'") from exc


def parse_duration(raw: str) -> float:
    """Parse a timeout such as `15s`, `500ms` or `1m30s` into seconds.

    A bare number is taken as seconds. Zero or negative values are rejected.
    """

    text = (raw or "").strip()
    if not text:
        raise InputError("timeout is empty")

    if _BARE_SECONDS.fullmatch(text):
        seconds = float(text)
    else:
        pos = 0
        seconds = 0.0
        while pos < len(text):
            match = _DURATION_PART.match(text, pos)
            if match is None:
                raise InputError(f"invalid duration '{raw}'")
            seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
            pos = match.end()

    if not math.isfinite(seconds) or seconds <= 0:
        raise InputError(f"timeout must be positive, got '{raw}'")
    return seconds
