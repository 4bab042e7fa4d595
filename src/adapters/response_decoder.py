"""Decoding of `change-registration` replies.

ejudge answers with JSON, but when something breaks on its side the same
JSON often comes back wrapped in an HTML error page (usually inside a
`<pre>` block) with `Content-Type: text/html`. `find_embedded_json` digs the
payload out of such pages so the real server error can be reported.
"""

from __future__ import annotations

import html
import json
import re

from pydantic import ValidationError

from core.domain.models import RegistrationReply
from core.errors import ContentTypeError, DecodeError

JSON_MEDIA_TYPES = frozenset({"application/json", "text/json", "application/problem+json"})

MAX_PREVIEW = 200

# Tags whose content is never scanned for JSON (CSS rules and JS objects
# are brace-balanced too).
_SKIPPED_TAGS = ("style", "script")
_SKIPPED_OPEN = re.compile(r"<(style|script)(?=[\s/>]|$)", re.IGNORECASE)
_SKIPPED_CLOSE = {tag: re.compile(rf"</{tag}[^>]*>", re.IGNORECASE) for tag in _SKIPPED_TAGS}

_CLOSERS = {"}": "{", "]": "["}


def truncate_preview(text: str, limit: int = MAX_PREVIEW) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def media_type(content_type: str | None) -> str:
    """`text/html; charset=utf-8` -> `text/html`."""

    return (content_type or "").split(";", 1)[0].strip().lower()


def is_json_content_type(content_type: str | None) -> bool:
    return media_type(content_type) in JSON_MEDIA_TYPES


def _skip_tag_content(text: str, pos: int) -> int | None:
    """Index just past `</style>`/`</script>` when `pos` opens one of them.

    Returns `pos` unchanged when no skipped tag starts there and `None` when
    the element is never closed.
    """

    match = _SKIPPED_OPEN.match(text, pos)
    if match is None:
        return pos
    close = _SKIPPED_CLOSE[match.group(1).lower()].search(text, match.end())
    return close.end() if close is not None else None


def find_embedded_json(text: str) -> str | None:
    """Return the first balanced top-level `{...}` or `[...]` in `text`.

    Content of `<style>` and `<script>` elements is skipped. Braces inside
    JSON strings do not count towards the balance.

    Single pass: when the outer candidate breaks (mismatched closer or end of
    text), the earliest-starting pair already closed inside it is returned;
    otherwise scanning resumes after the offending closer.
    """

    stack: list[tuple[str, int]] = []
    earliest: tuple[int, int] | None = None
    in_string = False
    escaped = False
    i = 0
    while i < len(text):
        ch = text[i]
        if not stack:
            if ch == "<":
                end = _skip_tag_content(text, i)
                if end is None:
                    return None
                if end != i:
                    i = end
                    continue
            elif ch in "{[":
                stack.append((ch, i))
                earliest = None
        elif in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch in "{[":
            stack.append((ch, i))
        elif ch in _CLOSERS:
            opener, opened_at = stack[-1]
            if opener != _CLOSERS[ch]:
                if earliest is not None:
                    return text[earliest[0]:earliest[1]]
                stack.clear()
            else:
                stack.pop()
                if not stack:
                    return text[opened_at:i + 1]
                if earliest is None or opened_at < earliest[0]:
                    earliest = (opened_at, i + 1)
        i += 1

    if stack and earliest is not None:
        return text[earliest[0]:earliest[1]]
    return None


def decode_reply(body: bytes, content_type: str | None, status: str) -> RegistrationReply:
    """Decode a reply body into `RegistrationReply`.

    `status` (e.g. `200 OK`) only feeds error messages.
    """

    text = body.decode("utf-8", errors="replace")
    payload = text

    if (content_type or "").strip() and not is_json_content_type(content_type):
        fragment = find_embedded_json(text)
        if fragment is None:
            raise ContentTypeError(
                f"unexpected response content type '{content_type}' (status {status}): "
                f"{truncate_preview(text)}"
            )
        if "&quot;" in fragment and '"' not in fragment:
            fragment = html.unescape(fragment)
        payload = fragment

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"decoding response: {exc}") from exc

    try:
        return RegistrationReply.model_validate(data)
    except ValidationError as exc:
        raise DecodeError(f"decoding response: {exc}") from exc
