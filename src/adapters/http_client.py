"""httpx wrapper.

Why a wrapper:
- Standardises timeouts, headers and TLS policy for every request.
- Eases testing: tests inject an `httpx.MockTransport`.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings, load_settings
from core.errors import UnsupportedOptionError

# Schemes left untouched by `normalize_authorization_header` even without
# credentials after them.
_KNOWN_SCHEMES = ("bearer", "basic", "token", "digest", "negotiate")


def build_client(
    settings: AppSettings | None = None,
    *,
    timeout: float | None = None,
    insecure: bool = False,
    transport: httpx.BaseTransport | None = None,
    extra_headers: dict[str, str] | None = None,
) -> httpx.Client:
    """Create a sync `httpx.Client` with safe defaults.

    Requests are issued sequentially, so a single blocking client is reused
    for the whole batch.

    `insecure` disables certificate verification. When a custom transport is
    injected it must be a plain `httpx.HTTPTransport`, otherwise TLS settings
    cannot be applied and `UnsupportedOptionError` is raised.
    """

    settings = settings or load_settings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)

    if insecure and transport is not None:
        if not isinstance(transport, httpx.HTTPTransport):
            raise UnsupportedOptionError(
                f"transport {type(transport).__name__} does not support disabling TLS verification; "
                "cannot enable the insecure option"
            )
        transport = httpx.HTTPTransport(verify=False)

    return httpx.Client(
        timeout=httpx.Timeout(timeout if timeout is not None else settings.http_timeout_seconds),
        headers=headers,
        verify=not insecure,
        transport=transport,
    )


def normalize_authorization_header(value: str) -> str:
    """Normalise a raw Authorization header value.

    - empty stays empty;
    - `<scheme> <credentials>` (any scheme, any case) is kept as is;
    - `Bearer<token>` missing its space becomes `Bearer <token>`;
    - a bare token becomes `Bearer <token>`.
    """

    value = (value or "").strip()
    if not value:
        return ""
    if any(ch.isspace() for ch in value):
        return value

    lowered = value.lower()
    if lowered in _KNOWN_SCHEMES:
        return value
    if lowered.startswith("bearer"):
        return f"Bearer {value[len('bearer'):]}"
    return f"Bearer {value}"
