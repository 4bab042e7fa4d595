"""Domain exceptions.

Why a single hierarchy:
- The CLI distinguishes fatal errors (bad input, config) from per-call
  errors that the batch loop aggregates and keeps going.
- Adapters raise typed errors instead of leaking `httpx`/`json` exceptions.
"""

from __future__ import annotations


class EjudgeUsersError(Exception):
    """Base error for the whole tool."""


class InputError(EjudgeUsersError, ValueError):
    """Invalid flag, list or action syntax."""


class ConfigError(EjudgeUsersError):
    """Secrets file or token resolution problem."""


class UnsupportedOptionError(ConfigError):
    """An option was requested that the HTTP transport cannot honour."""


class RegistrationError(EjudgeUsersError):
    """A single change-registration call failed."""


class TransportError(RegistrationError):
    """Network failure or non-2xx HTTP status."""


class ContentTypeError(RegistrationError):
    """Non-JSON response with no recoverable embedded JSON."""


class DecodeError(RegistrationError):
    """The response body is not a valid JSON reply."""


class ApplicationError(RegistrationError):
    """Well-formed reply with a negative acknowledgment."""
