"""Domain models (Pydantic v2).

Why Pydantic in the domain:
- Strict validation at the edges (CLI lists, secrets file, server replies)
  with self-documenting `Field`s.
- Replies from ejudge carry extra keys depending on the server version; the
  models ignore them instead of failing.

Note:
- These models describe *what* is exchanged, not *how* it is sent.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator
from pydantic.config import ConfigDict


class Action(str, Enum):
    """Registration change to apply to every (contest, user) pair."""

    REGISTER = "register"
    UNREGISTER = "unregister"

    def verb(self) -> str:
        """Past-tense verb used in success lines."""

        return "Registered" if self is Action.REGISTER else "Unregistered"


class UserSpec(BaseModel):
    """A user to (un)register, parsed from an `identifier:name` token."""

    model_config = ConfigDict(frozen=True)

    id: int | None = Field(
        default=None,
        description="Numeric ejudge user id, only when the identifier is an integer.",
    )
    login: str = Field(
        ...,
        min_length=1,
        description="Original identifier token, sent as `other_user_login`.",
    )
    name: str = Field(
        ...,
        min_length=1,
        description="Display name used for the contest registration.",
    )


class TokenConfig(BaseModel):
    """JSON secrets file. Only `token` is accepted."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    token: str | None = Field(
        default=None,
        description="Value for the Authorization header.",
    )


def _drop_nulls(data: Any) -> Any:
    # JSON null means "absent": the field keeps its default.
    if isinstance(data, dict):
        return {key: value for key, value in data.items() if value is not None}
    return data


class ReplyError(BaseModel):
    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def nulls_to_defaults(cls, data: Any) -> Any:
        return _drop_nulls(data)

    message: str = ""
    num: int = 0
    symbol: str = ""
    log_id: str = ""


class RegistrationReply(BaseModel):
    """Acknowledgment returned by `change-registration`.

    `result` is normally a boolean, but some servers put a diagnostic string
    there when the change is refused.
    """

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def nulls_to_defaults(cls, data: Any) -> Any:
        return _drop_nulls(data)

    ok: bool = False
    result: bool | str | None = False
    action: str | None = None
    error: ReplyError | None = None

    @property
    def acknowledged(self) -> bool:
        return self.ok and self.result is True


class RegistrationOutcome(BaseModel):
    """Result of one (contest, user) call."""

    contest_id: int
    user: UserSpec
    action: Action
    ok: bool
    error: str | None = Field(
        default=None,
        description="Error text when the call failed.",
    )


class BatchReport(BaseModel):
    """Ordered outcomes of a whole batch."""

    outcomes: list[RegistrationOutcome] = Field(default_factory=list)

    @property
    def failures(self) -> list[RegistrationOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def succeeded(self) -> list[RegistrationOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def exit_code(self) -> int:
        return 1 if self.failures else 0
