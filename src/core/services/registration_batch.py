"""Batch registration orchestration.

The CLI delegates the contests x users loop to this module, which keeps the
loop reusable (tests, other entry-points) and keeps printing out of the
core. Calls are issued strictly one after another; a failed call is
recorded and the loop moves on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from core.domain.models import Action, BatchReport, RegistrationOutcome, UserSpec
from core.errors import RegistrationError
from core.interfaces.registrar import RegistrationClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchRequest:
    """Parameters of one batch run."""

    contests: Sequence[int]
    users: Sequence[UserSpec]
    action: Action = Action.REGISTER


def user_identifier(user: UserSpec) -> str:
    """Identifier used in logs and failure lines."""

    if user.login and user.id is not None:
        return f"login={user.login} (id={user.id})"
    if user.id is not None:
        return f"id={user.id}"
    if user.login:
        return f"login={user.login}"
    return "<unknown>"


def success_line(outcome: RegistrationOutcome) -> str:
    return f"{outcome.action.verb()} user {user_identifier(outcome.user)} for contest {outcome.contest_id}"


def failure_line(outcome: RegistrationOutcome) -> str:
    return f"contest {outcome.contest_id}, user {user_identifier(outcome.user)}: {outcome.error}"


def run_registration_batch(
    client: RegistrationClient,
    request: BatchRequest,
    *,
    on_outcome: Callable[[RegistrationOutcome], None] | None = None,
) -> BatchReport:
    """Apply `request.action` to every (contest, user) pair.

    Contests are the outer loop, users the inner one. Only
    `RegistrationError` is caught: anything else is a bug and propagates.
    """

    report = BatchReport()
    for contest_id in request.contests:
        for user in request.users:
            try:
                client.change_registration(contest_id, user, request.action)
            except RegistrationError as exc:
                outcome = RegistrationOutcome(
                    contest_id=contest_id,
                    user=user,
                    action=request.action,
                    ok=False,
                    error=str(exc),
                )
                logger.debug("failed: %s", failure_line(outcome))
            else:
                outcome = RegistrationOutcome(
                    contest_id=contest_id,
                    user=user,
                    action=request.action,
                    ok=True,
                )
                logger.info("%s", success_line(outcome))

            report.outcomes.append(outcome)
            if on_outcome is not None:
                on_outcome(outcome)

    return report
