"""Registration client contract.

Why Protocol:
- The batch loop depends on a structural contract, not on `httpx`.
- Tests drive the loop with a tiny fake instead of a mocked server.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import Action, UserSpec


@runtime_checkable
class RegistrationClient(Protocol):
    """Minimal contract for something that changes contest registrations.

    Design rules:
    - `change_registration` is synchronous: calls are issued one at a time.
    - It returns nothing on success and raises `RegistrationError` otherwise.
    """

    def change_registration(self, contest_id: int, user: UserSpec, action: Action) -> None:
        """Apply `action` for `user` in `contest_id`."""

        ...
