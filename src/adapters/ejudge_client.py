"""ejudge client: `change-registration`.

One form-encoded POST per (contest, user). The reply is classified into
success or one of the `RegistrationError` subclasses; nothing is retried.
"""

from __future__ import annotations

import logging
import time

import httpx

from adapters.response_decoder import decode_reply, truncate_preview
from core.domain.models import Action, RegistrationReply, UserSpec
from core.errors import ApplicationError, TransportError
from core.interfaces.registrar import RegistrationClient

CHANGE_REGISTRATION_PATH = "/ej/api/v1/master/change-registration"

logger = logging.getLogger(__name__)


def build_registration_form(contest_id: int, user: UserSpec, action: Action) -> dict[str, str]:
    form: dict[str, str] = {}
    if user.id is not None:
        form["other_user_id"] = str(user.id)
    if user.login:
        form["other_user_login"] = user.login
    form["contest_id"] = str(contest_id)

    if action is Action.REGISTER:
        form.update(op="upsert", status="ok", name=user.name, ignore="true")
    else:
        form.update(op="delete", ignore="true")
    return form


def _status_line(response: httpx.Response) -> str:
    return f"{response.status_code} {response.reason_phrase}".strip()


def _failure_message(reply: RegistrationReply) -> str:
    if reply.error is not None:
        err = reply.error
        return f"server error: {err.message} (code {err.num}, symbol {err.symbol}, log {err.log_id})"
    if isinstance(reply.result, str) and reply.result.strip():
        return f"registration change was not acknowledged: {reply.result.strip()}"
    return "registration change was not acknowledged"

class EjudgeRegistrationClient(RegistrationClient):
    """Talks to `<base_url>/ej/api/v1/master/change-registration`.

    The `Authorization` header is sent verbatim; the caller owns the
    `httpx.Client` (TLS, per-phase timeouts) and closes it.

    `timeout` is a wall-clock deadline for the whole call, checked between
    body chunks. It defaults to the client's read timeout.
    """

    def __init__(
        self,
        client: httpx.Client,
        *,
        base_url: str,
        token: str,
        timeout: float | None = None,
    ) -> None:
        self._client = client
        self._endpoint = base_url.rstrip("/") + CHANGE_REGISTRATION_PATH
        self._token = token
        self._timeout = timeout if timeout is not None else client.timeout.read

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def _check_deadline(self, deadline: float | None) -> None:
        if deadline is not None and time.monotonic() > deadline:
            raise TransportError(f"sending request: deadline of {self._timeout:g}s exceeded")

    def _read_body(self, response: httpx.Response, deadline: float | None) -> bytes:
        chunks: list[bytes] = []
        self._check_deadline(deadline)
        for chunk in response.iter_bytes():
            chunks.append(chunk)
            self._check_deadline(deadline)
        return b"".join(chunks)

    def change_registration(self, contest_id: int, user: UserSpec, action: Action) -> None:
        form = build_registration_form(contest_id, user, action)
        logger.debug("POST %s %s", self._endpoint, form)

        try:
            request = self._client.build_request(
                "POST",
                self._endpoint,
                data=form,
                headers={
                    "Authorization": self._token,
                    "Content-Type": "application/x-www-form-urlencoded",
                    "Accept": "application/json",
                },
                timeout=self._timeout if self._timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except (httpx.InvalidURL, ValueError) as exc:
            raise TransportError(f"creating request: {exc}") from exc

        deadline = time.monotonic() + self._timeout if self._timeout is not None else None
        try:
            response = self._client.send(request, stream=True)
            try:
                body = self._read_body(response, deadline)
            finally:
                response.close()
        except httpx.HTTPError as exc:
            raise TransportError(f"sending request: {exc}") from exc

        status = _status_line(response)
        content_type = response.headers.get("Content-Type")
        logger.debug("reply %s (%s)", status, content_type or "")

        if not response.is_success:
            preview = truncate_preview(body.decode("utf-8", errors="replace"))
            raise TransportError(f"unexpected status {status}: {preview}")

        reply = decode_reply(body, content_type, status)
        if not reply.acknowledged:
            raise ApplicationError(_failure_message(reply))
