"""Main CLI (Typer).

Flags use the single-dash spelling (`-users`,
`-contests`, ...) and also accept the usual `--users` form.

Exit codes:
- 2: usage error (missing/invalid users, contests, action or timeout);
- 1: config/token/base URL problem, or at least one registration failed;
- 0: every (contest, user) call succeeded.
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console

from adapters.ejudge_client import EjudgeRegistrationClient
from adapters.http_client import build_client
from cli import doctor
from cli.logging_setup import setup_logging
from cli.ui_components import build_results_table, build_summary_text, print_banner
from core.config import load_settings, load_token_config, resolve_token
from core.errors import ConfigError, InputError
from core.parsing import parse_action, parse_contest_ids, parse_duration, parse_users
from core.services.registration_batch import BatchRequest, failure_line, run_registration_batch

app = typer.Typer(
    add_completion=False,
    help="Bulk register or unregister users in ejudge contests.",
)
app.add_typer(doctor.app, name="doctor")

logger = logging.getLogger("ejudge-users")

_console = Console()


def _fail(message: str) -> typer.Exit:
    logger.error("%s", message)
    return typer.Exit(code=1)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    users: str | None = typer.Option(
        None, "--users", "-users", help="List of users in the format id:name;login2:name2."
    ),
    contests: str | None = typer.Option(
        None, "--contests", "-contests", help="Semicolon separated list of contest IDs."
    ),
    action: str = typer.Option(
        "register", "--action", "-action", help="Action to perform: register or unregister."
    ),
    base_url: str | None = typer.Option(
        None, "--base-url", "-base-url", help="Base URL of the ejudge installation (default: http://localhost)."
    ),
    token: str | None = typer.Option(
        None,
        "--token",
        "-token",
        help="Value for the Authorization header; overrides the value from the config file.",
    ),
    config: str | None = typer.Option(
        None, "--config", "-config", help="Path to JSON configuration file with secrets (e.g. token)."
    ),
    timeout: str | None = typer.Option(
        None, "--timeout", "-timeout", help="Timeout for each HTTP request, e.g. 15s or 500ms (default: 15s)."
    ),
    insecure: bool = typer.Option(False, "--insecure", "-insecure", help="Skip TLS certificate verification."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """Register (or unregister) every user in every contest."""

    if ctx.invoked_subcommand is not None:
        return

    try:
        settings = load_settings()
    except ConfigError as exc:
        setup_logging(logging.DEBUG if verbose else logging.INFO)
        raise _fail(str(exc)) from exc
    setup_logging(logging.DEBUG if verbose else settings.log_level)

    if not (users or "").strip():
        raise typer.BadParameter("the -users flag is required", param_hint="'-users'")
    if not (contests or "").strip():
        raise typer.BadParameter("the -contests flag is required", param_hint="'-contests'")

    try:
        parsed_action = parse_action(action)
        user_specs = parse_users(users)
        contest_ids = parse_contest_ids(contests)
        timeout_seconds = parse_duration(timeout) if timeout is not None else settings.http_timeout_seconds
    except InputError as exc:
        raise typer.BadParameter(str(exc)) from exc

    try:
        secrets = load_token_config(config)
        api_token = resolve_token(token, secrets.token)
    except ConfigError as exc:
        raise _fail(f"failed to load config: {exc}") from exc

    base = (base_url if base_url is not None else settings.base_url).strip().rstrip("/")
    if not base:
        raise _fail("the base URL must not be empty")

    try:
        http = build_client(settings, timeout=timeout_seconds, insecure=insecure)
    except ConfigError as exc:
        raise _fail(str(exc)) from exc

    with http:
        client = EjudgeRegistrationClient(http, base_url=base, token=api_token, timeout=timeout_seconds)
        print_banner(_console, action=parsed_action, endpoint=client.endpoint)
        report = run_registration_batch(
            client,
            BatchRequest(contests=contest_ids, users=user_specs, action=parsed_action),
        )

    _console.print(build_results_table(report))
    _console.print(build_summary_text(report))

    if report.failures:
        for outcome in report.failures:
            logger.error("error: %s", failure_line(outcome))
        raise typer.Exit(code=report.exit_code)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
