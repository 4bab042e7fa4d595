"""Doctor command for environment diagnostics."""

from __future__ import annotations

import httpx
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from adapters.ejudge_client import CHANGE_REGISTRATION_PATH
from adapters.http_client import build_client
from core.config import AppSettings, get_user_env_file, load_settings, load_token_config, resolve_token
from core.errors import ConfigError

app = typer.Typer(no_args_is_help=False, help="Environment diagnostics and configuration checks.")

_console = Console()


def _check_http(url: str, *, settings: AppSettings, insecure: bool) -> tuple[bool, str]:
    try:
        with build_client(settings, insecure=insecure) as client:
            response = client.get(url)
        return True, f"HTTP {response.status_code}"
    except httpx.HTTPError as exc:
        return False, str(exc) or type(exc).__name__


def _check_token(token: str | None, config: str | None) -> tuple[bool, str]:
    try:
        cfg = load_token_config(config)
        resolve_token(token, cfg.token)
    except ConfigError as exc:
        return False, str(exc)
    source = "--token" if (token or "").strip() else "config file"
    return True, f"resolved from {source}"


@app.callback(invoke_without_command=True)
def run(
    base_url: str | None = typer.Option(None, "--base-url", "-base-url", help="Base URL to probe."),
    token: str | None = typer.Option(None, "--token", "-token", help="Token to check."),
    config: str | None = typer.Option(None, "--config", "-config", help="Secrets file to check."),
    insecure: bool = typer.Option(False, "--insecure", "-insecure", help="Skip TLS verification."),
) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    try:
        settings = load_settings()
    except ConfigError as exc:
        _console.print(f"[red]Settings:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    base = (base_url if base_url is not None else settings.base_url).rstrip("/")

    table = Table(title="ejudge-users Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    table.add_row("Settings file", "OK" if get_user_env_file().exists() else "OPTIONAL", str(get_user_env_file()))
    table.add_row("Endpoint", "OK" if base else "FAIL", (base or "<empty>") + CHANGE_REGISTRATION_PATH)
    table.add_row("Timeout", "OK", f"{settings.http_timeout_seconds:g}s")

    ok_token, detail_token = _check_token(token, config)
    table.add_row("API token", "OK" if ok_token else "FAIL", Text(detail_token))

    if base:
        ok_http, detail_http = _check_http(base, settings=settings, insecure=insecure)
        table.add_row("HTTP connectivity", "OK" if ok_http else "FAIL", Text(detail_http))

    _console.print(table)

    if not ok_token:
        _console.print(
            "\n[yellow]Note:[/yellow] pass --token or a --config file with {\"token\": \"...\"}."
        )
