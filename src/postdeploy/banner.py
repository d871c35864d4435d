"""Closing banner with operator next steps."""

from __future__ import annotations

from typing import Callable

from .config import SetupConfig
from .netinfo import lookup_public_ip
from .reporter import Reporter

IP_PLACEHOLDER = "<your-server-ip>"


def app_url(setup: SetupConfig, lookup: Callable[[str, float], str | None] = lookup_public_ip) -> str:
    ip = lookup(setup.banner.ip_lookup_url, setup.banner.ip_lookup_timeout_s) or IP_PLACEHOLDER
    return f"http://{ip}:{setup.banner.app_port}"


def print_completion_banner(
    reporter: Reporter,
    setup: SetupConfig,
    lookup: Callable[[str, float], str | None] = lookup_public_ip,
) -> None:
    prefix = "sudo " if setup.compose.use_sudo else ""
    web = setup.compose.web_service

    reporter.blank()
    reporter.rule()
    reporter.console.print("[green]✓ SETUP COMPLETED![/green]")
    reporter.rule()
    reporter.blank()
    reporter.plain("Next steps:")
    reporter.plain("1. Create admin user:")
    reporter.plain(f"   {prefix}docker compose exec {web} php artisan user:create")
    reporter.blank()
    reporter.plain("2. Open in browser:")
    reporter.plain(f"   {app_url(setup, lookup)}")
    reporter.blank()
