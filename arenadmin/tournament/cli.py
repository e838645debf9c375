"""Command line triggers for the tournament status manager."""

from __future__ import annotations

import json

import click
from flask import Flask

from arenadmin.constants import NOTIFICATION_PRIORITIES, NOTIFICATION_PRIORITY_NORMAL
from arenadmin.errors import AppError

from .services import get_status_manager


def register_commands(app: Flask) -> None:
    """Attach the tournament commands to the app's CLI."""

    @app.cli.command("check-tournaments")
    def check_tournaments() -> None:
        """Run one tournament status sweep and print the report."""
        report = get_status_manager().sweep()
        click.echo(json.dumps(report.to_dict(), indent=2, default=str))

    @app.cli.command("start-tournament")
    @click.argument("tournament_id")
    def start_tournament(tournament_id: str) -> None:
        """Force TOURNAMENT_ID live and notify its participants."""
        try:
            outcome = get_status_manager().manual_start(tournament_id)
        except AppError as e:
            raise click.ClickException(e.message) from e
        click.echo(json.dumps(outcome.to_dict(), indent=2, default=str))

    @app.cli.command("notify-tournament")
    @click.argument("tournament_id")
    @click.option("--title", required=True, help="Notification title.")
    @click.option("--message", required=True, help="Notification body.")
    @click.option(
        "--priority",
        type=click.Choice(NOTIFICATION_PRIORITIES),
        default=NOTIFICATION_PRIORITY_NORMAL,
        show_default=True,
    )
    def notify_tournament(
        tournament_id: str, title: str, message: str, priority: str
    ) -> None:
        """Send a notification to everyone registered for TOURNAMENT_ID."""
        try:
            report = get_status_manager().send_tournament_notification(
                tournament_id, title, message, priority
            )
        except AppError as e:
            raise click.ClickException(e.message) from e
        click.echo(json.dumps(report.to_dict(), indent=2, default=str))
