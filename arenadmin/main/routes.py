"""Routes for the main blueprint."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from flask import current_app, jsonify

from arenadmin.tournament.utils import utcnow

from . import bp

if TYPE_CHECKING:
    from flask import Response


@bp.route("/health")
def health_check() -> Response:
    """Perform a simple health check."""
    runner = current_app.extensions.get("tournament_status_runner")
    return jsonify(
        status="healthy",
        service="tournament-management",
        schedulerRunning=bool(runner and runner.running),
        timestamp=utcnow().isoformat(),
        version=os.environ.get("APP_VERSION", "dev"),
    )
