"""Routes for the tournament blueprint."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

from flask import current_app, jsonify, request

from arenadmin.auth.decorators import login_required
from arenadmin.constants import NOTIFICATION_PRIORITY_NORMAL
from arenadmin.errors import ValidationError

from . import bp
from .forms import TournamentForm
from .services import TournamentService, get_status_manager
from .utils import compute_distribution, suggest_distribution, utcnow

if TYPE_CHECKING:
    from arenadmin.core.types import APIResponse


def _api_response(message: str, data: dict[str, Any] | None = None) -> APIResponse:
    return {"success": True, "message": message, "data": data}


def _as_number(value: Any) -> float:
    """Parse a loosely typed number from a preview payload, 0 when unusable."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    return number if math.isfinite(number) else 0


@bp.route("/check-statuses", methods=["POST"])
@login_required(admin_required=True)
def check_statuses() -> Any:
    """Run a tournament status sweep on demand."""
    current_app.logger.info("Manual tournament status check requested")
    report = get_status_manager().sweep()
    return jsonify(
        _api_response("Tournament status check completed successfully", report.to_dict())
    )


@bp.route("/<string:tournament_id>/start", methods=["POST"])
@login_required(admin_required=True)
def start_tournament(tournament_id: str) -> Any:
    """Force an upcoming tournament live and notify its participants."""
    current_app.logger.info(f"Manual tournament start requested for {tournament_id}")
    outcome = get_status_manager().manual_start(tournament_id)
    return jsonify(
        _api_response(f"Tournament {tournament_id} started successfully", outcome.to_dict())
    )


@bp.route("/<string:tournament_id>/complete", methods=["POST"])
@login_required(admin_required=True)
def complete_tournament(tournament_id: str) -> Any:
    """Complete a live tournament."""
    current_app.logger.info(
        f"Manual tournament completion requested for {tournament_id}"
    )
    outcome = get_status_manager().manual_complete(tournament_id)
    return jsonify(
        _api_response(
            f"Tournament {tournament_id} completed successfully", outcome.to_dict()
        )
    )


@bp.route("/<string:tournament_id>/notify", methods=["POST"])
@login_required(admin_required=True)
def notify_participants(tournament_id: str) -> Any:
    """Send an admin-written notification to every registered participant."""
    payload = request.get_json(silent=True) or request.form
    current_app.logger.info(f"Tournament notification requested for {tournament_id}")
    report = get_status_manager().send_tournament_notification(
        tournament_id,
        payload.get("title"),
        payload.get("message"),
        payload.get("priority") or NOTIFICATION_PRIORITY_NORMAL,
    )
    return jsonify(
        _api_response(
            f"Tournament notification sent for {tournament_id}", report.to_dict()
        )
    )


@bp.route("/<string:tournament_id>/resend-credentials", methods=["POST"])
@login_required(admin_required=True)
def resend_credentials(tournament_id: str) -> Any:
    """Repeat the go-live room credentials for a live tournament."""
    report = get_status_manager().resend_room_credentials(tournament_id)
    return jsonify(
        _api_response(
            f"Room credentials resent for {tournament_id}", report.to_dict()
        )
    )


@bp.route("/<string:tournament_id>/status", methods=["GET"])
@login_required(admin_required=True)
def tournament_status(tournament_id: str) -> Any:
    """Show scheduling information for a tournament."""
    info = get_status_manager().describe(tournament_id)
    return jsonify(_api_response("Tournament status", info))


@bp.route("/prize-preview", methods=["POST"])
@login_required(admin_required=True)
def prize_preview() -> Any:
    """Calculate the prize distribution for a form that is still being edited."""
    payload = request.get_json(silent=True) or request.form
    numbers = {
        key: _as_number(payload.get(key))
        for key in (
            "entryFee",
            "totalPlayers",
            "companyCommissionPercentage",
            "firstPrize",
            "perKillReward",
        )
    }
    match_type = payload.get("matchType")
    result = compute_distribution(
        numbers["entryFee"],
        numbers["totalPlayers"],
        numbers["companyCommissionPercentage"],
        numbers["firstPrize"],
        numbers["perKillReward"],
        match_type,
    )
    suggested = suggest_distribution(
        numbers["entryFee"],
        numbers["totalPlayers"],
        numbers["companyCommissionPercentage"],
        match_type,
    )
    return jsonify(
        _api_response(
            "Prize distribution calculated",
            {"distribution": result.to_dict(), "suggested": suggested.to_dict()},
        )
    )


@bp.route("/", methods=["POST"])
@login_required(admin_required=True)
def create_tournament() -> Any:
    """Create a new tournament."""
    form = TournamentForm()
    if not form.validate_on_submit():
        errors = "; ".join(
            f"{name}: {', '.join(messages)}" for name, messages in form.errors.items()
        )
        raise ValidationError(errors or "Invalid tournament details.")

    tournament_id = TournamentService.create_tournament(form.to_data())
    current_app.logger.info(f"Tournament {tournament_id} created")
    return (
        jsonify(
            _api_response(
                "Tournament created successfully.",
                {"id": tournament_id, "createdAt": utcnow().isoformat()},
            )
        ),
        201,
    )
