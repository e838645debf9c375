"""Utility functions for tournament management."""

from __future__ import annotations

import datetime
import logging
import math
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from arenadmin.constants import (
    BUDGET_EPSILON,
    DEFAULT_MATCH_TYPE,
    MATCH_TYPE_DUO,
    MATCH_TYPE_SOLO,
    MATCH_TYPE_SQUAD,
    SUGGESTED_FIRST_PRIZE_SHARE,
    SUGGESTED_KILL_REWARD_SHARE,
)

from .models import BatchResult, DistributionResult

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .models import Tournament

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Participants that are not eliminated by someone else: the winning unit.
WINNING_UNIT_SIZE = {
    MATCH_TYPE_SOLO: 1,
    MATCH_TYPE_DUO: 2,
    MATCH_TYPE_SQUAD: 4,
}


def normalize_match_type(match_type: Any) -> str:
    """Return solo/duo/squad, falling back to squad for anything else."""
    value = str(match_type or "").strip().lower()
    return value if value in WINNING_UNIT_SIZE else DEFAULT_MATCH_TYPE


def get_kill_count(total_players: float, match_type: Any) -> float:
    """Count the eliminations eligible for a kill reward."""
    offset = WINNING_UNIT_SIZE[normalize_match_type(match_type)]
    return max(total_players - offset, 0)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


def compute_distribution(
    entry_fee: float | None,
    total_players: float | None,
    company_commission_percentage: float | None,
    first_prize: float | None,
    per_kill_reward: float | None,
    match_type: str | None,
) -> DistributionResult:
    """Derive the prize pool and check the configured prizes fit inside it.

    Never raises and performs no validation: negative values simply flow
    through the arithmetic. Callers reject nonsensical input before saving.
    """
    entry_fee = entry_fee or 0
    total_players = total_players or 0
    commission_percentage = company_commission_percentage or 0
    first_prize = first_prize or 0
    per_kill_reward = per_kill_reward or 0

    total_revenue = entry_fee * total_players
    company_commission = total_revenue * (commission_percentage / 100)
    prize_pool = total_revenue - company_commission
    kill_count = get_kill_count(total_players, match_type)
    total_kill_reward = per_kill_reward * kill_count
    total_prize_distribution = first_prize + total_kill_reward

    return DistributionResult(
        total_revenue=total_revenue,
        company_commission=company_commission,
        prize_pool=prize_pool,
        kill_count=kill_count,
        first_prize=first_prize,
        per_kill_reward=per_kill_reward,
        total_kill_reward=total_kill_reward,
        total_prize_distribution=total_prize_distribution,
        is_distribution_within_budget=total_prize_distribution
        <= prize_pool + BUDGET_EPSILON,
    )


def suggest_distribution(
    entry_fee: float | None,
    total_players: float | None,
    company_commission_percentage: float | None,
    match_type: str | None,
) -> DistributionResult:
    """Pre-fill prizes: 40% of the pool to first place, 60% spread over kills."""
    baseline = compute_distribution(
        entry_fee, total_players, company_commission_percentage, 0, 0, match_type
    )
    if not math.isfinite(baseline.prize_pool) or not math.isfinite(
        baseline.kill_count
    ):
        return baseline
    first_prize = round_half_up(baseline.prize_pool * SUGGESTED_FIRST_PRIZE_SHARE)
    per_kill_reward = (
        math.floor(
            baseline.prize_pool * SUGGESTED_KILL_REWARD_SHARE / baseline.kill_count
        )
        if baseline.kill_count > 0
        else 0
    )
    return compute_distribution(
        entry_fee,
        total_players,
        company_commission_percentage,
        first_prize,
        per_kill_reward,
        match_type,
    )


def distribution_for(tournament: Tournament) -> DistributionResult:
    """Evaluate a stored tournament's prize configuration."""
    return compute_distribution(
        tournament.get("entryFee"),
        tournament.get("totalPlayers") or tournament.get("maxTeams"),
        tournament.get("companyCommissionPercentage"),
        tournament.get("firstPrize"),
        tournament.get("perKillReward"),
        tournament.get("matchType"),
    )


def parse_start_time(value: Any) -> datetime.datetime:
    """Convert a stored start time into an aware UTC datetime.

    Accepts Firestore timestamps, datetimes, ISO-8601 strings and epoch
    milliseconds. Naive values are taken to be UTC.
    """
    if isinstance(value, datetime.datetime):
        start = value
    elif hasattr(value, "to_datetime"):
        start = value.to_datetime()
    elif isinstance(value, str):
        start = datetime.datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        start = datetime.datetime.fromtimestamp(value / 1000, tz=datetime.timezone.utc)
    else:
        raise ValueError(f"Unsupported start time: {value!r}")

    if start.tzinfo is None:
        start = start.replace(tzinfo=datetime.timezone.utc)
    return start


def utcnow() -> datetime.datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.datetime.now(datetime.timezone.utc)


def as_utc(value: datetime.datetime | None) -> datetime.datetime:
    """Return value as an aware datetime, defaulting to now."""
    if value is None:
        return utcnow()
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value


def build_live_message(tournament: Tournament) -> str:
    """Build the go-live message sent to participants and announced."""
    message = f'Tournament "{tournament.get("title", "")}" has started!\n\n'

    room_id = tournament.get("roomId")
    room_password = tournament.get("roomPassword")
    if room_id and room_password:
        message += "Room Details:\n"
        message += f"Room ID: {room_id}\n"
        message += f"Password: {room_password}\n\n"

    message += "Tournament is now LIVE!\n"
    message += (
        f"{tournament.get('registeredTeams', 0)}/{tournament.get('maxTeams', 0)}"
        " teams registered\n\n"
    )
    message += "Good luck and have fun!"
    return message


def live_notification_title(tournament: Tournament) -> str:
    return f"Tournament {tournament.get('title', '')} is Now Live!"


def live_announcement_title(tournament: Tournament) -> str:
    return f"{tournament.get('title', '')} - Tournament Live"


def completion_notification_title(tournament: Tournament) -> str:
    return f"Tournament {tournament.get('title', '')} Completed"


COMPLETION_MESSAGE = "Thank you for participating! Results will be announced soon."


def run_best_effort(
    items: Iterable[T], action: Callable[[T], Any], key: Callable[[T], str]
) -> BatchResult:
    """Apply action to every item, collecting failures instead of stopping."""
    result = BatchResult()
    for item in items:
        item_key = key(item)
        try:
            action(item)
        except Exception as e:
            logger.error(f"Best-effort action failed for {item_key}: {e}")
            result.failed[item_key] = str(e)
        else:
            result.succeeded.append(item_key)
    return result
