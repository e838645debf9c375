"""Data models for the tournament blueprint."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Optional, TypedDict

from arenadmin.core.types import FirestoreDocument


class Registration(TypedDict, total=False):
    """A tournament registration document."""

    id: str
    userId: str
    tournamentId: str
    teamName: str


class Tournament(FirestoreDocument, total=False):
    """A tournament document in Firestore."""

    title: str
    status: str
    startTime: Any
    roomId: Optional[str]
    roomPassword: Optional[str]
    registeredTeams: int
    maxTeams: int

    # Prize configuration
    entryFee: float
    totalPlayers: int
    companyCommissionPercentage: float
    firstPrize: float
    perKillReward: float
    matchType: str


@dataclass
class DistributionResult:
    """Derived prize figures for a tournament configuration."""

    total_revenue: float
    company_commission: float
    prize_pool: float
    kill_count: float
    first_prize: float
    per_kill_reward: float
    total_kill_reward: float
    total_prize_distribution: float
    is_distribution_within_budget: bool

    def to_dict(self) -> dict[str, Any]:
        """Return the result with the keys the dashboard uses."""
        return {
            "totalRevenue": self.total_revenue,
            "companyCommission": self.company_commission,
            "prizePool": self.prize_pool,
            "totalKills": self.kill_count,
            "firstPrize": self.first_prize,
            "perKillReward": self.per_kill_reward,
            "totalKillReward": self.total_kill_reward,
            "totalPrizeDistribution": self.total_prize_distribution,
            "isDistributionWithinBudget": self.is_distribution_within_budget,
        }


@dataclass
class BatchResult:
    """Outcome of a best-effort batch: per-item success or failure reason."""

    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failed)


@dataclass
class FanOutReport:
    """What happened while notifying participants of a status change."""

    registrations: int = 0
    notifications: BatchResult = field(default_factory=BatchResult)
    announcement_created: bool = False
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# Outcome kinds for a single tournament evaluation
TRANSITIONED = "transitioned"
UNCHANGED = "unchanged"
CONFLICT = "conflict"
DEFERRED = "deferred"
FAILED = "failed"


@dataclass
class TournamentOutcome:
    """Result of evaluating one tournament during a sweep or manual trigger."""

    tournament_id: str
    outcome: str
    previous_status: Optional[str] = None
    new_status: Optional[str] = None
    reason: Optional[str] = None
    fan_out: Optional[FanOutReport] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if self.fan_out is None:
            data.pop("fan_out")
        return data


@dataclass
class SweepReport:
    """Per-tournament outcomes of one sweep tick."""

    started_at: Any
    outcomes: list[TournamentOutcome] = field(default_factory=list)

    def by_outcome(self, outcome: str) -> list[TournamentOutcome]:
        """Return the outcomes of the given kind."""
        return [o for o in self.outcomes if o.outcome == outcome]

    @property
    def transitioned(self) -> list[TournamentOutcome]:
        return self.by_outcome(TRANSITIONED)

    @property
    def failed(self) -> list[TournamentOutcome]:
        return self.by_outcome(FAILED)

    @property
    def deferred(self) -> list[TournamentOutcome]:
        return self.by_outcome(DEFERRED)

    def to_dict(self) -> dict[str, Any]:
        return {
            "startedAt": self.started_at.isoformat()
            if hasattr(self.started_at, "isoformat")
            else self.started_at,
            "processed": len(self.outcomes),
            "transitioned": len(self.transitioned),
            "failed": len(self.failed),
            "deferred": len(self.deferred),
            "outcomes": [o.to_dict() for o in self.outcomes],
        }
