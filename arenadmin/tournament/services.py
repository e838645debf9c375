"""Service layer for tournament lifecycle business logic."""

from __future__ import annotations

import datetime
import logging
import threading
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, Iterator

from firebase_admin import firestore
from flask import current_app

from arenadmin.constants import (
    LIVE_DURATION_MINUTES,
    MATCH_TYPE_SQUAD,
    NON_TERMINAL_STATUSES,
    NOTIFICATION_PRIORITIES,
    NOTIFICATION_PRIORITY_HIGH,
    NOTIFICATION_PRIORITY_NORMAL,
    STATUS_COMPLETED,
    STATUS_LIVE,
    STATUS_UPCOMING,
    SWEEP_TIMEOUT_SECONDS,
)
from arenadmin.errors import ConflictError, InvalidStateError, ValidationError

from .models import (
    CONFLICT,
    DEFERRED,
    FAILED,
    TRANSITIONED,
    UNCHANGED,
    FanOutReport,
    SweepReport,
    TournamentOutcome,
)
from .repositories import (
    FirestoreNotificationSink,
    FirestoreRegistrationRepository,
    FirestoreTournamentRepository,
)
from .utils import (
    COMPLETION_MESSAGE,
    as_utc,
    build_live_message,
    completion_notification_title,
    compute_distribution,
    distribution_for,
    live_announcement_title,
    live_notification_title,
    parse_start_time,
    run_best_effort,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from google.cloud.firestore_v1.client import Client

    from .models import DistributionResult, Registration, Tournament
    from .repositories import (
        NotificationSink,
        RegistrationRepository,
        TournamentRepository,
    )

logger = logging.getLogger(__name__)

EXTENSION_KEY = "tournament_status_manager"


class KeyedLock:
    """One mutex per key, released from the table when nobody holds it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, list[Any]] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]


class TournamentStatusManager:
    """Moves tournaments through upcoming -> live -> completed.

    Collaborators are injected so the periodic sweep, the manual triggers and
    the tests all share the same transition logic. Every status write is a
    conditional write (new status, expected current status); the side effects
    of going live run only after that write succeeds, so a tournament is
    announced at most once however many sweeps or admins race for it.
    """

    def __init__(
        self,
        tournaments: TournamentRepository,
        registrations: RegistrationRepository,
        notifications: NotificationSink,
        live_duration: datetime.timedelta = datetime.timedelta(
            minutes=LIVE_DURATION_MINUTES
        ),
        sweep_timeout: float = SWEEP_TIMEOUT_SECONDS,
        locks: KeyedLock | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.tournaments = tournaments
        self.registrations = registrations
        self.notifications = notifications
        self.live_duration = live_duration
        self.sweep_timeout = sweep_timeout
        self._locks = locks if locks is not None else KeyedLock()
        self._monotonic = monotonic

    @classmethod
    def from_firestore(
        cls, db: Client | None = None, config: Mapping[str, Any] | None = None
    ) -> TournamentStatusManager:
        """Build a manager wired to Firestore, using policy values from config."""
        if db is None:
            db = firestore.client()
        config = config or {}
        return cls(
            FirestoreTournamentRepository(db),
            FirestoreRegistrationRepository(db),
            FirestoreNotificationSink(db),
            live_duration=datetime.timedelta(
                minutes=config.get(
                    "TOURNAMENT_LIVE_DURATION_MINUTES", LIVE_DURATION_MINUTES
                )
            ),
            sweep_timeout=config.get(
                "TOURNAMENT_SWEEP_TIMEOUT_SECONDS", SWEEP_TIMEOUT_SECONDS
            ),
        )

    def sweep(self, now: datetime.datetime | None = None) -> SweepReport:
        """Evaluate every non-terminal tournament once.

        A failure listing tournaments propagates and fails the tick. A failure
        on one tournament is recorded in the report and the sweep carries on.
        Tournaments not reached before the deadline are reported as deferred
        and left for the next tick.
        """
        now = as_utc(now)
        report = SweepReport(started_at=now)
        deadline = self._monotonic() + self.sweep_timeout

        logger.info("Starting tournament status check...")
        working_set = [
            t
            for t in self.tournaments.list_non_terminal()
            if t.get("status") in NON_TERMINAL_STATUSES
        ]
        logger.info(f"Found {len(working_set)} tournaments to check")

        for tournament in working_set:
            tournament_id = str(tournament.get("id"))
            if self._monotonic() >= deadline:
                report.outcomes.append(
                    TournamentOutcome(
                        tournament_id,
                        DEFERRED,
                        previous_status=tournament.get("status"),
                        reason="Sweep deadline reached.",
                    )
                )
                continue
            try:
                outcome = self.transition(tournament, now)
            except Exception as e:
                logger.error(f"Error processing tournament {tournament_id}: {e}")
                outcome = TournamentOutcome(
                    tournament_id,
                    FAILED,
                    previous_status=tournament.get("status"),
                    reason=str(e),
                )
            report.outcomes.append(outcome)

        if report.deferred:
            logger.warning(
                f"Sweep deadline reached, deferred {len(report.deferred)} tournaments"
            )
        logger.info(
            f"Tournament status check completed: {len(report.transitioned)} "
            f"transitioned, {len(report.failed)} failed"
        )
        return report

    def transition(
        self, tournament: Tournament, now: datetime.datetime
    ) -> TournamentOutcome:
        """Apply the single transition, if any, that is due for a tournament."""
        now = as_utc(now)
        tournament_id = str(tournament.get("id"))
        status = tournament.get("status")
        if status not in NON_TERMINAL_STATUSES:
            return TournamentOutcome(tournament_id, UNCHANGED, status, status)

        start_time = parse_start_time(tournament.get("startTime"))
        if status == STATUS_UPCOMING and now >= start_time:
            logger.info(
                f"Tournament {tournament_id} ({tournament.get('title')}) should go live"
            )
            return self._go_live(tournament)
        if status == STATUS_LIVE and now >= start_time + self.live_duration:
            logger.info(
                f"Tournament {tournament_id} ({tournament.get('title')}) "
                "should be marked as completed"
            )
            return self._complete(tournament)
        return TournamentOutcome(tournament_id, UNCHANGED, status, status)

    def manual_start(
        self, tournament_id: str, now: datetime.datetime | None = None
    ) -> TournamentOutcome:
        """Force an upcoming tournament live regardless of its start time.

        Raises:
            NotFoundError: If the tournament does not exist.
            InvalidStateError: If the tournament is not upcoming.
        """
        now = as_utc(now)
        tournament = self.tournaments.get(tournament_id)
        if tournament.get("status") != STATUS_UPCOMING:
            raise InvalidStateError(
                f"Tournament {tournament_id} is not in upcoming status."
            )

        outcome = self._go_live(tournament)
        if outcome.outcome == CONFLICT:
            raise InvalidStateError(
                f"Tournament {tournament_id} is not in upcoming status."
            )
        logger.info(f"Tournament {tournament_id} manually started at {now.isoformat()}")
        return outcome

    def manual_complete(
        self, tournament_id: str, now: datetime.datetime | None = None
    ) -> TournamentOutcome:
        """Complete a live tournament early and thank its participants.

        Raises:
            NotFoundError: If the tournament does not exist.
            InvalidStateError: If the tournament is not live.
        """
        now = as_utc(now)
        tournament = self.tournaments.get(tournament_id)
        if tournament.get("status") != STATUS_LIVE:
            raise InvalidStateError(f"Tournament {tournament_id} is not currently live.")

        outcome = self._complete(tournament, notify=True)
        if outcome.outcome == CONFLICT:
            raise InvalidStateError(f"Tournament {tournament_id} is not currently live.")
        logger.info(
            f"Tournament {tournament_id} manually completed at {now.isoformat()}"
        )
        return outcome

    def describe(
        self, tournament_id: str, now: datetime.datetime | None = None
    ) -> dict[str, Any]:
        """Summarise a tournament's scheduling state for the admin dashboard."""
        now = as_utc(now)
        tournament = self.tournaments.get(tournament_id)
        registrations = self.registrations.list_by_tournament(tournament_id)

        try:
            start_time: datetime.datetime | None = parse_start_time(
                tournament.get("startTime")
            )
        except ValueError:
            start_time = None

        status = tournament.get("status")
        distribution = _prize_distribution(tournament)
        return {
            "tournament": {
                "id": tournament_id,
                "title": tournament.get("title"),
                "status": status,
                "startTime": start_time.isoformat() if start_time else None,
                "registeredTeams": len(registrations),
                "maxTeams": tournament.get("maxTeams"),
                "hasRoomCredentials": bool(
                    tournament.get("roomId") and tournament.get("roomPassword")
                ),
            },
            "scheduling": {
                "currentTime": now.isoformat(),
                "timeUntilStartSeconds": (start_time - now).total_seconds()
                if start_time
                else None,
                "shouldBeLive": bool(start_time and now >= start_time),
                "canStart": status == STATUS_UPCOMING and len(registrations) > 0,
            },
            "prizeDistribution": distribution.to_dict() if distribution else None,
        }

    def send_room_credentials(self, tournament: Tournament) -> FanOutReport:
        """Notify every registered user that the tournament is live.

        Per-user failures are collected, never raised. The announcement is
        created once after every user has been attempted.
        """
        tournament_id = str(tournament.get("id"))
        report = FanOutReport()
        try:
            registrations = self.registrations.list_by_tournament(tournament_id)
        except Exception as e:
            logger.error(
                f"Error loading registrations for tournament {tournament_id}: {e}"
            )
            report.error = str(e)
            return report

        report.registrations = len(registrations)
        if not registrations:
            logger.info(f"No registrations found for tournament {tournament_id}")
            return report

        logger.info(
            f"Sending room credentials to {len(registrations)} registered users "
            f"for tournament {tournament_id}"
        )
        message = build_live_message(tournament)
        title = live_notification_title(tournament)
        report.notifications = run_best_effort(
            registrations,
            lambda registration: self._notify_user(
                registration, title, message, tournament_id
            ),
            key=_registration_key,
        )

        try:
            self.notifications.create_announcement(
                live_announcement_title(tournament), message, tournament_id
            )
            report.announcement_created = True
        except Exception as e:
            logger.error(
                f"Error creating tournament announcement for {tournament_id}: {e}"
            )
            report.error = str(e)

        logger.info(
            f"Room credentials sent to {len(report.notifications.succeeded)}/"
            f"{len(registrations)} registered users for tournament {tournament_id}"
        )
        return report

    def send_completion_notice(self, tournament: Tournament) -> FanOutReport:
        tournament_id = str(tournament.get("id"))
        report = FanOutReport()
        try:
            registrations = self.registrations.list_by_tournament(tournament_id)
        except Exception as e:
            logger.error(
                f"Error loading registrations for tournament {tournament_id}: {e}"
            )
            report.error = str(e)
            return report

        report.registrations = len(registrations)
        title = completion_notification_title(tournament)
        report.notifications = run_best_effort(
            registrations,
            lambda registration: self._notify_user(
                registration,
                title,
                COMPLETION_MESSAGE,
                tournament_id,
                priority=NOTIFICATION_PRIORITY_NORMAL,
            ),
            key=_registration_key,
        )
        return report

    def send_tournament_notification(
        self,
        tournament_id: str,
        title: str,
        message: str,
        priority: str = NOTIFICATION_PRIORITY_NORMAL,
    ) -> FanOutReport:
        """Send an admin-written notice to every registered participant.

        Raises:
            ValidationError: If title or message is blank, or priority is unknown.
            NotFoundError: If the tournament does not exist.
        """
        title = str(title or "").strip()
        message = str(message or "").strip()
        if not title or not message:
            raise ValidationError("Missing required fields: title, message")
        if priority not in NOTIFICATION_PRIORITIES:
            raise ValidationError(
                f"Priority must be one of: {', '.join(NOTIFICATION_PRIORITIES)}"
            )

        self.tournaments.get(tournament_id)
        registrations = self.registrations.list_by_tournament(tournament_id)
        logger.info(
            f"Sending tournament notification for {tournament_id} "
            f"to {len(registrations)} registered users"
        )
        report = FanOutReport(registrations=len(registrations))
        report.notifications = run_best_effort(
            registrations,
            lambda registration: self._notify_user(
                registration, title, message, tournament_id, priority=priority
            ),
            key=_registration_key,
        )
        return report

    def resend_room_credentials(self, tournament_id: str) -> FanOutReport:
        """Repeat the go-live notifications for a tournament that is live.

        Raises:
            NotFoundError: If the tournament does not exist.
            InvalidStateError: If the tournament is not live.
        """
        tournament = self.tournaments.get(tournament_id)
        if tournament.get("status") != STATUS_LIVE:
            raise InvalidStateError(f"Tournament {tournament_id} is not currently live.")
        logger.info(f"Resending room credentials for tournament {tournament_id}")
        return self.send_room_credentials(tournament)

    def _go_live(self, tournament: Tournament) -> TournamentOutcome:
        tournament_id = str(tournament.get("id"))
        with self._locks.hold(tournament_id):
            try:
                self.tournaments.update_status(
                    tournament_id, STATUS_LIVE, STATUS_UPCOMING
                )
            except ConflictError as e:
                logger.info(f"Tournament {tournament_id} already started: {e.message}")
                return TournamentOutcome(
                    tournament_id, CONFLICT, STATUS_UPCOMING, reason=e.message
                )

        self._check_prize_budget(tournament)
        fan_out = self.send_room_credentials(tournament)
        logger.info(
            f"Tournament {tournament_id} status updated to live and notifications sent"
        )
        return TournamentOutcome(
            tournament_id, TRANSITIONED, STATUS_UPCOMING, STATUS_LIVE, fan_out=fan_out
        )

    def _complete(
        self, tournament: Tournament, notify: bool = False
    ) -> TournamentOutcome:
        tournament_id = str(tournament.get("id"))
        with self._locks.hold(tournament_id):
            try:
                self.tournaments.update_status(
                    tournament_id, STATUS_COMPLETED, STATUS_LIVE
                )
            except ConflictError as e:
                logger.info(
                    f"Tournament {tournament_id} already completed: {e.message}"
                )
                return TournamentOutcome(
                    tournament_id, CONFLICT, STATUS_LIVE, reason=e.message
                )

        logger.info(f"Tournament {tournament_id} status updated to completed")
        fan_out = self.send_completion_notice(tournament) if notify else None
        return TournamentOutcome(
            tournament_id,
            TRANSITIONED,
            STATUS_LIVE,
            STATUS_COMPLETED,
            fan_out=fan_out,
        )

    def _notify_user(
        self,
        registration: Registration,
        title: str,
        message: str,
        tournament_id: str,
        priority: str = NOTIFICATION_PRIORITY_HIGH,
    ) -> None:
        user_id = registration.get("userId")
        if not user_id:
            raise ValueError(f"Registration {registration.get('id')} has no userId")
        self.notifications.create_user_notification(
            str(user_id), title, message, tournament_id, priority=priority
        )

    def _check_prize_budget(self, tournament: Tournament) -> None:
        distribution = _prize_distribution(tournament)
        if distribution is not None and not distribution.is_distribution_within_budget:
            logger.warning(
                f"Tournament {tournament.get('id')} prizes "
                f"({distribution.total_prize_distribution}) exceed its prize pool "
                f"({distribution.prize_pool})"
            )


def _prize_distribution(tournament: Tournament) -> DistributionResult | None:
    """Evaluate stored prizes, or None when the stored fields are not numbers."""
    try:
        return distribution_for(tournament)
    except (TypeError, ValueError) as e:
        logger.warning(
            f"Tournament {tournament.get('id')} has an invalid prize configuration: {e}"
        )
        return None


def _registration_key(registration: Registration) -> str:
    return str(registration.get("userId") or registration.get("id"))


def get_status_manager() -> TournamentStatusManager:
    """Return the app's status manager, building it on first use."""
    manager = current_app.extensions.get(EXTENSION_KEY)
    if manager is None:
        manager = TournamentStatusManager.from_firestore(config=current_app.config)
        current_app.extensions[EXTENSION_KEY] = manager
    return manager


class TournamentService:
    """Handles authoring of new tournaments."""

    @staticmethod
    def create_tournament(data: dict[str, Any], db: Client | None = None) -> str:
        """Create an upcoming tournament and return its ID.

        Raises:
            ValidationError: If the configured prizes exceed the prize pool.
        """
        distribution = compute_distribution(
            data.get("entry_fee"),
            data.get("total_players"),
            data.get("company_commission_percentage"),
            data.get("first_prize"),
            data.get("per_kill_reward"),
            data.get("match_type"),
        )
        if not distribution.is_distribution_within_budget:
            raise ValidationError(
                "Total prize distribution exceeds the prize pool "
                f"({distribution.total_prize_distribution:.2f} > "
                f"{distribution.prize_pool:.2f})."
            )

        start_time = data["start_time"]
        if start_time.tzinfo is None:
            start_time = start_time.replace(tzinfo=datetime.timezone.utc)

        payload = {
            "title": data["title"],
            "status": STATUS_UPCOMING,
            "startTime": start_time,
            "matchType": (data.get("match_type") or MATCH_TYPE_SQUAD).lower(),
            "roomId": data.get("room_id") or None,
            "roomPassword": data.get("room_password") or None,
            "entryFee": data.get("entry_fee") or 0,
            "totalPlayers": data.get("total_players") or 0,
            "maxTeams": data.get("max_teams") or data.get("total_players") or 0,
            "registeredTeams": 0,
            "companyCommissionPercentage": data.get("company_commission_percentage")
            or 0,
            "firstPrize": data.get("first_prize") or 0,
            "perKillReward": data.get("per_kill_reward") or 0,
            "prizePool": distribution.prize_pool,
        }
        return FirestoreTournamentRepository(db).create(payload)
