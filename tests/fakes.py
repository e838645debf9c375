"""In-memory collaborators for exercising the tournament status manager."""

from __future__ import annotations

import datetime
import threading
from typing import Any, Optional

from arenadmin.constants import NON_TERMINAL_STATUSES, STATUS_UPCOMING
from arenadmin.errors import ConflictError, NotFoundError, SinkError

NOW = datetime.datetime(2026, 10, 19, 12, 0, tzinfo=datetime.timezone.utc)


def make_tournament(
    tournament_id: str,
    status: str = STATUS_UPCOMING,
    start: Optional[datetime.datetime] = None,
    **extra: Any,
) -> dict[str, Any]:
    data = {
        "id": tournament_id,
        "title": f"Cup {tournament_id}",
        "status": status,
        "startTime": start if start is not None else NOW - datetime.timedelta(minutes=1),
        "registeredTeams": 2,
        "maxTeams": 25,
    }
    data.update(extra)
    return data


class InMemoryTournamentRepository:
    """Tournament store with a compare-and-swap status write."""

    def __init__(self, tournaments: Any = ()) -> None:
        self._guard = threading.Lock()
        self._docs = {t["id"]: dict(t) for t in tournaments}
        self.status_writes: list[tuple[str, str, str]] = []
        self.list_error: Optional[Exception] = None
        self.update_errors: dict[str, Exception] = {}
        self.read_barrier: Optional[threading.Barrier] = None

    def _wait_for_racers(self) -> None:
        if self.read_barrier is not None:
            self.read_barrier.wait()

    def list_non_terminal(self) -> list[dict[str, Any]]:
        if self.list_error is not None:
            raise self.list_error
        with self._guard:
            snapshot = [
                dict(t)
                for t in self._docs.values()
                if t.get("status") in NON_TERMINAL_STATUSES
            ]
        self._wait_for_racers()
        return snapshot

    def get(self, tournament_id: str) -> dict[str, Any]:
        with self._guard:
            if tournament_id not in self._docs:
                raise NotFoundError(f"Tournament {tournament_id} not found.")
            snapshot = dict(self._docs[tournament_id])
        self._wait_for_racers()
        return snapshot

    def update_status(
        self, tournament_id: str, new_status: str, expected_status: str
    ) -> None:
        if tournament_id in self.update_errors:
            raise self.update_errors[tournament_id]
        with self._guard:
            doc = self._docs.get(tournament_id)
            if doc is None:
                raise NotFoundError(f"Tournament {tournament_id} not found.")
            if doc.get("status") != expected_status:
                raise ConflictError(
                    f"Tournament {tournament_id} is {doc.get('status')}, "
                    f"expected {expected_status}."
                )
            doc["status"] = new_status
            self.status_writes.append((tournament_id, expected_status, new_status))

    def status_of(self, tournament_id: str) -> Optional[str]:
        with self._guard:
            return self._docs[tournament_id].get("status")

    def force_status(self, tournament_id: str, status: str) -> None:
        with self._guard:
            self._docs[tournament_id]["status"] = status


class InMemoryRegistrationRepository:
    def __init__(self, registrations: Optional[dict[str, list[str]]] = None) -> None:
        self._by_tournament = {
            tournament_id: [
                {"id": f"{tournament_id}-{user_id}", "userId": user_id, "tournamentId": tournament_id}
                for user_id in user_ids
            ]
            for tournament_id, user_ids in (registrations or {}).items()
        }
        self.list_error: Optional[Exception] = None

    def add_raw(self, tournament_id: str, registration: dict[str, Any]) -> None:
        self._by_tournament.setdefault(tournament_id, []).append(registration)

    def list_by_tournament(self, tournament_id: str) -> list[dict[str, Any]]:
        if self.list_error is not None:
            raise self.list_error
        return [dict(r) for r in self._by_tournament.get(tournament_id, [])]


class RecordingNotificationSink:
    def __init__(
        self, failing_users: Any = (), fail_announcement: bool = False
    ) -> None:
        self._guard = threading.Lock()
        self.failing_users = set(failing_users)
        self.fail_announcement = fail_announcement
        self.notifications: list[dict[str, Any]] = []
        self.announcements: list[dict[str, Any]] = []
        self.attempted_users: list[str] = []

    def create_user_notification(
        self,
        user_id: str,
        title: str,
        body: str,
        tournament_id: str,
        priority: str = "high",
    ) -> None:
        with self._guard:
            self.attempted_users.append(user_id)
            if user_id in self.failing_users:
                raise SinkError(f"Failed to notify user {user_id}")
            self.notifications.append({
                "userId": user_id,
                "title": title,
                "message": body,
                "tournamentId": tournament_id,
                "priority": priority,
            })

    def create_announcement(self, title: str, body: str, tournament_id: str) -> None:
        with self._guard:
            if self.fail_announcement:
                raise SinkError(f"Failed to create announcement for {tournament_id}")
            self.announcements.append(
                {"title": title, "message": body, "tournamentId": tournament_id}
            )

    def notifications_for(self, tournament_id: str) -> list[dict[str, Any]]:
        return [n for n in self.notifications if n["tournamentId"] == tournament_id]

    def announcements_for(self, tournament_id: str) -> list[dict[str, Any]]:
        return [a for a in self.announcements if a["tournamentId"] == tournament_id]
