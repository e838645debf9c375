"""Firestore-backed collaborators for the tournament status manager."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, cast

from firebase_admin import firestore
from google.api_core.exceptions import GoogleAPICallError

from arenadmin.constants import (
    ANNOUNCEMENTS_COLLECTION,
    NON_TERMINAL_STATUSES,
    NOTIFICATION_PRIORITY_HIGH,
    NOTIFICATION_TYPE_TOURNAMENT,
    NOTIFICATIONS_COLLECTION,
    REGISTRATIONS_COLLECTION,
    SYSTEM_USER,
    TOURNAMENTS_COLLECTION,
)
from arenadmin.errors import ConflictError, NotFoundError, RepositoryError, SinkError

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction

    from .models import Registration, Tournament


class TournamentRepository(Protocol):
    def list_non_terminal(self) -> list[Tournament]: ...

    def get(self, tournament_id: str) -> Tournament: ...

    def update_status(
        self, tournament_id: str, new_status: str, expected_status: str
    ) -> None: ...


class RegistrationRepository(Protocol):
    def list_by_tournament(self, tournament_id: str) -> list[Registration]: ...


class NotificationSink(Protocol):
    def create_user_notification(
        self,
        user_id: str,
        title: str,
        body: str,
        tournament_id: str,
        priority: str = NOTIFICATION_PRIORITY_HIGH,
    ) -> None: ...

    def create_announcement(self, title: str, body: str, tournament_id: str) -> None: ...


def _snapshot_to_dict(doc: DocumentSnapshot) -> dict[str, Any]:
    data = doc.to_dict() or {}
    data["id"] = doc.id
    return data


def _compare_and_set_status(
    transaction: Transaction,
    ref: DocumentReference,
    new_status: str,
    expected_status: str,
) -> None:
    """Write new_status only if the stored status is still expected_status."""
    snapshot = cast(Any, ref.get(transaction=transaction))
    if not snapshot.exists:
        raise NotFoundError(f"Tournament {ref.id} not found.")

    current_status = (snapshot.to_dict() or {}).get("status")
    if current_status != expected_status:
        raise ConflictError(
            f"Tournament {ref.id} is {current_status}, expected {expected_status}."
        )

    transaction.update(
        ref, {"status": new_status, "updatedAt": firestore.SERVER_TIMESTAMP}
    )


class FirestoreTournamentRepository:
    """Reads tournaments and guards their status field."""

    def __init__(self, db: Client | None = None) -> None:
        self.db = db if db is not None else firestore.client()

    def _collection(self) -> Any:
        return self.db.collection(TOURNAMENTS_COLLECTION)

    def list_non_terminal(self) -> list[Tournament]:
        """Fetch every upcoming or live tournament."""
        results: dict[str, Any] = {}
        try:
            for status in NON_TERMINAL_STATUSES:
                docs = (
                    self._collection()
                    .where(filter=firestore.FieldFilter("status", "==", status))
                    .stream()
                )
                for doc in docs:
                    results[doc.id] = _snapshot_to_dict(doc)
        except GoogleAPICallError as e:
            raise RepositoryError(f"Failed to list tournaments: {e}") from e
        return list(results.values())

    def get(self, tournament_id: str) -> Tournament:
        try:
            doc = cast(Any, self._collection().document(tournament_id).get())
        except GoogleAPICallError as e:
            raise RepositoryError(
                f"Failed to fetch tournament {tournament_id}: {e}"
            ) from e
        if not doc.exists:
            raise NotFoundError(f"Tournament {tournament_id} not found.")
        return cast("Tournament", _snapshot_to_dict(doc))

    def update_status(
        self, tournament_id: str, new_status: str, expected_status: str
    ) -> None:
        """Transactionally move a tournament from expected_status to new_status.

        Raises:
            ConflictError: If the stored status is no longer expected_status.
            NotFoundError: If the tournament does not exist.
            RepositoryError: If Firestore rejects the transaction.
        """
        ref = self._collection().document(tournament_id)
        transaction = self.db.transaction()
        try:
            firestore.transactional(_compare_and_set_status)(
                transaction, ref, new_status, expected_status
            )
        except GoogleAPICallError as e:
            raise RepositoryError(
                f"Failed to update tournament {tournament_id}: {e}"
            ) from e

    def create(self, data: dict[str, Any]) -> str:
        """Create a tournament and return its ID."""
        payload = {
            **data,
            "createdAt": firestore.SERVER_TIMESTAMP,
            "updatedAt": firestore.SERVER_TIMESTAMP,
        }
        try:
            _, ref = self._collection().add(payload)
        except GoogleAPICallError as e:
            raise RepositoryError(f"Failed to create tournament: {e}") from e
        return str(ref.id)


class FirestoreRegistrationRepository:
    def __init__(self, db: Client | None = None) -> None:
        self.db = db if db is not None else firestore.client()

    def list_by_tournament(self, tournament_id: str) -> list[Registration]:
        try:
            docs = (
                self.db.collection(REGISTRATIONS_COLLECTION)
                .where(filter=firestore.FieldFilter("tournamentId", "==", tournament_id))
                .stream()
            )
            return [cast("Registration", _snapshot_to_dict(doc)) for doc in docs]
        except GoogleAPICallError as e:
            raise RepositoryError(
                f"Failed to list registrations for {tournament_id}: {e}"
            ) from e


class FirestoreNotificationSink:
    """Persists per-user notifications and broadcast announcements."""

    def __init__(self, db: Client | None = None) -> None:
        self.db = db if db is not None else firestore.client()

    def create_user_notification(
        self,
        user_id: str,
        title: str,
        body: str,
        tournament_id: str,
        priority: str = NOTIFICATION_PRIORITY_HIGH,
    ) -> None:
        try:
            self.db.collection(NOTIFICATIONS_COLLECTION).add({
                "userId": user_id,
                "title": title,
                "message": body,
                "type": NOTIFICATION_TYPE_TOURNAMENT,
                "tournamentId": tournament_id,
                "isRead": False,
                "priority": priority,
                "createdAt": firestore.SERVER_TIMESTAMP,
            })
        except GoogleAPICallError as e:
            raise SinkError(f"Failed to notify user {user_id}: {e}") from e

    def create_announcement(self, title: str, body: str, tournament_id: str) -> None:
        try:
            self.db.collection(ANNOUNCEMENTS_COLLECTION).add({
                "title": title,
                "message": body,
                "type": NOTIFICATION_TYPE_TOURNAMENT,
                "tournamentId": tournament_id,
                "targetAudience": "specific",
                "sendAsPush": True,
                "sendAsEmail": False,
                "createdBy": SYSTEM_USER,
                "isActive": True,
                "createdAt": firestore.SERVER_TIMESTAMP,
            })
        except GoogleAPICallError as e:
            raise SinkError(
                f"Failed to create announcement for {tournament_id}: {e}"
            ) from e
