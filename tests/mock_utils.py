"""mockfirestore patches for the Firestore calls the repositories make."""

from typing import Any, Optional

from mockfirestore import CollectionReference, Query
from mockfirestore.document import DocumentReference


class FakeTransaction:
    """Applies transactional writes straight to mockfirestore documents."""

    def __init__(self) -> None:
        self.updates: list[tuple[Any, Any]] = []

    def update(self, ref: Any, data: Any) -> None:
        self.updates.append((ref, data))
        ref.update(data)


def _filtered_where(
    self: Any,
    field_path: Optional[str] = None,
    op_string: Optional[str] = None,
    value: Any = None,
    filter: Any = None,
) -> Any:
    """Accept the keyword-only FieldFilter form of where()."""
    if filter is not None:
        return self._where(filter.field_path, filter.op_string, filter.value)
    return self._where(field_path, op_string, value)


def _transactional_get(self: Any, transaction: Any = None) -> Any:
    return self._orig_get()


def patch_mockfirestore() -> None:
    """Teach mockfirestore about FieldFilter queries and get(transaction=...)."""
    for cls in (CollectionReference, Query):
        if not hasattr(cls, "_where"):
            cls._where = cls.where
            cls.where = _filtered_where

    if not hasattr(DocumentReference, "_orig_get"):
        DocumentReference._orig_get = DocumentReference.get
        DocumentReference.get = _transactional_get
