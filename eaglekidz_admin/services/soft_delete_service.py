"""Soft delete bookkeeping for a page view.

Reviews and people are never removed in one step. A *soft delete* sets
their ``deleted`` flag on the backend; the record stays restorable
until it is *hard deleted* (purged). Pages show two lists side by side,
the active records and the deleted ones, and move records between them
as the user acts:

``active`` --delete--> ``deleted`` --hard_delete--> purged
``deleted`` --restore--> ``active``

:class:`SoftDeleteLedger` holds both lists for one view and performs
those moves. The backend call always happens first; the lists change
only once it succeeded, so a failed call leaves them untouched. The
moved record is the copy the backend returned. When the backend
returns nothing, the ledger re-fetches both lists if it was given a
``reload`` callable, and flips the local copy's flag only as a last
resort.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, replace
from typing import Callable, Generic, List, Optional, Sequence, Set, Tuple, TypeVar

from ..errors import NotFoundError
from ..models import Envelope

logger = logging.getLogger(__name__)

E = TypeVar("E")


class LifecycleState(enum.Enum):
    ACTIVE = "active"
    DELETED = "deleted"
    PURGED = "purged"


@dataclass(frozen=True)
class SoftDeleteGateway:
    """The backend calls behind the three transitions.

    Each callable takes an entity id and returns the backend envelope.
    ``reload`` returns fresh ``(active, deleted)`` lists.
    """
    soft_delete: Callable[[str], Envelope]
    restore: Callable[[str], Envelope]
    hard_delete: Callable[[str], Envelope]
    reload: Optional[Callable[[], Tuple[Sequence, Sequence]]] = None


class SoftDeleteLedger(Generic[E]):
    """Active and deleted partitions of one entity list.

    Entities must expose ``id`` and ``deleted`` and be dataclasses.
    """

    def __init__(self, active: Sequence[E], deleted: Sequence[E], gateway: SoftDeleteGateway) -> None:
        self.active: List[E] = list(active)
        self.deleted: List[E] = list(deleted)
        self._gateway = gateway
        self._purged: Set[str] = set()

    def state(self, entity_id: str) -> LifecycleState:
        if any(e.id == entity_id for e in self.active):
            return LifecycleState.ACTIVE
        if any(e.id == entity_id for e in self.deleted):
            return LifecycleState.DELETED
        return LifecycleState.PURGED

    def delete(self, entity_id: str) -> E:
        """Soft delete an active entity and move it to the deleted list."""
        entity = self._require(self.active, entity_id, "Only active records can be deleted.")
        envelope = self._gateway.soft_delete(entity_id)
        updated = self._settle(envelope, entity, deleted=True)
        logger.info("Soft deleted %s", entity_id)
        return updated

    def restore(self, entity_id: str) -> E:
        """Restore a soft-deleted entity to the active list."""
        entity = self._require(self.deleted, entity_id, "Only deleted records can be restored.")
        envelope = self._gateway.restore(entity_id)
        updated = self._settle(envelope, entity, deleted=False)
        logger.info("Restored %s", entity_id)
        return updated

    def hard_delete(self, entity_id: str) -> None:
        """Permanently delete a soft-deleted entity.

        Afterwards the entity is in neither list and cannot be restored.
        """
        self._require(self.deleted, entity_id, "Only deleted records can be permanently deleted.")
        self._gateway.hard_delete(entity_id)
        self.deleted = [e for e in self.deleted if e.id != entity_id]
        self._purged.add(entity_id)
        logger.info("Permanently deleted %s", entity_id)

    def _require(self, partition: List[E], entity_id: str, message: str) -> E:
        for entity in partition:
            if entity.id == entity_id:
                return entity
        if entity_id in self._purged:
            raise NotFoundError("This record was permanently deleted.")
        raise NotFoundError(message)

    def _settle(self, envelope: Envelope, entity: E, deleted: bool) -> E:
        returned = envelope.data if envelope.has_data and getattr(envelope.data, "id", None) == entity.id else None
        if returned is None and self._gateway.reload is not None:
            active, removed = self._gateway.reload()
            self.active, self.deleted = list(active), list(removed)
            target = self.deleted if deleted else self.active
            for candidate in target:
                if candidate.id == entity.id:
                    return candidate
            logger.warning("Record %s missing from reloaded %s list", entity.id, "deleted" if deleted else "active")
            return replace(entity, deleted=deleted)

        updated = replace(returned if returned is not None else entity, deleted=deleted)
        self.active = [e for e in self.active if e.id != entity.id]
        self.deleted = [e for e in self.deleted if e.id != entity.id]
        if deleted:
            self.deleted.append(updated)
        else:
            self.active.append(updated)
        return updated
