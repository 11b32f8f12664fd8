"""Volatile in-process storage for users, requests, travelers, legs and stays.

One ``EntityStore`` is built at process start and handed to the lifecycle
service. Each entity type lives in its own ``EntityCollection`` with a
monotonic id counter. Writes that span collections go through
``EntityStore.transaction`` so they are applied all-or-nothing.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from .errors import NotFoundError
from .models import (
    Accommodation,
    Record,
    RequestStatus,
    Transportation,
    Traveler,
    TravelRequest,
    User,
)

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=Record)


@dataclass
class EntityCollection(Generic[RecordT]):
    """Keyed collection of immutable records with monotonic id assignment.

    Attributes:
        model: Record class built by ``create``
        name: Entity name used in errors and logs
        parent_field: Attribute holding the parent id, if the entity has one
    """

    model: type[RecordT]
    name: str
    parent_field: str | None = None

    _items: dict[int, RecordT] = field(default_factory=dict, repr=False)
    _next_id: int = field(default=1, repr=False)

    def create(self, fields: Mapping[str, object]) -> RecordT:
        """Assign the next id, store an immutable snapshot and return it."""

        entity = self.model.model_validate({**fields, "id": self._next_id})
        self._next_id += 1
        self._items[entity.id] = entity
        logger.debug("Created %s %s", self.name, entity.id)
        return entity

    def get(self, entity_id: int) -> RecordT | None:
        return self._items.get(entity_id)

    def require(self, entity_id: int) -> RecordT:
        """Return the entity or raise ``NotFoundError``."""

        entity = self._items.get(entity_id)
        if entity is None:
            logger.debug("Lookup of %s %s found nothing", self.name, entity_id)
            raise NotFoundError.for_entity(self.name, entity_id)
        return entity

    def list_all(self) -> list[RecordT]:
        """Return every entity in insertion order."""

        return list(self._items.values())

    def list_by_parent(self, parent_id: int) -> list[RecordT]:
        """Return entities whose parent id matches, in insertion order."""

        if self.parent_field is None:
            raise TypeError(f"{self.name} records have no parent reference")
        return [
            entity
            for entity in self._items.values()
            if getattr(entity, self.parent_field) == parent_id
        ]

    def replace(self, entity: RecordT) -> RecordT:
        """Swap the stored snapshot for an existing id."""

        if entity.id not in self._items:
            raise NotFoundError.for_entity(self.name, entity.id)
        self._items[entity.id] = entity
        return entity

    def checkpoint(self) -> dict[int, RecordT]:
        return dict(self._items)

    def restore(self, items: dict[int, RecordT]) -> None:
        # The id counter is left alone so rolled-back ids are never handed out again.
        self._items = dict(items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._items


@dataclass
class EntityStore:
    """All entity collections plus the lock that serializes writes."""

    users: EntityCollection[User] = field(
        default_factory=lambda: EntityCollection(User, "User")
    )
    travel_requests: EntityCollection[TravelRequest] = field(
        default_factory=lambda: EntityCollection(TravelRequest, "TravelRequest", "user_id")
    )
    travelers: EntityCollection[Traveler] = field(
        default_factory=lambda: EntityCollection(Traveler, "Traveler", "request_id")
    )
    transportation: EntityCollection[Transportation] = field(
        default_factory=lambda: EntityCollection(
            Transportation, "Transportation", "traveler_id"
        )
    )
    accommodation: EntityCollection[Accommodation] = field(
        default_factory=lambda: EntityCollection(
            Accommodation, "Accommodation", "traveler_id"
        )
    )
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def _collections(self) -> tuple[EntityCollection, ...]:
        return (
            self.users,
            self.travel_requests,
            self.travelers,
            self.transportation,
            self.accommodation,
        )

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @contextmanager
    def transaction(self) -> Iterator[EntityStore]:
        """Hold the store lock; on error, undo every write made inside the block."""

        with self._lock:
            saved = [collection.checkpoint() for collection in self._collections()]
            try:
                yield self
            except BaseException:
                for collection, state in zip(self._collections(), saved):
                    collection.restore(state)
                logger.warning("Rolled back store transaction")
                raise

    def get_user_by_username(self, username: str) -> User | None:
        return next(
            (user for user in self.users.list_all() if user.username == username),
            None,
        )

    def update_status(self, request_id: int, status: RequestStatus) -> TravelRequest:
        """Store a copy of the request with the new status."""

        with self._lock:
            current = self.travel_requests.require(request_id)
            updated = current.model_copy(update={"status": status})
            return self.travel_requests.replace(updated)
