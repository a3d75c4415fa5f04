from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from app.models.schedule import ClassType
from app.services.booking.intervals import format_hhmm
from app.services.booking.records import Booking, BookingCandidate, ResourceKind
from app.services.booking.store import ScheduleStore

logger = logging.getLogger(__name__)


class ConflictEntity(str, Enum):
    classroom = "Classroom"
    professor = "Professor"
    batch = "Batch"


# Reporting priority when one row matches on several dimensions.
DIMENSION_PRIORITY: tuple[tuple[ResourceKind, ConflictEntity], ...] = (
    (ResourceKind.classroom, ConflictEntity.classroom),
    (ResourceKind.professor, ConflictEntity.professor),
    (ResourceKind.batch, ConflictEntity.batch),
)


def conflicting_dimension(existing: Booking, candidate: BookingCandidate) -> ResourceKind | None:
    for kind, _ in DIMENSION_PRIORITY:
        if existing.resource_id(kind) == candidate.resource_id(kind):
            return kind
    return None


@dataclass(frozen=True)
class ConflictDescriptor:
    entity: ConflictEntity
    entity_label: str
    conflicting_recurrence: ClassType
    conflicting_time_label: str
    existing_start: str
    existing_end: str
    schedule_id: int

    @property
    def message(self) -> str:
        return (
            f"Conflict: {self.entity.value} ({self.entity_label}) is already booked for a "
            f"{self.conflicting_recurrence.value} class "
            f"({self.conflicting_time_label} {self.existing_start}-{self.existing_end})."
        )

    def as_dict(self) -> dict:
        return {
            "entity": self.entity.value,
            "entityLabel": self.entity_label,
            "conflictingRecurrence": self.conflicting_recurrence.value,
            "conflictingTimeLabel": self.conflicting_time_label,
            "existingStart": self.existing_start,
            "existingEnd": self.existing_end,
            "scheduleId": self.schedule_id,
        }


class ConflictDetector:
    def __init__(self, store: ScheduleStore) -> None:
        self.store = store

    async def detect(self, candidate: BookingCandidate, *, lock: bool = True) -> ConflictDescriptor | None:
        """Return a descriptor for the first clashing booking, or None when the slot is clear.

        The read is issued with row locks when ``lock`` is set, so the caller must
        run it inside the transaction that will insert the candidate.
        """
        matches = await self.store.find_conflicting(candidate, lock=lock, limit=1)
        if not matches:
            return None

        existing = matches[0]
        kind = conflicting_dimension(existing, candidate)
        if kind is None:  # pragma: no cover - the query only returns rows sharing a dimension
            raise RuntimeError(f"Schedule {existing.schedule_id} matched without a shared resource")

        entity = dict(DIMENSION_PRIORITY)[kind]
        label = await self.store.resource_label(kind, existing.resource_id(kind))
        descriptor = ConflictDescriptor(
            entity=entity,
            entity_label=label,
            conflicting_recurrence=existing.class_type,
            conflicting_time_label=existing.time_label,
            existing_start=format_hhmm(existing.start_time),
            existing_end=format_hhmm(existing.end_time),
            schedule_id=existing.schedule_id,
        )
        logger.debug("Candidate %s clashes with schedule %s on %s", candidate, existing.schedule_id, kind.value)
        return descriptor
