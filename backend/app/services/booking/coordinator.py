from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Callable
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import AppError, ConflictError, PersistenceError, ReferentialError, ValidationError
from app.schemas.booking import ExtraClassBookingRequest
from app.services.booking.detector import ConflictDescriptor, ConflictDetector
from app.services.booking.locking import BookingLockStrategy, lock_keys
from app.services.booking.records import Booking, BookingCandidate
from app.services.booking.store import ScheduleStore
from app.services.booking.validation import validate_booking_request

logger = logging.getLogger(__name__)

BOOKED_MESSAGE = "Extra class booked successfully!"


def campus_clock(timezone_name: str) -> Callable[[], date]:
    zone = ZoneInfo(timezone_name)

    def today() -> date:
        return datetime.now(zone).date()

    return today


class BookingOutcome(str, Enum):
    committed = "committed"
    conflict = "conflict"
    invalid = "invalid"
    referential = "referential"
    failed = "failed"


_OUTCOME_BY_ERROR: dict[type[AppError], BookingOutcome] = {
    ValidationError: BookingOutcome.invalid,
    ConflictError: BookingOutcome.conflict,
    ReferentialError: BookingOutcome.referential,
    PersistenceError: BookingOutcome.failed,
}


@dataclass(frozen=True)
class BookingResult:
    outcome: BookingOutcome
    status_code: int
    message: str
    schedule_id: int | None = None
    conflict: ConflictDescriptor | None = None
    field: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome == BookingOutcome.committed

    @classmethod
    def committed(cls, booking: Booking) -> "BookingResult":
        return cls(BookingOutcome.committed, 201, BOOKED_MESSAGE, schedule_id=booking.schedule_id)

    @classmethod
    def from_error(cls, error: AppError) -> "BookingResult":
        return cls(
            outcome=_OUTCOME_BY_ERROR.get(type(error), BookingOutcome.failed),
            status_code=error.status_code,
            message=error.message,
            conflict=getattr(error, "conflict", None),
            field=getattr(error, "field", None),
        )


class BookingCoordinator:
    """Admits Extra bookings one transaction at a time per contended resource.

    Validated -> Locking -> (Conflict -> Aborted | Clear -> Inserted -> Committed).
    Every outcome, including unexpected faults, comes back as a ``BookingResult``.
    The coordinator never retries.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        lock_strategy: BookingLockStrategy,
        *,
        timeout_seconds: float = 15.0,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._session_factory = session_factory
        self._lock_strategy = lock_strategy
        self._timeout_seconds = timeout_seconds
        self._clock = clock

    async def book_extra_class(self, request: ExtraClassBookingRequest, *, professor_id: int) -> BookingResult:
        logger.info("Professor %s attempting to book extra class: %s", professor_id, request.model_dump())
        try:
            candidate = validate_booking_request(request, professor_id=professor_id, today=self._clock())
        except ValidationError as exc:
            logger.info("Rejected booking request from professor %s: %s", professor_id, exc.message)
            return BookingResult.from_error(exc)
        except ReferentialError as exc:
            logger.warning("Booking for professor %s uses an out-of-range resource id: %s", professor_id, request)
            return BookingResult.from_error(exc)

        try:
            booking = await asyncio.wait_for(self.admit(candidate), timeout=self._timeout_seconds)
        except ConflictError as exc:
            logger.warning("Booking conflict detected for professor %s: %s", professor_id, exc.message)
            return BookingResult.from_error(exc)
        except ReferentialError as exc:
            logger.warning("Booking for professor %s references unknown resources: %s", professor_id, candidate)
            return BookingResult.from_error(exc)
        except asyncio.TimeoutError:
            logger.error(
                "Booking transaction for professor %s exceeded %.1fs and was rolled back",
                professor_id,
                self._timeout_seconds,
            )
            return BookingResult.from_error(PersistenceError())
        except PersistenceError as exc:
            logger.error("Persistence failure booking for professor %s: %s", professor_id, exc.message)
            return BookingResult.from_error(exc)
        except Exception:
            logger.exception("Error booking extra class for professor %s", professor_id)
            return BookingResult.from_error(PersistenceError())

        logger.info(
            "Extra class booked successfully for professor %s, schedule ID: %s", professor_id, booking.schedule_id
        )
        return BookingResult.committed(booking)

    async def admit(self, candidate: BookingCandidate) -> Booking:
        """Check and insert ``candidate`` atomically; raises on conflict or failure."""
        keys = lock_keys(candidate)
        async with self._lock_strategy.hold(keys):
            async with self._session_factory() as session:
                async with session.begin():
                    await self._lock_strategy.acquire_in_transaction(session, keys)
                    store = ScheduleStore(session)
                    conflict = await ConflictDetector(store).detect(candidate, lock=True)
                    if conflict is not None:
                        raise ConflictError(conflict)
                    booking = await store.insert(candidate)
        return booking
