"""Admission engine: decides confirmed / waitlisted / rejected for a submission.

``admit`` is a pure transition function over a snapshot of the workshop
counters. ``AdmissionService`` persists its decision with a conditional
UPDATE guarded by the same capacity predicate, so concurrent submissions can
never push ``registered_count`` past a finite capacity. When the guard fails
the decision is recomputed from freshly read counters, a bounded number of
times.
"""

import enum
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, or_, update
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, select

from workshop_registry.errors import (
    PersistenceConflict,
    PersistenceUnavailable,
    WorkshopNotFoundError,
)
from workshop_registry.models.registration import (
    SEATED_STATUSES,
    Registration,
    RegistrationStatus,
)
from workshop_registry.models.waitlist import WaitlistEntry
from workshop_registry.models.workshop import Workshop, registration_close_time

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3


class AdmissionState(str, enum.Enum):
    OPEN = "open"
    FULL_NO_WAITLIST = "full_no_waitlist"
    FULL_WITH_WAITLIST = "full_with_waitlist"
    CLOSED = "closed"


class OutcomeKind(str, enum.Enum):
    ACCEPTED = "accepted"
    WAITLISTED = "waitlisted"
    REJECTED = "rejected"


class RejectionReason(str, enum.Enum):
    CLOSED = "closed"
    FULL = "full"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class CounterDelta:
    registered_count: int = 0
    waitlist_count: int = 0


@dataclass(frozen=True)
class Outcome:
    kind: OutcomeKind
    status: Optional[RegistrationStatus] = None
    waitlist_position: Optional[int] = None
    reason: Optional[RejectionReason] = None
    delta: CounterDelta = field(default_factory=CounterDelta)

    @classmethod
    def accepted(cls, status: RegistrationStatus) -> "Outcome":
        return cls(
            kind=OutcomeKind.ACCEPTED,
            status=status,
            delta=CounterDelta(registered_count=1),
        )

    @classmethod
    def waitlisted(cls, position: int) -> "Outcome":
        return cls(
            kind=OutcomeKind.WAITLISTED,
            status=RegistrationStatus.WAITLIST,
            waitlist_position=position,
            delta=CounterDelta(waitlist_count=1),
        )

    @classmethod
    def rejected(cls, reason: RejectionReason) -> "Outcome":
        return cls(kind=OutcomeKind.REJECTED, reason=reason)

    @property
    def is_admitted(self) -> bool:
        return self.kind != OutcomeKind.REJECTED


@dataclass(frozen=True)
class WorkshopCounters:
    """Snapshot of the admission-relevant state of one workshop"""

    workshop_id: uuid.UUID
    capacity: Optional[int]
    registered_count: int
    waitlist_count: int
    enable_waitlist: bool
    require_approval: bool
    closes_at: Optional[datetime] = None

    @property
    def unlimited(self) -> bool:
        return not self.capacity

    @classmethod
    def from_workshop(cls, workshop: Workshop) -> "WorkshopCounters":
        return cls(
            workshop_id=workshop.id,
            capacity=workshop.capacity,
            registered_count=workshop.registered_count or 0,
            waitlist_count=workshop.waitlist_count or 0,
            enable_waitlist=bool(workshop.enable_waitlist),
            require_approval=bool(workshop.require_approval),
            closes_at=registration_close_time(workshop),
        )


def _utc_now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def admission_state(
    counters: WorkshopCounters, now: Optional[datetime] = None
) -> AdmissionState:
    now = _utc_now(now)
    if counters.closes_at is not None and now >= counters.closes_at:
        return AdmissionState.CLOSED
    if counters.unlimited or counters.registered_count < counters.capacity:
        return AdmissionState.OPEN
    if counters.enable_waitlist:
        return AdmissionState.FULL_WITH_WAITLIST
    return AdmissionState.FULL_NO_WAITLIST


def admit(counters: WorkshopCounters, now: Optional[datetime] = None) -> Outcome:
    """Decide the fate of a validated submission against a counter snapshot"""
    state = admission_state(counters, now)

    if state == AdmissionState.CLOSED:
        return Outcome.rejected(RejectionReason.CLOSED)
    if state == AdmissionState.OPEN:
        status = (
            RegistrationStatus.PENDING
            if counters.require_approval
            else RegistrationStatus.CONFIRMED
        )
        return Outcome.accepted(status)
    if state == AdmissionState.FULL_NO_WAITLIST:
        return Outcome.rejected(RejectionReason.FULL)
    return Outcome.waitlisted(counters.waitlist_count + 1)


def _has_free_slot():
    return or_(
        Workshop.capacity.is_(None),
        Workshop.capacity == 0,
        Workshop.registered_count < Workshop.capacity,
    )


class AdmissionService:
    """Owns every change to a workshop's registered/waitlist counters"""

    def __init__(self, db_session: Session, max_attempts: int = DEFAULT_MAX_ATTEMPTS):
        self.db = db_session
        self.max_attempts = max(1, max_attempts)

    def read_counters(self, workshop_id: uuid.UUID) -> WorkshopCounters:
        """Read the current counters, bypassing any stale copy in the session"""
        statement = (
            select(Workshop)
            .where(Workshop.id == workshop_id)
            .execution_options(populate_existing=True)
        )
        workshop = self.db.exec(statement).first()
        if not workshop:
            raise WorkshopNotFoundError(workshop_id)
        return WorkshopCounters.from_workshop(workshop)

    def apply_counter_delta(self, counters: WorkshopCounters, outcome: Outcome) -> bool:
        """
        Apply the outcome's counter delta as one conditional UPDATE.

        The WHERE clause re-checks the predicate ``admit`` used, so the write
        only lands if the workshop is still in the state the decision was made
        in. Does not commit.

        Returns:
            False when the precondition no longer holds
        """
        now = datetime.now(timezone.utc)
        if outcome.kind == OutcomeKind.ACCEPTED:
            statement = (
                update(Workshop)
                .where(Workshop.id == counters.workshop_id, _has_free_slot())
                .values(
                    registered_count=Workshop.registered_count + 1, updated_at=now
                )
            )
        elif outcome.kind == OutcomeKind.WAITLISTED:
            statement = (
                update(Workshop)
                .where(
                    Workshop.id == counters.workshop_id,
                    Workshop.enable_waitlist.is_(True),
                    Workshop.capacity > 0,
                    Workshop.registered_count >= Workshop.capacity,
                    Workshop.waitlist_count == counters.waitlist_count,
                )
                .values(waitlist_count=Workshop.waitlist_count + 1, updated_at=now)
            )
        else:
            return True

        result = self.db.execute(
            statement.execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def append_to_waitlist(
        self, registration: Registration, position: int
    ) -> WaitlistEntry:
        """Add the registration at the tail of the workshop's waitlist. Does not commit."""
        entry = WaitlistEntry(
            workshop_id=registration.workshop_id,
            registration_id=registration.id,
            name=registration.name,
            email=registration.email,
            position=position,
        )
        self.db.add(entry)
        return entry

    def admit_and_record(
        self,
        workshop_id: uuid.UUID,
        registration: Registration,
        now: Optional[datetime] = None,
    ) -> Outcome:
        """
        Decide admission and persist the registration with its counter change.

        The registration row, counter update and waitlist entry commit in one
        transaction. Rejections write nothing.

        Raises:
            WorkshopNotFoundError: if the workshop does not exist
            PersistenceUnavailable: if the database cannot be reached
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                counters = self.read_counters(workshop_id)
                outcome = admit(counters, now)

                if outcome.kind == OutcomeKind.REJECTED:
                    logger.info(
                        f"Registration for workshop {workshop_id} rejected: {outcome.reason.value}"
                    )
                    return outcome

                if not self.apply_counter_delta(counters, outcome):
                    raise PersistenceConflict(
                        f"Counters for workshop {workshop_id} changed during admission"
                    )

                registration.workshop_id = workshop_id
                registration.status = outcome.status
                registration.waitlist_position = outcome.waitlist_position
                registration.updated_at = datetime.now(timezone.utc)
                self.db.add(registration)
                self.db.flush()

                if outcome.kind == OutcomeKind.WAITLISTED:
                    self.append_to_waitlist(registration, outcome.waitlist_position)

                self.db.commit()

            except PersistenceConflict as e:
                self.db.rollback()
                logger.warning(f"{e} (attempt {attempt}/{self.max_attempts})")
                continue
            except OperationalError as e:
                self.db.rollback()
                logger.error(f"Database unavailable while admitting registration: {e}")
                raise PersistenceUnavailable("Registration storage is unavailable") from e

            self.db.refresh(registration)
            if outcome.kind == OutcomeKind.WAITLISTED:
                logger.info(
                    f"Registration {registration.id} waitlisted for workshop {workshop_id} "
                    f"at position {outcome.waitlist_position}"
                )
            else:
                logger.info(
                    f"Registration {registration.id} accepted for workshop {workshop_id} "
                    f"as {outcome.status.value}"
                )
            return outcome

        logger.warning(
            f"Giving up on workshop {workshop_id} after {self.max_attempts} conflicting attempts"
        )
        return Outcome.rejected(RejectionReason.FULL)

    def change_status(
        self,
        registration: Registration,
        expected: RegistrationStatus,
        new_status: RegistrationStatus,
    ) -> bool:
        """
        Move a registration from ``expected`` to ``new_status`` with one
        conditional UPDATE. Does not commit.

        Returns:
            False when another request changed the status first
        """
        result = self.db.execute(
            update(Registration)
            .where(Registration.id == registration.id, Registration.status == expected)
            .values(status=new_status, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def _close_waitlist_gap(self, workshop_id: uuid.UUID, position: Optional[int]) -> None:
        if position is not None:
            # Positions stay 1..n in arrival order
            self.db.execute(
                update(WaitlistEntry)
                .where(
                    WaitlistEntry.workshop_id == workshop_id,
                    WaitlistEntry.position > position,
                )
                .values(position=WaitlistEntry.position - 1)
                .execution_options(synchronize_session=False)
            )
            self.db.execute(
                update(Registration)
                .where(
                    Registration.workshop_id == workshop_id,
                    Registration.status == RegistrationStatus.WAITLIST,
                    Registration.waitlist_position > position,
                )
                .values(waitlist_position=Registration.waitlist_position - 1)
                .execution_options(synchronize_session=False)
            )

        self.db.execute(
            update(Workshop)
            .where(Workshop.id == workshop_id, Workshop.waitlist_count > 0)
            .values(
                waitlist_count=Workshop.waitlist_count - 1,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )

    def _remove_from_waitlist(self, registration: Registration) -> None:
        position = registration.waitlist_position
        entry = self.db.exec(
            select(WaitlistEntry).where(WaitlistEntry.registration_id == registration.id)
        ).first()
        if entry:
            position = entry.position
            self.db.delete(entry)
            self.db.flush()

        self._close_waitlist_gap(registration.workshop_id, position)
        registration.waitlist_position = None

    def release_slot(self, registration: Registration, held: RegistrationStatus) -> None:
        """Give back the seat or waitlist place held in status ``held``. Does not commit."""
        if held in SEATED_STATUSES:
            self.db.execute(
                update(Workshop)
                .where(
                    Workshop.id == registration.workshop_id,
                    Workshop.registered_count > 0,
                )
                .values(
                    registered_count=Workshop.registered_count - 1,
                    updated_at=datetime.now(timezone.utc),
                )
                .execution_options(synchronize_session=False)
            )
        elif held == RegistrationStatus.WAITLIST:
            self._remove_from_waitlist(registration)

    def cancel(self, registration: Registration) -> bool:
        """
        Cancel a registration and release what it held, in one transaction.

        The status change is the guard: only the request that moves the row
        out of the status it read gives the seat or waitlist place back.

        Returns:
            False when another request changed the registration first

        Raises:
            PersistenceUnavailable: if the database cannot be reached
        """
        held = RegistrationStatus(registration.status)
        try:
            if not self.change_status(registration, held, RegistrationStatus.CANCELLED):
                self.db.rollback()
                logger.warning(
                    f"Registration {registration.id} changed while it was being cancelled"
                )
                return False
            self.release_slot(registration, held)
            self.db.commit()
        except OperationalError as e:
            self.db.rollback()
            logger.error(f"Database unavailable while cancelling registration: {e}")
            raise PersistenceUnavailable("Registration storage is unavailable") from e

        self.db.refresh(registration)
        return True

    def _waitlist_head(self, workshop_id: uuid.UUID) -> Optional[WaitlistEntry]:
        return self.db.exec(
            select(WaitlistEntry)
            .where(WaitlistEntry.workshop_id == workshop_id)
            .order_by(WaitlistEntry.position, WaitlistEntry.created_at)
            .limit(1)
            .execution_options(populate_existing=True)
        ).first()

    def promote_from_waitlist(self, workshop_id: uuid.UUID) -> Optional[Registration]:
        """
        Move the head of the waitlist into a free seat.

        The head entry is claimed with a conditional DELETE before the seat
        is taken, so concurrent promotions never move the same registrant
        twice. A lost race re-reads the head, a bounded number of times.

        Returns:
            The promoted registration, or None when the waitlist is empty or
            the workshop has no free seat
        """
        for attempt in range(1, self.max_attempts + 1):
            head = self._waitlist_head(workshop_id)
            if not head:
                logger.info(f"Waitlist for workshop {workshop_id} is empty")
                return None
            head_id, registration_id, position = head.id, head.registration_id, head.position

            try:
                taken = self.db.execute(
                    delete(WaitlistEntry)
                    .where(WaitlistEntry.id == head_id)
                    .execution_options(synchronize_session=False)
                )
                if taken.rowcount != 1:
                    self.db.rollback()
                    logger.warning(
                        f"Waitlist head of workshop {workshop_id} was promoted elsewhere "
                        f"(attempt {attempt}/{self.max_attempts})"
                    )
                    continue

                claimed = self.db.execute(
                    update(Workshop)
                    .where(Workshop.id == workshop_id, _has_free_slot())
                    .values(
                        registered_count=Workshop.registered_count + 1,
                        updated_at=datetime.now(timezone.utc),
                    )
                    .execution_options(synchronize_session=False)
                )
                if claimed.rowcount != 1:
                    self.db.rollback()
                    logger.info(f"No free seat to promote into for workshop {workshop_id}")
                    return None

                seated = self.db.execute(
                    update(Registration)
                    .where(
                        Registration.id == registration_id,
                        Registration.status == RegistrationStatus.WAITLIST,
                    )
                    .values(
                        status=RegistrationStatus.CONFIRMED,
                        waitlist_position=None,
                        updated_at=datetime.now(timezone.utc),
                    )
                    .execution_options(synchronize_session=False)
                )
                if seated.rowcount != 1:
                    self.db.rollback()
                    logger.warning(
                        f"Registration {registration_id} left the waitlist before promotion "
                        f"(attempt {attempt}/{self.max_attempts})"
                    )
                    continue

                self._close_waitlist_gap(workshop_id, position)
                self.db.commit()
            except OperationalError as e:
                self.db.rollback()
                logger.error(f"Database unavailable while promoting from waitlist: {e}")
                raise PersistenceUnavailable("Registration storage is unavailable") from e

            registration = self.db.get(
                Registration, registration_id, populate_existing=True
            )
            logger.info(
                f"Promoted registration {registration.id} from waitlist of workshop {workshop_id}"
            )
            return registration

        logger.warning(
            f"Giving up promotion for workshop {workshop_id} after {self.max_attempts} attempts"
        )
        return None
