"""
Blank service.

Status flow of a blank::

    AVAILABLE --issue--> ISSUED
    AVAILABLE/ISSUED --reserve--> RESERVED --release--> (previous status)
    ISSUED/RESERVED --post waybill--> USED --cancel posting--> RESERVED
    AVAILABLE/ISSUED/RESERVED --spoil--> SPOILED

Any other move raises ``BLANK_NOT_AVAILABLE``.
"""

from __future__ import annotations

from itertools import groupby
from typing import Iterable, List, Optional

from waybill_ledger.core.database.entities.blanks import Blank, BlankBatch
from waybill_ledger.core.database.repositories.blanks import BlankBatchRepository, BlankRepository
from waybill_ledger.core.database.repositories.drivers import DriverRepository
from waybill_ledger.core.database.repositories.waybills import WaybillRepository
from waybill_ledger.core.errors import BLANK_NOT_AVAILABLE, BadRequestError, NotFoundError
from waybill_ledger.core.logging_config import get_logger
from waybill_ledger.core.models.domain.actor import Actor
from waybill_ledger.core.models.domain.enums import (
    AuditAction,
    AuditEntity,
    BlankSpoilReason,
    BlankStatus,
    WaybillStatus,
)
from waybill_ledger.core.models.io.blanks import BlankBatchCreate, BlankRange, DriverBlankSummary
from waybill_ledger.core.timeutils import utc_now

from .audit import AuditService
from .base import BaseService, transactional

logger = get_logger(__name__)


def format_blank(series: str, number: int) -> str:
    """Printed blank number, e.g. ``"AB 000042"``."""
    return f"{series} {number:06d}"


def build_ranges(blanks: Iterable[Blank]) -> List[BlankRange]:
    """Collapse blanks into contiguous number ranges per series."""
    ranges: List[BlankRange] = []
    ordered = sorted(blanks, key=lambda blank: (blank.series, blank.number))
    for series, group in groupby(ordered, key=lambda blank: blank.series):
        start = previous = None
        for blank in group:
            if start is None:
                start = previous = blank.number
            elif blank.number == previous + 1:
                previous = blank.number
            else:
                ranges.append(
                    BlankRange(series=series, number_from=start, number_to=previous, count=previous - start + 1)
                )
                start = previous = blank.number
        if start is not None:
            ranges.append(
                BlankRange(series=series, number_from=start, number_to=previous, count=previous - start + 1)
            )
    return ranges


def _not_available(blank: Blank, action: str) -> BadRequestError:
    return BadRequestError(
        f"blank {format_blank(blank.series, blank.number)} cannot be {action} (status {blank.status})",
        code=BLANK_NOT_AVAILABLE,
    )


class BlankService(BaseService):
    """Registers, issues, reserves and consumes blanks."""

    def __init__(self, session) -> None:
        super().__init__(session)
        self.batches = BlankBatchRepository(session)
        self.blanks = BlankRepository(session)
        self.drivers = DriverRepository(session)
        self.waybills = WaybillRepository(session)
        self.audit = AuditService(session)

    async def _get_driver(self, actor: Actor, driver_id: str) -> None:
        if await self.drivers.get_scoped(actor.organization_id, driver_id) is None:
            raise NotFoundError("driver not found")

    async def get_blank(self, actor: Actor, blank_id: str) -> Blank:
        blank = await self.blanks.get_scoped(actor.organization_id, blank_id)
        if blank is None:
            raise NotFoundError("blank not found")
        return blank

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    @transactional
    async def create_batch(self, actor: Actor, data: BlankBatchCreate) -> BlankBatch:
        batch = await self.batches.create(
            BlankBatch(
                organization_id=actor.organization_id,
                series=data.series.strip(),
                number_from=data.number_from,
                number_to=data.number_to,
                created_by_user_id=actor.user_id,
            )
        )
        logger.info(f"Registered blank batch {batch.series} {batch.number_from}-{batch.number_to}")
        return batch

    async def list_batches(self, actor: Actor) -> List[BlankBatch]:
        return await self.batches.list(filters={"organization_id": actor.organization_id})

    @transactional
    async def materialize_batch(self, actor: Actor, batch_id: str) -> int:
        """Create the blanks of a batch that do not exist yet.

        Returns:
            Number of blanks created (0 when the batch is already complete)
        """
        batch = await self.batches.get_scoped(actor.organization_id, batch_id)
        if batch is None:
            raise NotFoundError("blank batch not found")

        existing = await self.blanks.existing_numbers(
            actor.organization_id, batch.series, batch.number_from, batch.number_to
        )
        created = 0
        for number in range(batch.number_from, batch.number_to + 1):
            if number in existing:
                continue
            self.session.add(
                Blank(organization_id=actor.organization_id, batch_id=batch.id, series=batch.series, number=number)
            )
            created += 1
        await self.session.flush()
        logger.info(f"Materialized batch {batch.id}: {created} new blanks")
        return created

    # ------------------------------------------------------------------
    # Issue
    # ------------------------------------------------------------------

    @transactional
    async def issue_blank(self, actor: Actor, blank_id: str, driver_id: str) -> Blank:
        blank = await self.get_blank(actor, blank_id)
        await self._get_driver(actor, driver_id)
        if blank.status != BlankStatus.available.value:
            raise _not_available(blank, "issued")
        blank.status = BlankStatus.issued.value
        blank.issued_to_driver_id = driver_id
        blank.issued_at = utc_now()
        await self.blanks.update(blank)
        logger.info(f"Issued blank {format_blank(blank.series, blank.number)} to driver {driver_id}")
        return blank

    @transactional
    async def issue_range(self, actor: Actor, series: str, number_from: int, number_to: int, driver_id: str) -> int:
        """Issue every blank of a number range to a driver, or none of them."""
        if number_from > number_to:
            raise BadRequestError("number_from must not exceed number_to")
        await self._get_driver(actor, driver_id)
        blanks = await self.blanks.list_range(actor.organization_id, series, number_from, number_to)
        if len(blanks) != number_to - number_from + 1:
            raise BadRequestError(
                f"range {series} {number_from}-{number_to} is not fully registered", code=BLANK_NOT_AVAILABLE
            )
        unavailable = [blank for blank in blanks if blank.status != BlankStatus.available.value]
        if unavailable:
            raise _not_available(unavailable[0], "issued")

        issued_at = utc_now()
        for blank in blanks:
            blank.status = BlankStatus.issued.value
            blank.issued_to_driver_id = driver_id
            blank.issued_at = issued_at
            self.session.add(blank)
        await self.session.flush()
        logger.info(f"Issued {len(blanks)} blanks {series} {number_from}-{number_to} to driver {driver_id}")
        return len(blanks)

    # ------------------------------------------------------------------
    # Waybill lifecycle
    # ------------------------------------------------------------------

    async def reserve_for_waybill(
        self, actor: Actor, driver_id: str, waybill_id: str, blank_id: Optional[str] = None
    ) -> Optional[Blank]:
        """
        Reserve a blank for a waybill.

        With ``blank_id`` that blank must be AVAILABLE or issued to the same
        driver. Without it the driver's lowest ISSUED blank is taken, then the
        lowest AVAILABLE blank of the organization.

        Returns:
            The reserved blank, or None when no blank is free
        """
        if blank_id:
            blank = await self.get_blank(actor, blank_id)
            if blank.status == BlankStatus.issued.value and blank.issued_to_driver_id != driver_id:
                raise BadRequestError(
                    f"blank {format_blank(blank.series, blank.number)} is issued to another driver",
                    code=BLANK_NOT_AVAILABLE,
                )
            if blank.status not in (BlankStatus.available.value, BlankStatus.issued.value):
                raise _not_available(blank, "reserved")
        else:
            blank = await self.blanks.next_issued_to_driver(actor.organization_id, driver_id)
            if blank is None:
                blank = await self.blanks.next_available(actor.organization_id)
            if blank is None:
                return None

        blank.return_status = blank.status
        if blank.status == BlankStatus.available.value:
            blank.issued_to_driver_id = driver_id
            blank.issued_at = utc_now()
        blank.status = BlankStatus.reserved.value
        blank.reserved_by_waybill_id = waybill_id
        blank.reserved_at = utc_now()
        await self.blanks.update(blank)
        logger.debug(f"Reserved blank {format_blank(blank.series, blank.number)} for waybill {waybill_id}")
        return blank

    async def release_reservation(self, blank: Blank) -> Blank:
        """Put a RESERVED blank back into the status it had before."""
        if blank.status != BlankStatus.reserved.value:
            raise _not_available(blank, "released")
        blank.status = blank.return_status or BlankStatus.available.value
        if blank.status == BlankStatus.available.value:
            blank.issued_to_driver_id = None
            blank.issued_at = None
        blank.return_status = None
        blank.reserved_by_waybill_id = None
        blank.reserved_at = None
        await self.blanks.update(blank)
        logger.debug(f"Released blank {format_blank(blank.series, blank.number)} to {blank.status}")
        return blank

    @transactional
    async def release(self, actor: Actor, blank_id: str) -> Blank:
        """Release a reservation that no live waybill holds."""
        blank = await self.get_blank(actor, blank_id)
        if blank.reserved_by_waybill_id:
            waybill = await self.waybills.get_by_id(blank.reserved_by_waybill_id)
            if waybill is not None and waybill.status != WaybillStatus.cancelled.value:
                raise BadRequestError(
                    f"blank is held by waybill {waybill.number}, delete or cancel the waybill instead",
                    code=BLANK_NOT_AVAILABLE,
                )
        return await self.release_reservation(blank)

    async def mark_used(self, blank: Blank, waybill_id: str) -> Blank:
        if blank.status not in (BlankStatus.issued.value, BlankStatus.reserved.value):
            raise _not_available(blank, "used")
        blank.status = BlankStatus.used.value
        blank.used_in_waybill_id = waybill_id
        blank.used_at = utc_now()
        await self.blanks.update(blank)
        return blank

    async def unmark_used(self, blank: Blank) -> Blank:
        """Return a USED blank to the reservation of the waybill that used it."""
        if blank.status != BlankStatus.used.value:
            raise _not_available(blank, "returned to reservation")
        blank.status = BlankStatus.reserved.value
        blank.reserved_by_waybill_id = blank.used_in_waybill_id
        blank.reserved_at = utc_now()
        blank.used_in_waybill_id = None
        blank.used_at = None
        await self.blanks.update(blank)
        return blank

    @transactional
    async def spoil(
        self, actor: Actor, blank_id: str, reason: BlankSpoilReason, note: Optional[str] = None
    ) -> Blank:
        blank = await self.get_blank(actor, blank_id)
        return await self.spoil_blank(actor, blank, reason, note)

    async def spoil_blank(
        self, actor: Actor, blank: Blank, reason: BlankSpoilReason, note: Optional[str] = None
    ) -> Blank:
        if blank.status not in (
            BlankStatus.available.value,
            BlankStatus.issued.value,
            BlankStatus.reserved.value,
        ):
            raise _not_available(blank, "spoiled")
        previous = blank.status
        reason = BlankSpoilReason(reason)
        blank.status = BlankStatus.spoiled.value
        blank.spoiled_at = utc_now()
        blank.spoil_reason = reason.value
        blank.spoil_note = note
        blank.return_status = None
        await self.blanks.update(blank)
        await self.audit.record(
            actor,
            AuditAction.blank_spoil,
            AuditEntity.blank,
            blank.id,
            f"blank {format_blank(blank.series, blank.number)} spoiled: {reason.value}",
            old_value={"status": previous},
            new_value={"status": blank.status, "reason": reason.value, "note": note},
        )
        logger.info(f"Spoiled blank {format_blank(blank.series, blank.number)} ({reason.value})")
        return blank

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_blanks(
        self,
        actor: Actor,
        series: Optional[str] = None,
        status: Optional[BlankStatus] = None,
        driver_id: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Blank]:
        if actor.is_driver:
            driver_id = actor.driver_id or ""
        return await self.blanks.list_filtered(
            actor.organization_id,
            {"series": series, "status": status.value if status else None, "issued_to_driver_id": driver_id},
            limit=limit,
            offset=offset,
        )

    async def driver_summary(self, actor: Actor, driver_id: str) -> DriverBlankSummary:
        await self._get_driver(actor, driver_id)
        blanks = await self.blanks.list_for_driver(actor.organization_id, driver_id)

        def by_status(*statuses: str) -> List[Blank]:
            return [blank for blank in blanks if blank.status in statuses]

        return DriverBlankSummary(
            driver_id=driver_id,
            active=build_ranges(by_status(BlankStatus.issued.value, BlankStatus.reserved.value)),
            used=build_ranges(by_status(BlankStatus.used.value)),
            spoiled=build_ranges(by_status(BlankStatus.spoiled.value)),
        )
