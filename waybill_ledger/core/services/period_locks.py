"""
Period lock service.

A closed period (``YYYY-MM``) freezes every document dated inside it. When a
period is closed, the POSTED waybills and non-void stock movements of the
month are fingerprinted with SHA-256 so that later verification can detect
changes made behind the application's back.
"""

from __future__ import annotations

import datetime as dt
import hashlib
import json
import re
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from sqlmodel import SQLModel

from waybill_ledger.core.database.entities.period_locks import PeriodLock
from waybill_ledger.core.database.repositories.period_locks import PeriodLockRepository
from waybill_ledger.core.database.repositories.stock_movements import StockMovementRepository
from waybill_ledger.core.database.repositories.waybills import WaybillRepository
from waybill_ledger.core.errors import PERIOD_LOCKED, BadRequestError, ConflictError, ForbiddenError, NotFoundError
from waybill_ledger.core.logging_config import get_logger
from waybill_ledger.core.models.domain.actor import Actor
from waybill_ledger.core.models.io.period_locks import PeriodVerifyResult
from waybill_ledger.core.timeutils import month_bounds, period_of, utc_now

from .base import BaseService, transactional

logger = get_logger(__name__)

PERIOD_PATTERN = re.compile(r"^\d{4}-\d{2}$")


def is_valid_period(period: Optional[str]) -> bool:
    """A ``YYYY-MM`` period whose month and the one after it are representable."""
    if not PERIOD_PATTERN.match(period or ""):
        return False
    year, month = int(period[:4]), int(period[5:])
    return 1 <= month <= 12 and 1 <= year < dt.MAXYEAR


EXCLUDED_HASH_FIELDS = {"created_at", "updated_at"}


def _canonical_value(value: Any) -> Any:
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, (Decimal, float, int)):
        return format(Decimal(str(value)).normalize(), "f")
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    return value


def canonical_row(row: SQLModel) -> Dict[str, Any]:
    """Row as a plain dict with timestamps dropped and numbers normalized."""
    data = row.model_dump(exclude=EXCLUDED_HASH_FIELDS)
    return {key: _canonical_value(data[key]) for key in sorted(data)}


def compute_hash(rows: Iterable[SQLModel]) -> Tuple[str, int]:
    """
    Fingerprint a set of rows.

    Rows are sorted by id and serialized as JSON with sorted keys.

    Returns:
        Tuple of the hex SHA-256 digest and the number of rows
    """
    canonical = sorted((canonical_row(row) for row in rows), key=lambda item: item.get("id") or "")
    payload = json.dumps(canonical, sort_keys=True, ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest(), len(canonical)


class PeriodLockService(BaseService):
    """Closes, verifies and reopens accounting months."""

    def __init__(self, session) -> None:
        super().__init__(session)
        self.repository = PeriodLockRepository(session)
        self.waybills = WaybillRepository(session)
        self.movements = StockMovementRepository(session)

    async def is_locked(self, organization_id: str, value: Union[dt.date, dt.datetime]) -> bool:
        return await self.repository.get_by_period(organization_id, period_of(value)) is not None

    async def ensure_unlocked(
        self, organization_id: str, value: Union[dt.date, dt.datetime], action: str = "modify documents"
    ) -> None:
        """Raise ``PERIOD_LOCKED`` when ``value`` falls into a closed period."""
        if await self.is_locked(organization_id, value):
            period = period_of(value)
            logger.warning(f"Rejected attempt to {action} in closed period {period} of organization {organization_id}")
            raise BadRequestError(f"period {period} is closed, cannot {action}", code=PERIOD_LOCKED)

    async def list_locks(self, actor: Actor) -> List[PeriodLock]:
        return await self.repository.list_for_organization(actor.organization_id)

    async def _collect(self, organization_id: str, period: str) -> List[SQLModel]:
        start, end = month_bounds(period)
        waybills = await self.waybills.posted_in_range(organization_id, start.date(), end.date())
        movements = await self.movements.list_active_in_range(organization_id, start, end)
        return [*waybills, *movements]

    @transactional
    async def close_period(self, actor: Actor, period: str, notes: Optional[str] = None) -> PeriodLock:
        """
        Close a month and store the fingerprint of its documents.

        Raises:
            BadRequestError: Malformed period or no documents in it
            ConflictError: The period is already closed
        """
        if not is_valid_period(period):
            raise BadRequestError("invalid period format, use YYYY-MM")
        if await self.repository.get_by_period(actor.organization_id, period):
            raise ConflictError(f"period {period} is already closed", code=PERIOD_LOCKED)

        rows = await self._collect(actor.organization_id, period)
        if not rows:
            raise BadRequestError(f"no posted documents in period {period}")

        data_hash, count = compute_hash(rows)
        lock = await self.repository.create(
            PeriodLock(
                organization_id=actor.organization_id,
                period=period,
                locked_by_user_id=actor.user_id,
                data_hash=data_hash,
                record_count=count,
                notes=notes,
            )
        )
        logger.info(
            f"Closed period {period} for organization {actor.organization_id}: {count} records, hash {data_hash[:16]}"
        )
        return lock

    async def _get_lock(self, actor: Actor, lock_id: str) -> PeriodLock:
        lock = await self.repository.get_scoped(actor.organization_id, lock_id)
        if lock is None:
            raise NotFoundError("period lock not found")
        return lock

    @transactional
    async def verify_period(self, actor: Actor, lock_id: str) -> PeriodVerifyResult:
        """Recompute the fingerprint of a closed period and record the outcome."""
        lock = await self._get_lock(actor, lock_id)
        rows = await self._collect(lock.organization_id, lock.period)

        if len(rows) != lock.record_count:
            result = PeriodVerifyResult(
                is_valid=False,
                current_hash="count_mismatch",
                stored_hash=lock.data_hash,
                details=f"record count changed: was {lock.record_count}, now {len(rows)}",
            )
        else:
            current_hash, _ = compute_hash(rows)
            is_valid = current_hash == lock.data_hash
            result = PeriodVerifyResult(
                is_valid=is_valid,
                current_hash=current_hash,
                stored_hash=lock.data_hash,
                details=None if is_valid else "data hash mismatch, documents were changed",
            )

        lock.last_verified_at = utc_now()
        lock.last_verify_result = result.is_valid
        await self.repository.update(lock)

        if result.is_valid:
            logger.info(f"Verification passed for period {lock.period}")
        else:
            logger.warning(f"Verification failed for period {lock.period}: {result.details}")
        return result

    @transactional
    async def delete_lock(self, actor: Actor, lock_id: str) -> PeriodLock:
        """Reopen a period. Only administrators may do this."""
        if not actor.is_admin:
            raise ForbiddenError("only administrators can reopen a closed period")
        lock = await self._get_lock(actor, lock_id)
        await self.repository.delete(lock.id)
        logger.warning(f"Period {lock.period} reopened by user {actor.user_id}")
        return lock
