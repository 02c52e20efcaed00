"""
Stock ledger service.

Every change of a fuel quantity is a ``StockMovement`` row. Balances are
derived from the non-void rows, and a vehicle's ``current_fuel`` follows the
balance of its tank location after each movement touching it.

Manual movements can be edited or voided. Movements generated by documents
(waybills, fuel card top-ups and resets) are only reversed through storno
of the whole document.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Set, Tuple

from waybill_ledger.core.database.base import new_id
from waybill_ledger.core.database.entities.stock import StockLocation, StockMovement
from waybill_ledger.core.database.repositories.fuel_cards import FuelCardRepository
from waybill_ledger.core.database.repositories.stock_items import StockItemRepository
from waybill_ledger.core.database.repositories.stock_movements import StockMovementRepository, to_quantity
from waybill_ledger.core.database.repositories.vehicles import VehicleRepository
from waybill_ledger.core.errors import (
    DUPLICATE_EXTERNAL_REF,
    INSUFFICIENT_STOCK,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
)
from waybill_ledger.core.logging_config import get_logger
from waybill_ledger.core.models.domain.actor import Actor
from waybill_ledger.core.models.domain.enums import (
    SYSTEM_DOCUMENT_TYPES,
    AuditAction,
    AuditEntity,
    StockDocumentType,
    StockLocationType,
    StockMovementType,
)
from waybill_ledger.core.models.io.stock import (
    BalanceRead,
    CorrectionCreate,
    FuelCardReset,
    FuelCardTopup,
    LocationBalanceRead,
    StockMovementCreate,
    StockMovementUpdate,
)
from waybill_ledger.core.timeutils import to_naive_utc, utc_now

from .audit import AuditService
from .base import BaseService, transactional
from .period_locks import PeriodLockService
from .stock_locations import StockLocationService

logger = get_logger(__name__)

MAX_EXTERNAL_REF_LENGTH = 120
MAX_COMMENT_LENGTH = 500
MIN_VOID_REASON_LENGTH = 5
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200

ZERO = Decimal("0")


def _movement_snapshot(movement: StockMovement) -> Dict[str, object]:
    return {
        "movement_type": movement.movement_type,
        "quantity": str(to_quantity(movement.quantity)),
        "occurred_at": movement.occurred_at,
        "occurred_seq": movement.occurred_seq,
        "comment": movement.comment,
        "is_void": movement.is_void,
    }


class StockLedgerService(BaseService):
    """Records, edits and reverses stock movements and reads balances."""

    def __init__(self, session) -> None:
        super().__init__(session)
        self.movements = StockMovementRepository(session)
        self.items = StockItemRepository(session)
        self.vehicles = VehicleRepository(session)
        self.fuel_cards = FuelCardRepository(session)
        self.locations = StockLocationService(session)
        self.period_locks = PeriodLockService(session)
        self.audit = AuditService(session)

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    async def get_balance(
        self, organization_id: str, location_id: str, stock_item_id: str, as_of: Optional[datetime] = None
    ) -> Decimal:
        """Balance of an item at a location as of ``as_of`` (default now)."""
        await self.locations.get_location(organization_id, location_id)
        return await self.movements.get_balance(location_id, stock_item_id, to_naive_utc(as_of) or utc_now())

    async def balances(
        self,
        actor: Actor,
        location_id: Optional[str] = None,
        stock_item_id: Optional[str] = None,
        as_of: Optional[datetime] = None,
    ) -> List[BalanceRead]:
        """All non-zero (location, item) balances."""
        as_of = to_naive_utc(as_of) or utc_now()
        balances = await self.movements.get_balances(actor.organization_id, as_of, location_id, stock_item_id)
        return [
            BalanceRead(stock_location_id=location, stock_item_id=item, as_of=as_of, balance=balance)
            for (location, item), balance in sorted(balances.items())
            if balance != ZERO
        ]

    async def location_balances(self, actor: Actor, as_of: Optional[datetime] = None) -> List[LocationBalanceRead]:
        as_of = to_naive_utc(as_of) or utc_now()
        balances = await self.movements.get_balances(actor.organization_id, as_of)
        grouped: Dict[str, Dict[str, Decimal]] = {}
        for (location_id, item_id), balance in balances.items():
            if balance != ZERO:
                grouped.setdefault(location_id, {})[item_id] = balance

        result = []
        for location in await self.locations.list_locations(actor):
            result.append(
                LocationBalanceRead(
                    stock_location_id=location.id,
                    name=location.name,
                    type=StockLocationType(location.type),
                    balances=grouped.get(location.id, {}),
                )
            )
        return result

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_movement(self, actor: Actor, movement_id: str) -> StockMovement:
        movement = await self.movements.get_scoped(actor.organization_id, movement_id)
        if movement is None:
            raise NotFoundError("stock movement not found")
        return movement

    async def list_movements(
        self,
        actor: Actor,
        stock_item_id: Optional[str] = None,
        location_id: Optional[str] = None,
        movement_type: Optional[StockMovementType] = None,
        document_type: Optional[str] = None,
        document_id: Optional[str] = None,
        occurred_from: Optional[datetime] = None,
        occurred_to: Optional[datetime] = None,
        include_void: bool = False,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Tuple[List[StockMovement], int]:
        page = max(page, 1)
        page_size = min(max(page_size, 1), MAX_PAGE_SIZE)
        return await self.movements.list_page(
            actor.organization_id,
            limit=page_size,
            offset=(page - 1) * page_size,
            filters={
                "stock_item_id": stock_item_id,
                "movement_type": movement_type.value if movement_type else None,
                "document_type": document_type,
                "document_id": document_id,
            },
            location_id=location_id,
            occurred_from=to_naive_utc(occurred_from),
            occurred_to=to_naive_utc(occurred_to),
            include_void=include_void,
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @staticmethod
    def _check_quantity(movement_type: StockMovementType, quantity: Decimal, comment: Optional[str]) -> None:
        if movement_type == StockMovementType.adjustment:
            if quantity == ZERO:
                raise BadRequestError("adjustment quantity must not be zero")
            if not (comment or "").strip():
                raise BadRequestError("adjustment requires a comment")
        elif quantity <= ZERO:
            raise BadRequestError("quantity must be greater than zero")

    @staticmethod
    def _check_lengths(external_ref: Optional[str], comment: Optional[str]) -> None:
        if external_ref is not None and len(external_ref) > MAX_EXTERNAL_REF_LENGTH:
            raise BadRequestError(f"external_ref must be at most {MAX_EXTERNAL_REF_LENGTH} characters")
        if comment is not None and len(comment) > MAX_COMMENT_LENGTH:
            raise BadRequestError(f"comment must be at most {MAX_COMMENT_LENGTH} characters")

    async def _ensure_available(
        self, location_id: str, stock_item_id: str, quantity: Decimal, as_of: datetime
    ) -> None:
        balance = await self.movements.get_balance(location_id, stock_item_id, as_of)
        if balance < quantity:
            logger.warning(f"Insufficient stock at {location_id}: balance {balance}, requested {quantity}")
            raise BadRequestError(
                f"insufficient stock: balance {balance}, requested {quantity}", code=INSUFFICIENT_STOCK
            )

    async def sync_vehicle_fuel(self, locations: Set[Optional[str]], organization_id: str) -> None:
        """Set ``current_fuel`` of every vehicle whose tank is among ``locations``."""
        for location_id in locations - {None}:
            location = await self.locations.repository.get_by_id(location_id)
            if location is None or location.type != StockLocationType.vehicle_tank.value or not location.vehicle_id:
                continue
            vehicle = await self.vehicles.get_scoped(organization_id, location.vehicle_id)
            if vehicle is None or not vehicle.fuel_stock_item_id:
                continue
            vehicle.current_fuel = await self.movements.get_balance(location.id, vehicle.fuel_stock_item_id, utc_now())
            await self.vehicles.update(vehicle)

    async def record(self, actor: Actor, data: StockMovementCreate, check_balance: bool = True) -> StockMovement:
        """
        Validate and insert a movement inside the caller's transaction.

        Args:
            actor: User recording the movement
            data: Movement fields
            check_balance: Whether EXPENSE and TRANSFER must be covered by the source balance

        Returns:
            The flushed movement

        Raises:
            BadRequestError: Invalid quantity, locations, lengths, closed period or insufficient stock
            NotFoundError: Unknown item or location
            ConflictError: Duplicate external reference
        """
        movement_type = StockMovementType(data.movement_type)
        quantity = to_quantity(data.quantity)
        occurred_at = to_naive_utc(data.occurred_at) or utc_now()
        org_id = actor.organization_id

        self._check_quantity(movement_type, quantity, data.comment)
        self._check_lengths(data.external_ref, data.comment)

        if await self.items.get_scoped(org_id, data.stock_item_id) is None:
            raise NotFoundError("stock item not found")

        if movement_type == StockMovementType.transfer:
            if not data.from_stock_location_id or not data.to_stock_location_id:
                raise BadRequestError("transfer requires source and destination locations")
            if data.from_stock_location_id == data.to_stock_location_id:
                raise BadRequestError("transfer source and destination must differ")
            await self.locations.get_location(org_id, data.from_stock_location_id)
            await self.locations.get_location(org_id, data.to_stock_location_id)
            location_id, from_id, to_id = None, data.from_stock_location_id, data.to_stock_location_id
        else:
            if not data.stock_location_id:
                raise BadRequestError(f"{movement_type.value} requires a stock location")
            await self.locations.get_location(org_id, data.stock_location_id)
            location_id, from_id, to_id = data.stock_location_id, None, None

        if data.external_ref and await self.movements.get_by_external_ref(org_id, data.external_ref):
            raise ConflictError(f"external_ref '{data.external_ref}' already exists", code=DUPLICATE_EXTERNAL_REF)

        await self.period_locks.ensure_unlocked(org_id, occurred_at, "record stock movements")

        if check_balance:
            if movement_type == StockMovementType.expense:
                await self._ensure_available(location_id, data.stock_item_id, quantity, occurred_at)
            elif movement_type == StockMovementType.transfer:
                await self._ensure_available(from_id, data.stock_item_id, quantity, occurred_at)

        movement = await self.movements.create(
            StockMovement(
                organization_id=org_id,
                stock_item_id=data.stock_item_id,
                movement_type=movement_type.value,
                quantity=quantity,
                stock_location_id=location_id,
                from_stock_location_id=from_id,
                to_stock_location_id=to_id,
                occurred_at=occurred_at,
                occurred_seq=data.occurred_seq,
                document_type=StockDocumentType(data.document_type).value if data.document_type else None,
                document_id=data.document_id,
                external_ref=data.external_ref,
                comment=data.comment,
                created_by_user_id=actor.user_id,
            )
        )
        await self.sync_vehicle_fuel({location_id, from_id, to_id}, org_id)
        logger.debug(f"Recorded {movement.movement_type} {quantity} of item {movement.stock_item_id} ({movement.id})")
        return movement

    @transactional
    async def create_movement(self, actor: Actor, data: StockMovementCreate) -> StockMovement:
        """Record a manual movement. Document-generated types are reserved for the system."""
        if data.document_type and StockDocumentType(data.document_type).value in SYSTEM_DOCUMENT_TYPES:
            raise BadRequestError(f"document type {data.document_type.value} is reserved for system movements")
        return await self.record(actor, data)

    def _ensure_manual(self, movement: StockMovement, action: str) -> None:
        if movement.is_void:
            raise BadRequestError("stock movement is already void")
        if movement.document_type in SYSTEM_DOCUMENT_TYPES:
            raise BadRequestError(
                f"cannot {action} a {movement.document_type} movement directly, use storno of the document"
            )

    @transactional
    async def update_movement(self, actor: Actor, movement_id: str, data: StockMovementUpdate) -> StockMovement:
        """Edit the quantity, time, sequence or comment of a manual movement."""
        movement = await self.get_movement(actor, movement_id)
        self._ensure_manual(movement, "edit")
        before = _movement_snapshot(movement)
        await self.period_locks.ensure_unlocked(actor.organization_id, movement.occurred_at, "edit stock movements")

        changes = data.model_dump(exclude_unset=True)
        if "occurred_at" in changes and changes["occurred_at"] is not None:
            movement.occurred_at = to_naive_utc(changes["occurred_at"])
            await self.period_locks.ensure_unlocked(
                actor.organization_id, movement.occurred_at, "edit stock movements"
            )
        if changes.get("occurred_seq") is not None:
            movement.occurred_seq = changes["occurred_seq"]
        if "comment" in changes:
            movement.comment = changes["comment"]
        if changes.get("quantity") is not None:
            movement.quantity = to_quantity(changes["quantity"])

        movement_type = StockMovementType(movement.movement_type)
        self._check_quantity(movement_type, to_quantity(movement.quantity), movement.comment)
        self._check_lengths(None, movement.comment)
        await self.movements.update(movement)

        # After the edit the source must not go negative at the movement time
        source = movement.from_stock_location_id or movement.stock_location_id
        if movement_type in (StockMovementType.expense, StockMovementType.transfer):
            balance = await self.movements.get_balance(source, movement.stock_item_id, movement.occurred_at)
            if balance < ZERO:
                raise BadRequestError(
                    f"insufficient stock: the edit leaves a balance of {balance}", code=INSUFFICIENT_STOCK
                )

        await self.sync_vehicle_fuel(
            {movement.stock_location_id, movement.from_stock_location_id, movement.to_stock_location_id},
            actor.organization_id,
        )
        await self.audit.record(
            actor,
            AuditAction.update,
            AuditEntity.stock_movement,
            movement.id,
            "stock movement edited",
            old_value=before,
            new_value=_movement_snapshot(movement),
        )
        return movement

    def _void(self, actor: Actor, movement: StockMovement, reason: str) -> None:
        movement.is_void = True
        movement.voided_at = utc_now()
        movement.voided_by_user_id = actor.user_id
        movement.void_reason = reason

    @transactional
    async def void_movement(self, actor: Actor, movement_id: str, reason: str) -> StockMovement:
        """Exclude a manual movement from balances while keeping it in the ledger."""
        reason = (reason or "").strip()
        if len(reason) < MIN_VOID_REASON_LENGTH:
            raise BadRequestError(f"void reason must be at least {MIN_VOID_REASON_LENGTH} characters")
        movement = await self.get_movement(actor, movement_id)
        self._ensure_manual(movement, "void")
        await self.period_locks.ensure_unlocked(actor.organization_id, movement.occurred_at, "void stock movements")

        self._void(actor, movement, reason[:MAX_COMMENT_LENGTH])
        await self.movements.update(movement)
        await self.sync_vehicle_fuel(
            {movement.stock_location_id, movement.from_stock_location_id, movement.to_stock_location_id},
            actor.organization_id,
        )
        await self.audit.record(
            actor,
            AuditAction.update,
            AuditEntity.stock_movement,
            movement.id,
            f"stock movement voided: {reason}",
            new_value={"is_void": True, "void_reason": reason},
        )
        logger.info(f"Voided stock movement {movement.id}: {reason}")
        return movement

    async def delete_movement(self, actor: Actor, movement_id: str) -> None:
        """Hard deletes are disabled; the ledger keeps every row."""
        await self.get_movement(actor, movement_id)
        raise ForbiddenError("hard delete of stock movements is disabled, void the movement instead")

    @transactional
    async def create_correction(self, actor: Actor, data: CorrectionCreate) -> StockMovement:
        """Add a signed ADJUSTMENT under a new correction document."""
        if not data.reason.strip():
            raise BadRequestError("correction reason is required")
        return await self.record(
            actor,
            StockMovementCreate(
                movement_type=StockMovementType.adjustment,
                stock_item_id=data.stock_item_id,
                quantity=data.delta,
                stock_location_id=data.stock_location_id,
                occurred_at=data.occurred_at,
                document_type=StockDocumentType.correction,
                document_id=new_id(),
                comment=data.reason.strip(),
            ),
        )

    async def storno(self, actor: Actor, document_type: str, document_id: str, reason: str) -> int:
        """Void every active movement of a document inside the caller's transaction."""
        movements = await self.movements.list_active_for_document(actor.organization_id, document_type, document_id)
        if not movements:
            raise NotFoundError(f"no active movements for document {document_type}/{document_id}")

        touched: Set[Optional[str]] = set()
        for movement in movements:
            await self.period_locks.ensure_unlocked(actor.organization_id, movement.occurred_at, "reverse documents")
            self._void(actor, movement, f"STORNO: {reason}"[:MAX_COMMENT_LENGTH])
            await self.movements.update(movement)
            touched |= {movement.stock_location_id, movement.from_stock_location_id, movement.to_stock_location_id}
        await self.sync_vehicle_fuel(touched, actor.organization_id)
        logger.info(f"Storno of {document_type}/{document_id}: {len(movements)} movements voided ({reason})")
        return len(movements)

    @transactional
    async def storno_document(
        self, actor: Actor, document_type: StockDocumentType, document_id: str, reason: str
    ) -> int:
        if not (reason or "").strip():
            raise BadRequestError("storno reason is required")
        return await self.storno(actor, StockDocumentType(document_type).value, document_id, reason.strip())

    # ------------------------------------------------------------------
    # Fuel cards
    # ------------------------------------------------------------------

    async def _card_locations(self, actor: Actor, card_id: str) -> Tuple[StockLocation, StockLocation]:
        card = await self.fuel_cards.get_scoped(actor.organization_id, card_id)
        if card is None:
            raise NotFoundError("fuel card not found")
        warehouse = await self.locations.get_or_create_default_warehouse(actor.organization_id)
        card_location = await self.locations.get_or_create_fuel_card_location(card)
        return warehouse, card_location

    @transactional
    async def fuel_card_topup(self, actor: Actor, card_id: str, data: FuelCardTopup) -> StockMovement:
        """Move fuel from the default warehouse onto a card."""
        warehouse, card_location = await self._card_locations(actor, card_id)
        movement = await self.record(
            actor,
            StockMovementCreate(
                movement_type=StockMovementType.transfer,
                stock_item_id=data.stock_item_id,
                quantity=data.quantity,
                from_stock_location_id=warehouse.id,
                to_stock_location_id=card_location.id,
                occurred_at=data.occurred_at,
                document_type=StockDocumentType.fuel_card_topup,
                document_id=new_id(),
                comment=f"fuel card {card_id} top-up",
            ),
        )
        logger.info(f"Topped up fuel card {card_id} with {movement.quantity}")
        return movement

    @transactional
    async def fuel_card_reset(self, actor: Actor, card_id: str, data: FuelCardReset) -> Optional[StockMovement]:
        """Return the positive balance of a card to the default warehouse.

        Returns:
            The transfer, or None when the card holds nothing
        """
        warehouse, card_location = await self._card_locations(actor, card_id)
        occurred_at = to_naive_utc(data.occurred_at) or utc_now()
        balance = await self.movements.get_balance(card_location.id, data.stock_item_id, occurred_at)
        if balance <= ZERO:
            logger.info(f"Fuel card {card_id} has nothing to reset")
            return None
        movement = await self.record(
            actor,
            StockMovementCreate(
                movement_type=StockMovementType.transfer,
                stock_item_id=data.stock_item_id,
                quantity=balance,
                from_stock_location_id=card_location.id,
                to_stock_location_id=warehouse.id,
                occurred_at=occurred_at,
                document_type=StockDocumentType.fuel_card_reset,
                document_id=new_id(),
                comment=f"fuel card {card_id} reset",
            ),
            check_balance=False,
        )
        logger.info(f"Reset fuel card {card_id}: {balance} returned to warehouse")
        return movement
