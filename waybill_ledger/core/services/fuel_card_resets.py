"""
Fuel card reset rules.

A rule empties fuel cards once per period. Depending on its mode the
remaining balance goes back to a warehouse (TRANSFER) or is written off
(EXPENSE). Each reset carries the external reference
``RESET:<rule>:<period>:<card>``, so running a rule twice within the same
period does not reset a card twice.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from waybill_ledger.core.database.base import new_id
from waybill_ledger.core.database.entities.reset_rules import FuelCardResetRule
from waybill_ledger.core.database.repositories.reset_rules import FuelCardResetRuleRepository
from waybill_ledger.core.errors import AppError, BadRequestError, NotFoundError
from waybill_ledger.core.logging_config import get_logger
from waybill_ledger.core.models.domain.actor import Actor
from waybill_ledger.core.models.domain.enums import (
    ResetFrequency,
    ResetMode,
    ResetScope,
    StockDocumentType,
    StockLocationType,
    StockMovementType,
)
from waybill_ledger.core.models.domain.reset_schedule import compute_next_reset_at, compute_period_key, reset_ref
from waybill_ledger.core.models.io.reset_rules import ResetRuleCreate, ResetRuleUpdate, ResetRunResult
from waybill_ledger.core.models.io.stock import StockMovementCreate
from waybill_ledger.core.timeutils import to_naive_utc, utc_now

from .base import BaseService, transactional
from .stock_ledger import ZERO, StockLedgerService

logger = get_logger(__name__)

RESET_OCCURRED_SEQ = 10


class FuelCardResetService(BaseService):
    def __init__(self, session) -> None:
        super().__init__(session)
        self.repository = FuelCardResetRuleRepository(session)
        self.ledger = StockLedgerService(session)

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    async def get_rule(self, actor: Actor, rule_id: str) -> FuelCardResetRule:
        rule = await self.repository.get_scoped(actor.organization_id, rule_id)
        if rule is None:
            raise NotFoundError("reset rule not found")
        return rule

    async def list_rules(self, actor: Actor, is_active: Optional[bool] = None) -> List[FuelCardResetRule]:
        return await self.repository.list(filters={"organization_id": actor.organization_id, "is_active": is_active})

    async def _validate(self, actor: Actor, values: Dict[str, Any]) -> None:
        org_id = actor.organization_id
        if await self.ledger.items.get_scoped(org_id, values["stock_item_id"]) is None:
            raise NotFoundError("stock item not found")

        if values.get("target_location_id"):
            location = await self.ledger.locations.get_location(org_id, values["target_location_id"])
            if location.type != StockLocationType.warehouse.value:
                raise BadRequestError("reset target must be a warehouse")

        if ResetScope(values["scope"]) == ResetScope.specific_cards:
            card_ids = values.get("card_ids") or []
            if not card_ids:
                raise BadRequestError("a SPECIFIC_CARDS rule needs at least one card")
            for card_id in card_ids:
                if await self.ledger.fuel_cards.get_scoped(org_id, card_id) is None:
                    raise NotFoundError(f"fuel card {card_id} not found")

    @transactional
    async def create_rule(self, actor: Actor, data: ResetRuleCreate) -> FuelCardResetRule:
        values = data.model_dump()
        await self._validate(actor, values)
        rule = FuelCardResetRule(
            organization_id=actor.organization_id,
            name=data.name,
            frequency=data.frequency.value,
            scope=data.scope.value,
            mode=data.mode.value,
            stock_item_id=data.stock_item_id,
            target_location_id=data.target_location_id,
            is_active=data.is_active,
            next_run_at=compute_next_reset_at(utc_now(), data.frequency),
        )
        rule.set_card_ids(data.card_ids if data.scope == ResetScope.specific_cards else None)
        rule = await self.repository.create(rule)
        logger.info(f"Created reset rule {rule.name} ({rule.id}), next run {rule.next_run_at}")
        return rule

    @transactional
    async def update_rule(self, actor: Actor, rule_id: str, data: ResetRuleUpdate) -> FuelCardResetRule:
        rule = await self.get_rule(actor, rule_id)
        changes = data.model_dump(exclude_unset=True)
        merged = {
            "stock_item_id": changes.get("stock_item_id") or rule.stock_item_id,
            "target_location_id": changes.get("target_location_id", rule.target_location_id),
            "scope": changes.get("scope") or rule.scope,
            "card_ids": changes["card_ids"] if changes.get("card_ids") is not None else rule.get_card_ids(),
        }
        await self._validate(actor, merged)

        for name in ("name", "mode", "is_active"):
            if changes.get(name) is not None:
                setattr(rule, name, changes[name].value if name == "mode" else changes[name])
        rule.stock_item_id = merged["stock_item_id"]
        rule.target_location_id = merged["target_location_id"]
        rule.scope = ResetScope(merged["scope"]).value
        rule.set_card_ids(merged["card_ids"] if rule.scope == ResetScope.specific_cards.value else None)
        if changes.get("frequency") is not None and changes["frequency"].value != rule.frequency:
            rule.frequency = changes["frequency"].value
            rule.next_run_at = compute_next_reset_at(utc_now(), changes["frequency"])
        return await self.repository.update(rule)

    @transactional
    async def delete_rule(self, actor: Actor, rule_id: str) -> None:
        rule = await self.get_rule(actor, rule_id)
        await self.repository.delete(rule.id)
        logger.info(f"Deleted reset rule {rule_id}")

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    async def _rule_cards(self, actor: Actor, rule: FuelCardResetRule) -> List[str]:
        if rule.scope == ResetScope.specific_cards.value:
            return rule.get_card_ids()
        cards = await self.ledger.fuel_cards.list(
            filters={"organization_id": actor.organization_id, "is_active": True}
        )
        return [card.id for card in cards]

    async def _reset_card(
        self,
        actor: Actor,
        rule: FuelCardResetRule,
        card_id: str,
        reset_at: datetime,
        document_id: str,
        result: ResetRunResult,
    ) -> None:
        card_location = await self.ledger.locations.repository.get_by_fuel_card(card_id)
        if card_location is None:
            result.skipped += 1
            return
        balance = await self.ledger.movements.get_balance(card_location.id, rule.stock_item_id, reset_at)
        if balance <= ZERO:
            result.skipped += 1
            return

        external_ref = reset_ref(rule.id, compute_period_key(reset_at, ResetFrequency(rule.frequency)), card_id)
        if await self.ledger.movements.get_by_external_ref(actor.organization_id, external_ref):
            result.skipped += 1
            return
        if result.dry_run:
            result.reset += 1
            return

        common = dict(
            stock_item_id=rule.stock_item_id,
            quantity=balance,
            occurred_at=reset_at,
            occurred_seq=RESET_OCCURRED_SEQ,
            document_type=StockDocumentType.fuel_card_reset,
            document_id=document_id,
            external_ref=external_ref,
        )
        if rule.mode == ResetMode.transfer_to_warehouse.value:
            if rule.target_location_id:
                target_id = rule.target_location_id
            else:
                target_id = (await self.ledger.locations.get_or_create_default_warehouse(actor.organization_id)).id
            data = StockMovementCreate(
                movement_type=StockMovementType.transfer,
                from_stock_location_id=card_location.id,
                to_stock_location_id=target_id,
                comment=f"reset rule {rule.name}: returned to warehouse",
                **common,
            )
        else:
            data = StockMovementCreate(
                movement_type=StockMovementType.expense,
                stock_location_id=card_location.id,
                comment=f"reset rule {rule.name}: balance expired",
                **common,
            )
        await self.ledger.record(actor, data, check_balance=False)
        result.reset += 1
        logger.info(f"Reset fuel card {card_id} by rule {rule.id}: {balance}")

    @transactional
    async def run_resets(
        self,
        actor: Actor,
        reset_at: Optional[datetime] = None,
        rule_id: Optional[str] = None,
        dry_run: bool = False,
    ) -> ResetRunResult:
        """
        Run the due reset rules, or a single rule whether due or not.

        Args:
            actor: User running the resets
            reset_at: Moment of the reset movements, defaults to now
            rule_id: Run only this rule
            dry_run: Count what would be reset without writing anything

        Returns:
            Counters of processed, reset and skipped cards plus per-card errors
        """
        reset_at = to_naive_utc(reset_at) or utc_now()
        if rule_id:
            rules = [await self.get_rule(actor, rule_id)]
        else:
            rules = await self.repository.list_due(actor.organization_id, reset_at)

        result = ResetRunResult(dry_run=dry_run)
        for rule in rules:
            document_id = new_id()
            for card_id in await self._rule_cards(actor, rule):
                result.processed += 1
                try:
                    await self._reset_card(actor, rule, card_id, reset_at, document_id, result)
                except AppError as error:
                    logger.warning(f"Reset of card {card_id} by rule {rule.id} failed: {error.message}")
                    result.errors.append(f"card {card_id}: {error.message}")
            if not dry_run:
                rule.last_run_at = reset_at
                rule.next_run_at = compute_next_reset_at(reset_at, ResetFrequency(rule.frequency))
                await self.repository.update(rule)

        logger.info(
            f"Reset run{' (dry run)' if dry_run else ''}: {len(rules)} rules, {result.processed} cards, "
            f"{result.reset} reset, {result.skipped} skipped, {len(result.errors)} errors"
        )
        return result

    async def preview_resets(
        self, actor: Actor, reset_at: Optional[datetime] = None, rule_id: Optional[str] = None
    ) -> ResetRunResult:
        return await self.run_resets(actor, reset_at=reset_at, rule_id=rule_id, dry_run=True)
