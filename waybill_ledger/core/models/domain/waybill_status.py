"""
Waybill status machine.

Allowed transitions:

- DRAFT -> SUBMITTED, POSTED, CANCELLED
- SUBMITTED -> POSTED, CANCELLED, DRAFT (returned for rework)
- POSTED -> DRAFT (correction; posting is reversed)
- CANCELLED is final
"""

from __future__ import annotations

from typing import FrozenSet, Mapping

from waybill_ledger.core.errors import INVALID_TRANSITION, BadRequestError

from .enums import Permission, WaybillStatus

ALLOWED_TRANSITIONS: Mapping[WaybillStatus, FrozenSet[WaybillStatus]] = {
    WaybillStatus.draft: frozenset({WaybillStatus.submitted, WaybillStatus.posted, WaybillStatus.cancelled}),
    WaybillStatus.submitted: frozenset({WaybillStatus.posted, WaybillStatus.cancelled, WaybillStatus.draft}),
    WaybillStatus.posted: frozenset({WaybillStatus.draft}),
    WaybillStatus.cancelled: frozenset(),
}


def can_transition(current: WaybillStatus, target: WaybillStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[WaybillStatus(current)]


def ensure_transition(current: WaybillStatus, target: WaybillStatus) -> None:
    """Raise ``BadRequestError`` unless ``current -> target`` is allowed."""
    current, target = WaybillStatus(current), WaybillStatus(target)
    if not can_transition(current, target):
        raise BadRequestError(
            f"transition from {current.value} to {target.value} not allowed",
            code=INVALID_TRANSITION,
        )


def required_permission(current: WaybillStatus, target: WaybillStatus) -> Permission:
    """Permission needed to perform a transition."""
    current, target = WaybillStatus(current), WaybillStatus(target)
    if target == WaybillStatus.posted:
        return Permission.waybill_post
    if target == WaybillStatus.cancelled or current == WaybillStatus.posted:
        return Permission.waybill_cancel
    return Permission.waybill_edit
