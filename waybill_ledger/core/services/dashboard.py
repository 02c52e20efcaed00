"""
Dashboard aggregates.

Read-only totals over POSTED waybills: mileage and fuel for the month,
quarter and year to date, plus monthly series for the charts. A waybill with
routes counts as one medical exam on its date.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from waybill_ledger.core.database.entities.waybills import Waybill
from waybill_ledger.core.database.repositories.vehicles import VehicleRepository
from waybill_ledger.core.database.repositories.waybills import WaybillRepository
from waybill_ledger.core.errors import BadRequestError
from waybill_ledger.core.models.domain.actor import Actor
from waybill_ledger.core.models.domain.enums import WaybillStatus
from waybill_ledger.core.models.io.dashboard import DashboardKpi, DashboardStats, MonthValue
from waybill_ledger.core.timeutils import utc_now

from .base import BaseService

Row = Tuple[Waybill, Decimal, int]


def _round(value: Decimal) -> float:
    return float(round(value, 1))


def _totals(rows: List[Row], since: dt.date) -> Tuple[Decimal, Decimal]:
    mileage, fuel = Decimal("0"), Decimal("0")
    for waybill, consumed, _ in rows:
        if waybill.date < since:
            continue
        if waybill.odometer_start is not None and waybill.odometer_end is not None:
            mileage += Decimal(str(waybill.odometer_end)) - Decimal(str(waybill.odometer_start))
        fuel += consumed
    return mileage, fuel


class DashboardService(BaseService):
    def __init__(self, session) -> None:
        super().__init__(session)
        self.waybills = WaybillRepository(session)
        self.vehicles = VehicleRepository(session)

    async def get_stats(
        self,
        actor: Actor,
        vehicle_id: Optional[str] = None,
        date_from: Optional[dt.date] = None,
        date_to: Optional[dt.date] = None,
        today: Optional[dt.date] = None,
    ) -> DashboardStats:
        """
        Compute the dashboard KPIs and chart series.

        Args:
            actor: Reading user; a driver only sees their own waybills
            vehicle_id: Only this vehicle
            date_from: First day of the chart series, defaults to the start of the year
            date_to: Last day of the chart series, defaults to today
            today: Reference day of the KPIs, defaults to the current UTC date

        Returns:
            KPIs and the monthly fuel consumption and medical exam series
        """
        today = today or utc_now().date()
        month_start = today.replace(day=1)
        quarter_start = dt.date(today.year, (today.month - 1) // 3 * 3 + 1, 1)
        year_start = dt.date(today.year, 1, 1)
        date_from = date_from or year_start
        date_to = date_to or today
        if date_from > date_to:
            raise BadRequestError("date_from must not be after date_to")

        driver_id = (actor.driver_id or "") if actor.is_driver else None
        org_id = actor.organization_id

        rows = await self.waybills.posted_with_totals(org_id, year_start, today, vehicle_id, driver_id)
        mileage_month, fuel_month = _totals(rows, month_start)
        mileage_quarter, fuel_quarter = _totals(rows, quarter_start)
        mileage_year, fuel_year = _totals(rows, year_start)

        vehicles = await self.vehicles.list(filters={"organization_id": org_id, "id": vehicle_id})
        balance = sum((Decimal(str(v.current_fuel or 0)) for v in vehicles), Decimal("0"))
        issues = await self.waybills.count_for(
            organization_id=org_id, status=WaybillStatus.draft.value, vehicle_id=vehicle_id, driver_id=driver_id
        )

        fuel_by_month: Dict[str, Decimal] = {}
        exams_by_month: Dict[str, int] = {}
        for waybill, consumed, route_count in await self.waybills.posted_with_totals(
            org_id, date_from, date_to, vehicle_id, driver_id
        ):
            key = waybill.date.strftime("%Y-%m")
            fuel_by_month[key] = fuel_by_month.get(key, Decimal("0")) + consumed
            if route_count:
                exams_by_month[key] = exams_by_month.get(key, 0) + 1

        return DashboardStats(
            kpi=DashboardKpi(
                mileage_month=_round(mileage_month),
                mileage_quarter=_round(mileage_quarter),
                mileage_year=_round(mileage_year),
                fuel_month=_round(fuel_month),
                fuel_quarter=_round(fuel_quarter),
                fuel_year=_round(fuel_year),
                total_fuel_balance=_round(balance),
                issues=issues,
            ),
            fuel_consumption_by_month=[
                MonthValue(month=month, value=_round(value)) for month, value in sorted(fuel_by_month.items())
            ],
            medical_exams_by_month=[
                MonthValue(month=month, value=count) for month, count in sorted(exams_by_month.items())
            ],
        )
