"""Dashboard I/O models."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class DashboardKpi(BaseModel):
    """Totals of POSTED waybills for the current month, quarter and year to date."""

    mileage_month: float = 0.0
    mileage_quarter: float = 0.0
    mileage_year: float = 0.0
    fuel_month: float = 0.0
    fuel_quarter: float = 0.0
    fuel_year: float = 0.0
    total_fuel_balance: float = Field(default=0.0, description="Sum of the vehicles' current fuel")
    issues: int = Field(default=0, description="Waybills still in DRAFT")


class MonthValue(BaseModel):
    month: str = Field(description="YYYY-MM", examples=["2024-06"])
    value: float


class DashboardStats(BaseModel):
    kpi: DashboardKpi
    fuel_consumption_by_month: List[MonthValue] = Field(default_factory=list)
    medical_exams_by_month: List[MonthValue] = Field(default_factory=list)
