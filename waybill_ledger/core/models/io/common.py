"""Shared I/O types."""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from pydantic import PlainSerializer

# Decimal that is written to JSON as a number instead of a string
Quantity = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
