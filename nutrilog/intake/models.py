# -*- coding: utf-8 -*-
"""Intake aggregation — Pydantic models."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

NUTRIENT_FIELDS = ("calories", "protein", "carbs", "fats", "fiber", "water")


class IntakeScope(str, Enum):
    daily = "daily"
    weekly = "weekly"


SCOPE_TABLES: Dict[str, str] = {
    IntakeScope.daily.value: "daily_intakes",
    IntakeScope.weekly.value: "weekly_intakes",
}


class IntakeStatus(str, Enum):
    created = "created"
    updated = "updated"
    upserted = "upserted"


def _nutrient(description: str) -> Any:
    return Field(default=None, ge=0, allow_inf_nan=False, description=description)


class IntakeChangeRequest(BaseModel):
    """Body of add/edit/remove; scope and date are validated by the aggregator."""

    scope: Optional[str] = Field(default=None, description="daily | weekly")
    date: Optional[str] = Field(default=None, description="YYYY-MM-DD")
    calories: Optional[float] = _nutrient("kcal")
    protein: Optional[float] = _nutrient("grams")
    carbs: Optional[float] = _nutrient("grams")
    fats: Optional[float] = _nutrient("grams")
    fiber: Optional[float] = _nutrient("grams")
    water: Optional[float] = _nutrient("millilitres")

    @field_validator(*NUTRIENT_FIELDS, mode="before")
    @classmethod
    def _coerce_nutrient(cls, value: Any) -> Any:
        """JSON booleans are not amounts, and a blank string means the field was left empty."""
        if isinstance(value, bool):
            raise ValueError("must be a number, not a boolean")
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def nutrient_values(self) -> Dict[str, float]:
        return self.model_dump(include=set(NUTRIENT_FIELDS), exclude_none=True)


class IntakeRecord(BaseModel):
    id: int
    user_id: str
    scope: IntakeScope
    date: str = Field(..., description="YYYY-MM-DD")
    calories: float = Field(0.0, ge=0)
    protein: float = Field(0.0, ge=0)
    carbs: float = Field(0.0, ge=0)
    fats: float = Field(0.0, ge=0)
    fiber: float = Field(0.0, ge=0)
    water: float = Field(0.0, ge=0)
    created_at: str
    updated_at: str


class IntakeChangeResponse(BaseModel):
    status: IntakeStatus
    intake: IntakeRecord


class IntakeListResponse(BaseModel):
    success: bool = True
    user_id: str
    scope: IntakeScope
    count: int
    intake: List[IntakeRecord]


class IntakeRecordResponse(BaseModel):
    success: bool = True
    intake: IntakeRecord


class IntakeDeleteResponse(BaseModel):
    success: bool = True
    message: str
    deleted_intake: IntakeRecord


class IntakeStats(BaseModel):
    total_records: int = Field(0, ge=0)
    average_calories: float = 0.0
    average_protein: float = 0.0
    average_carbs: float = 0.0
    average_fats: float = 0.0
    average_fiber: float = 0.0
    average_water: float = 0.0
    latest_entry: Optional[IntakeRecord] = None


class IntakeStatsResponse(BaseModel):
    success: bool = True
    user_id: str
    scope: IntakeScope
    stats: IntakeStats
