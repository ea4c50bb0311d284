# -*- coding: utf-8 -*-
"""Intake — API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Response

from .models import (
    IntakeChangeRequest,
    IntakeChangeResponse,
    IntakeDeleteResponse,
    IntakeListResponse,
    IntakeRecordResponse,
    IntakeStatsResponse,
    IntakeStatus,
)
from .storage import (
    apply_decrement,
    apply_increment,
    apply_overwrite,
    compute_stats,
    delete_intake,
    get_intake,
    list_intakes,
    normalize_scope,
)

router = APIRouter(prefix="/api/intake", tags=["Intake"])


@router.post("/add/{user_id}", response_model=IntakeChangeResponse, summary="Increment intake for a date")
def add_intake(user_id: str, request: IntakeChangeRequest, response: Response):
    result = apply_increment(user_id, scope=request.scope, date=request.date, deltas=request.nutrient_values())
    if result.status == IntakeStatus.created:
        response.status_code = 201
    return result


@router.put("/edit/{user_id}", response_model=IntakeChangeResponse, summary="Overwrite intake for a date")
def edit_intake(user_id: str, request: IntakeChangeRequest):
    return apply_overwrite(user_id, scope=request.scope, date=request.date, values=request.nutrient_values())


@router.post("/remove/{user_id}", response_model=IntakeChangeResponse, summary="Decrement intake for a date")
def remove_intake(user_id: str, request: IntakeChangeRequest):
    return apply_decrement(user_id, scope=request.scope, date=request.date, deltas=request.nutrient_values())


@router.get("/{user_id}", response_model=IntakeListResponse, summary="List intake records")
def list_intake(
    user_id: str,
    scope: str = Query(default="daily", description="daily | weekly"),
    start: str | None = Query(default=None, description="YYYY-MM-DD"),
    end: str | None = Query(default=None, description="YYYY-MM-DD"),
):
    records = list_intakes(user_id, scope=scope, start=start, end=end)
    return IntakeListResponse(user_id=user_id, scope=normalize_scope(scope), count=len(records), intake=records)


@router.get("/{user_id}/stats", response_model=IntakeStatsResponse, summary="Average intake for a user")
def intake_stats(user_id: str, scope: str = Query(default="daily", description="daily | weekly")):
    stats = compute_stats(user_id, scope=scope)
    return IntakeStatsResponse(user_id=user_id, scope=normalize_scope(scope), stats=stats)


@router.get("/{user_id}/{date}", response_model=IntakeRecordResponse, summary="Intake record for a date")
def get_intake_for_date(user_id: str, date: str, scope: str = Query(default="daily", description="daily | weekly")):
    record = get_intake(user_id, scope=scope, date=date)
    if record is None:
        raise HTTPException(status_code=404, detail="Intake record not found")
    return IntakeRecordResponse(intake=record)


@router.delete("/{user_id}/{date}", response_model=IntakeDeleteResponse, summary="Delete intake record for a date")
def delete_intake_for_date(user_id: str, date: str, scope: str = Query(default="daily", description="daily | weekly")):
    record = delete_intake(user_id, scope=scope, date=date)
    if record is None:
        raise HTTPException(status_code=404, detail="Intake record not found")
    return IntakeDeleteResponse(message="Intake record deleted successfully", deleted_intake=record)
