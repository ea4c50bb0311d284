# -*- coding: utf-8 -*-
"""Users — Pydantic models."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..intake.models import IntakeRecord

USER_FIELDS = (
    "username",
    "age",
    "weight",
    "height",
    "body_fat_percentage",
    "gender",
    "goals",
    "allergies",
    "conditions",
    "medications",
)


class UserUpdateRequest(BaseModel):
    username: Optional[str] = Field(default=None, min_length=1, max_length=64)
    age: Optional[int] = Field(default=None, ge=0, le=150)
    weight: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    height: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    body_fat_percentage: Optional[float] = Field(default=None, ge=0, le=100, allow_inf_nan=False)
    gender: Optional[str] = Field(default=None, max_length=32)
    goals: Optional[str] = None
    allergies: Optional[str] = None
    conditions: Optional[str] = None
    medications: Optional[str] = None


class UserCreateRequest(UserUpdateRequest):
    username: str = Field(..., min_length=1, max_length=64)


class UserRecord(BaseModel):
    id: str
    username: str
    age: Optional[int] = None
    weight: Optional[float] = None
    height: Optional[float] = None
    body_fat_percentage: Optional[float] = None
    gender: Optional[str] = None
    goals: Optional[str] = None
    allergies: Optional[str] = None
    conditions: Optional[str] = None
    medications: Optional[str] = None
    created_at: str
    updated_at: str


class UserResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    user: UserRecord


class UserListResponse(BaseModel):
    success: bool = True
    count: int
    users: List[UserRecord]


class UserDeleteResponse(BaseModel):
    success: bool = True
    message: str
    deleted_user: UserRecord


class UserAllDataResponse(BaseModel):
    success: bool = True
    user: UserRecord
    daily_intakes: List[IntakeRecord] = Field(default_factory=list)
    weekly_intakes: List[IntakeRecord] = Field(default_factory=list)
