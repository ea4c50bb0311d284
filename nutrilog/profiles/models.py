# -*- coding: utf-8 -*-
"""Profiles — Pydantic models."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

PROFILE_FIELDS = ("display_name", "avatar_url", "bio", "activity_level", "calorie_goal", "water_goal")


class ProfileRequest(BaseModel):
    display_name: Optional[str] = Field(default=None, max_length=128)
    avatar_url: Optional[str] = Field(default=None, max_length=2048)
    bio: Optional[str] = None
    activity_level: Optional[str] = Field(default=None, max_length=32)
    calorie_goal: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    water_goal: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)


class ProfileRecord(BaseModel):
    user_id: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    activity_level: Optional[str] = None
    calorie_goal: Optional[float] = None
    water_goal: Optional[float] = None
    created_at: str
    updated_at: str


class ProfileResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    profile: ProfileRecord


class ProfileListResponse(BaseModel):
    success: bool = True
    count: int
    profiles: List[ProfileRecord]
