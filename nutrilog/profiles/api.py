# -*- coding: utf-8 -*-
"""Profiles — API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from ..users.storage import get_user_by_id
from .models import ProfileListResponse, ProfileRecord, ProfileRequest, ProfileResponse
from .storage import get_profile, list_profiles, update_profile, upsert_profile

router = APIRouter(prefix="/api", tags=["Profiles"])


@router.get("/profiles", response_model=ProfileListResponse, summary="List profiles")
def list_all_profiles():
    profiles = [ProfileRecord.model_validate(r) for r in list_profiles()]
    return ProfileListResponse(count=len(profiles), profiles=profiles)


@router.get("/users/{user_id}/profile", response_model=ProfileResponse, summary="Get a user's profile")
def get_user_profile(user_id: str):
    row = get_profile(user_id)
    if not row:
        raise HTTPException(status_code=404, detail="Profile not found")
    return ProfileResponse(profile=ProfileRecord.model_validate(row))


@router.post("/users/{user_id}/profile", response_model=ProfileResponse, summary="Create or update a profile")
def upsert_user_profile(user_id: str, request: ProfileRequest):
    if not get_user_by_id(user_id):
        raise HTTPException(status_code=404, detail="User not found")
    row = upsert_profile(user_id, request.model_dump(exclude_unset=True))
    return ProfileResponse(message="Profile created/updated successfully", profile=ProfileRecord.model_validate(row))


@router.put("/users/{user_id}/profile", response_model=ProfileResponse, summary="Update a profile")
def update_user_profile(user_id: str, request: ProfileRequest):
    row = update_profile(user_id, request.model_dump(exclude_unset=True))
    if row is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return ProfileResponse(message="Profile updated successfully", profile=ProfileRecord.model_validate(row))
