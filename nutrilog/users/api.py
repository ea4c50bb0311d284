# -*- coding: utf-8 -*-
"""Users — API endpoints."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Query, status

from ..intake.storage import list_intakes
from .models import (
    UserAllDataResponse,
    UserCreateRequest,
    UserDeleteResponse,
    UserListResponse,
    UserRecord,
    UserResponse,
    UserUpdateRequest,
)
from .storage import (
    create_user,
    delete_user,
    get_user_by_id,
    get_user_by_username,
    list_users,
    search_users,
    update_user,
)

router = APIRouter(prefix="/api/users", tags=["Users"])


def _list_response(rows: list[Dict[str, Any]]) -> UserListResponse:
    users = [UserRecord.model_validate(r) for r in rows]
    return UserListResponse(count=len(users), users=users)


def _apply_update(user_id: str, fields: Dict[str, Any]) -> UserResponse:
    if not fields:
        raise HTTPException(status_code=400, detail="No valid fields to update")
    if "username" in fields:
        if fields["username"] is None:
            raise HTTPException(status_code=400, detail="username cannot be null")
        existing = get_user_by_username(fields["username"])
        if existing and existing["id"] != user_id:
            raise HTTPException(status_code=409, detail="Username already taken")

    row = update_user(user_id, fields)
    if row is None:
        raise HTTPException(status_code=404, detail="User not found")
    return UserResponse(message="User updated successfully", user=UserRecord.model_validate(row))


@router.get("", response_model=UserListResponse, summary="List users")
def list_all_users():
    return _list_response(list_users())


@router.get("/search", response_model=UserListResponse, summary="Search users by username or goals")
def search(
    q: str | None = Query(default=None, description="Matches username or goals"),
    goal: str | None = Query(default=None),
    min_age: int | None = Query(default=None, alias="minAge", ge=0),
    max_age: int | None = Query(default=None, alias="maxAge", ge=0),
):
    return _list_response(search_users(q=q, goal=goal, min_age=min_age, max_age=max_age))


@router.get("/by-username/{username}", response_model=UserAllDataResponse, summary="User with all intake data")
def get_all_data(username: str):
    user = get_user_by_username(username)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return UserAllDataResponse(
        user=UserRecord.model_validate(user),
        daily_intakes=list_intakes(user["id"], scope="daily"),
        weekly_intakes=list_intakes(user["id"], scope="weekly"),
    )


@router.get("/{user_id}", response_model=UserResponse, summary="Get user")
def get_user(user_id: str):
    row = get_user_by_id(user_id)
    if not row:
        raise HTTPException(status_code=404, detail="User not found")
    return UserResponse(user=UserRecord.model_validate(row))


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED, summary="Create user")
def create(request: UserCreateRequest):
    if get_user_by_username(request.username):
        raise HTTPException(status_code=409, detail="Username already taken")
    row = create_user(request.model_dump(exclude_none=True))
    return UserResponse(message="User created successfully", user=UserRecord.model_validate(row))


@router.put("/{user_id}", response_model=UserResponse, summary="Update user")
def replace_fields(user_id: str, request: UserUpdateRequest):
    return _apply_update(user_id, request.model_dump(exclude_unset=True))


@router.patch("/{user_id}", response_model=UserResponse, summary="Partially update user")
def patch_fields(user_id: str, request: UserUpdateRequest):
    # Nulls mean "leave unchanged" here.
    return _apply_update(user_id, request.model_dump(exclude_unset=True, exclude_none=True))


@router.delete("/{user_id}", response_model=UserDeleteResponse, summary="Delete user")
def delete(user_id: str):
    row = delete_user(user_id)
    if not row:
        raise HTTPException(status_code=404, detail="User not found")
    return UserDeleteResponse(message="User deleted successfully", deleted_user=UserRecord.model_validate(row))
