"""
api/routes/v1/users.py -- User administration routes (admin only).

Routes:
  GET    /users             -- list all users, oldest first
  GET    /users/{user_id}   -- user detail
  DELETE /users/{user_id}   -- delete a user

Deleting your own account is blocked here (400 self_deletion) so an admin
cannot lock themselves out. The store itself deletes unconditionally.
Items owned by a deleted user are kept.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.models import UserListResponse, UserResponse
from auth.dependencies import require_admin
from auth.models import Identity
from records.store import RecordStore

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/users", response_model=UserListResponse)
def list_users(request: Request) -> UserListResponse:
    store: RecordStore = request.app.state.store
    return UserListResponse(users=[UserResponse.from_domain(u) for u in store.list_users()])


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(request: Request, user_id: str) -> UserResponse:
    store: RecordStore = request.app.state.store
    return UserResponse.from_domain(store.get_user(user_id))


@router.delete("/users/{user_id}", status_code=204)
def delete_user(
    request: Request,
    user_id: str,
    identity: Identity = Depends(require_admin),
) -> Response:
    if identity.id == user_id:
        raise HTTPException(
            status_code=400,
            detail={"code": "self_deletion", "message": "You cannot delete your own account."},
        )
    store: RecordStore = request.app.state.store
    store.delete_user(user_id)
    return Response(status_code=204)
