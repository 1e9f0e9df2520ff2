from __future__ import annotations

from fastapi import APIRouter, Request

from userstore.repositories.user_store import UserStore
from userstore.schemas import UserOut, UserPayload, message

router = APIRouter(prefix="/users", tags=["users"])


def _get_store(request: Request) -> UserStore:
    store = getattr(getattr(request.app, "state", None), "store", None)
    if store is None:
        raise RuntimeError("UserStore not configured")
    return store


@router.get("")
def list_users(request: Request):
    users = _get_store(request).list()
    return message("OK", [UserOut.from_user(u) for u in users])


@router.post("")
def create_user(payload: UserPayload, request: Request):
    user = _get_store(request).create(payload.to_user())
    return message("OK", UserOut.from_user(user))


@router.get("/{user_id}")
def get_user(user_id: int, request: Request):
    user = _get_store(request).get(user_id)
    return message("OK", UserOut.from_user(user))


@router.put("/{user_id}")
def update_user(user_id: int, payload: UserPayload, request: Request):
    user = _get_store(request).update(user_id, payload.to_user())
    return message("OK", UserOut.from_user(user))


@router.delete("/{user_id}")
def delete_user(user_id: int, request: Request):
    user = _get_store(request).delete(user_id)
    return message("OK", UserOut.from_user(user))
