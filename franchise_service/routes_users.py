from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import models, users
from .auth import decode_token, get_current_user, require_admin, token_for
from .database import get_db
from .schemas import (
    AddressCreate, AddressOut, AdminUserCreate, LoginRequest, UserCreate, UserOut,
    UserUpdate, dump,
)

router = APIRouter(tags=["users"])


# --- API AUTH ---
@router.post("/api/auth/register")
def register(payload: UserCreate, db: Session = Depends(get_db)):
    user = users.create_user(db, payload, role=models.Role.USER)
    return JSONResponse(status_code=201, content={
        "success": True,
        "message": "User created",
        "user": dump(UserOut, user),
    })


@router.post("/api/auth/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = users.authenticate(db, payload.email, payload.password)
    if not user:
        raise HTTPException(401, "Incorrect email/password")
    return {
        "success": True,
        "access_token": token_for(user),
        "token_type": "bearer",
        "user": dump(UserOut, user),
    }


@router.get("/api/auth/verify")
def verify_token(authorization: str = Header(None)):
    return {"success": True, "payload": decode_token(authorization)}


# --- API ADDRESS ---
@router.post("/api/users/me/addresses")
def add_address(payload: AddressCreate, db: Session = Depends(get_db),
                user: models.User = Depends(get_current_user)):
    address = users.add_address(db, user, payload)
    return JSONResponse(status_code=201, content={"success": True, "address": dump(AddressOut, address)})


@router.get("/api/users/me/addresses")
def get_my_addresses(db: Session = Depends(get_db), user: models.User = Depends(get_current_user)):
    return {"success": True, "addresses": [dump(AddressOut, a) for a in users.list_addresses(db, user)]}


# --- API USER MANAGEMENT (admin) ---
@router.post("/api/users")
def create_user(payload: AdminUserCreate, db: Session = Depends(get_db),
                _: models.User = Depends(require_admin)):
    user = users.create_user(db, payload, role=payload.role)
    return JSONResponse(status_code=201, content={
        "success": True,
        "message": "User created",
        "user": dump(UserOut, user),
    })


@router.get("/api/users")
def list_users(
    role: Optional[models.Role] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    _: models.User = Depends(require_admin),
):
    items, pagination = users.list_users(db, role, search, page, limit)
    return {"success": True, "users": [dump(UserOut, u) for u in items], "pagination": pagination}


@router.put("/api/users/{user_id}")
def update_user(user_id: str, payload: UserUpdate, db: Session = Depends(get_db),
                _: models.User = Depends(require_admin)):
    user = users.update_user(db, user_id, payload)
    return {"success": True, "message": "User updated successfully", "user": dump(UserOut, user)}


@router.delete("/api/users/{user_id}")
def delete_user(user_id: str, db: Session = Depends(get_db),
                _: models.User = Depends(require_admin)):
    users.delete_user(db, user_id)
    return {"success": True, "message": "User deleted successfully"}
