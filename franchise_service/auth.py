import os
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, Header, HTTPException
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from . import models
from .database import get_db

SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 30))

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_minutes: Optional[int] = None):
    to_encode = data.copy()
    expire = datetime.utcnow() + timedelta(minutes=expires_minutes or ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def token_for(user: models.User):
    return create_access_token({"sub": user.email, "id": user.id, "role": user.role.value})


def decode_token(authorization: Optional[str]):
    if not authorization:
        raise HTTPException(401, "Missing Token")
    token = authorization.replace("Bearer ", "")
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(401, "Invalid Token")


def get_current_user(authorization: str = Header(None), db: Session = Depends(get_db)) -> models.User:
    """Resolve the bearer token into the principal passed to every service call."""
    payload = decode_token(authorization)
    user_id = payload.get("id")
    user = db.get(models.User, user_id) if user_id else None
    if not user:
        raise HTTPException(401, "Invalid Token")
    return user


def require_roles(*roles):
    def checker(user: models.User = Depends(get_current_user)) -> models.User:
        if user.role not in roles:
            raise HTTPException(403, "Access denied. Insufficient privileges.")
        return user
    return checker


require_admin = require_roles(models.Role.ADMIN)
require_admin_or_manager = require_roles(models.Role.ADMIN, models.Role.ORDER_MANAGER)
