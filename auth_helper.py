import os
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt
from fastapi import Depends, Header, HTTPException

from repositories import UserRepository, get_user_repository
from schemas import Role

logger = logging.getLogger(__name__)

JWT_SECRET = os.getenv("JWT_SECRET", "change-me-in-production")
JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS", "7"))
JWT_ALGORITHM = "HS256"


# ------------- Passwords -------------

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def compare_password(password: str, hashed: str) -> bool:
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False


# ------------- Tokens -------------

class TokenService:
    """Issues and verifies the session JWTs handed out by login."""

    def __init__(self, secret: str = JWT_SECRET, expires_days: int = JWT_EXPIRES_DAYS):
        self.secret = secret
        self.expires_days = expires_days

    def sign(self, user_id: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "_id": user_id,
            "iat": now,
            "exp": now + timedelta(days=self.expires_days),
        }
        return jwt.encode(payload, self.secret, algorithm=JWT_ALGORITHM)

    def verify(self, token: str) -> Dict[str, Any]:
        return jwt.decode(token, self.secret, algorithms=[JWT_ALGORITHM])


def get_token_service() -> TokenService:
    return TokenService()


# ------------- Dependencies -------------

def _extract_token(authorization: Optional[str]) -> str:
    token = (authorization or "").strip()
    if token.lower().startswith("bearer "):
        token = token[7:].strip()
    return token


def require_sign_in(
    authorization: str = Header(default=""),
    tokens: TokenService = Depends(get_token_service),
) -> Dict[str, Any]:
    """Resolve the caller identity ({"_id": ...}) from the Authorization header."""
    token = _extract_token(authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized")
    try:
        claims = tokens.verify(token)
    except jwt.PyJWTError as e:
        logger.info("Rejected token: %s", e)
        raise HTTPException(status_code=401, detail="Unauthorized")
    if not claims.get("_id"):
        raise HTTPException(status_code=401, detail="Unauthorized")
    return {"_id": claims["_id"]}


def is_admin(
    caller: Dict[str, Any] = Depends(require_sign_in),
    users: UserRepository = Depends(get_user_repository),
) -> Dict[str, Any]:
    user = users.find_by_id(caller["_id"])
    if not user or user.get("role") != Role.ADMIN.value:
        raise HTTPException(status_code=401, detail="UnAuthorized Access")
    return caller
