# backend/soiliq/core/auth.py

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import jwt
from fastapi import HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from soiliq.core.config import settings

security = HTTPBearer()


# ------------------------------------------------
# TOKEN VERIFICATION
# ------------------------------------------------
def decode_token(token: str) -> Dict[str, Any]:
    """Decode a backend-issued JWT. Raises jwt.InvalidTokenError subclasses."""
    return jwt.decode(
        token,
        settings.SECRET_KEY,
        algorithms=[settings.ALGORITHM],
        options={"verify_exp": True},
    )


def user_id_from_payload(payload: Dict[str, Any]) -> Optional[str]:
    user_id = payload.get("sub") or payload.get("user_id")
    return str(user_id) if user_id else None


def verify_token(token: str) -> Dict[str, Any]:
    try:
        payload = decode_token(token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    if not user_id_from_payload(payload):
        raise HTTPException(status_code=401, detail="Token has no subject")

    return payload


async def require_user(credentials: HTTPAuthorizationCredentials = Depends(security)):
    return verify_token(credentials.credentials)


async def get_current_user_id(user=Depends(require_user)) -> str:
    return user_id_from_payload(user)


# ------------------------------------------------
# TOKEN CREATOR
# ------------------------------------------------
def create_access_token(data: dict, expires_delta: timedelta | None = None):
    to_encode = data.copy()
    to_encode["exp"] = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
