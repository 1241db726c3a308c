# callcrm/routers/deps.py
"""
Caller identity for the routers.

Tokens are issued elsewhere; here they are only verified. A token carries
`sub` (user id) and `role`. Webhook intake may instead present the shared
`X-API-Key`.
"""
import logging
import os
import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError

from callcrm.schemas.user import Actor

logger = logging.getLogger(__name__)

JWT_SECRET = os.getenv("JWT_SECRET", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
LEAD_API_KEY = os.getenv("LEAD_API_KEY", "")

bearer_scheme = HTTPBearer(auto_error=False)


def decode_actor(token: str) -> Actor:
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        return Actor(user_id=payload.get("sub"), role=payload.get("role"))
    except (JWTError, ValidationError) as e:
        logger.info("Rejected bearer token: %s", e)
        raise HTTPException(status_code=401, detail="Invalid or expired token")


async def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Actor:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return decode_actor(credentials.credentials)


def require_roles(*roles: str):
    async def dependency(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in roles:
            raise HTTPException(status_code=403, detail="Insufficient role")
        return actor
    return dependency


async def get_intake_caller(
    x_api_key: Optional[str] = Header(None),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[Actor]:
    """Integrations authenticate with the API key (None is returned); users with a token."""
    if LEAD_API_KEY and x_api_key and secrets.compare_digest(x_api_key, LEAD_API_KEY):
        return None
    if credentials is not None:
        return decode_actor(credentials.credentials)
    raise HTTPException(status_code=401, detail="API key or bearer token required")
