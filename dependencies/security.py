from typing import Optional, Annotated
from fastapi import Header, HTTPException
from config.settings import settings
import hmac

AuthHeader = Annotated[Optional[str], Header(alias="Authorization")]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


def bearer_token(authorization: Optional[str]) -> str:
    """Token part of "Bearer <token>"; raises 401 for anything else."""
    if not authorization:
        raise _unauthorized("Missing Authorization header")

    scheme, _, token = authorization.strip().partition(" ")
    if not token.strip():
        raise _unauthorized("Invalid Authorization header format")
    if scheme.lower() != "bearer":
        raise _unauthorized("Invalid auth scheme")
    return token.strip()


def require_admin_token(authorization: AuthHeader = None):
    """Guards every write route (structure, modules, grades, ingest) and the activity log."""
    expected = settings.ADMIN_API_TOKEN
    # no configured token means admin writes are disabled, not open
    if not expected:
        raise HTTPException(status_code=500, detail="Admin token not configured")

    token = bearer_token(authorization)
    if not hmac.compare_digest(token.encode(), expected.encode()):
        raise _unauthorized("Invalid token")

    return {"client": "admin"}
