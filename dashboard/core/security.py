from __future__ import annotations

from fastapi import HTTPException


def parse_bearer(authorization: str | None) -> str:
    """Extract the token from an `Authorization: Bearer <token>` header. Raises 401 otherwise.

    The token is never inspected here; it is forwarded to the backend, which
    is the one that validates it.
    """
    if not authorization:
        raise HTTPException(status_code=401, detail="Authentication required")
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=401, detail="Invalid authorization header")
    return token
