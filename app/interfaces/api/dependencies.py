"""FastAPI dependency utilities."""

from fastapi import HTTPException, Request, status

from app.config import get_settings


def get_current_user_id(request: Request) -> str:
    """Return the identity forwarded by the authentication layer.

    The header name comes from ``Settings.identity_header``.
    """

    header = get_settings().identity_header
    user_id = (request.headers.get(header) or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Not authenticated", "details": f"Missing {header} header"},
        )
    return user_id
