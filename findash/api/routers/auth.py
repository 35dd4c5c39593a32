"""Authentication API routes."""

from typing import Any

from fastapi import APIRouter

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/logout")
async def logout() -> dict[str, Any]:
    """
    End the client's session.

    Stateless: the client discards its token. Tokens are revoked through
    ``main.py --revoke-token``.
    """
    return {"success": True, "message": "Logout successful"}
