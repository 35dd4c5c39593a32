"""System API routes."""

from fastapi import APIRouter

from findash.version import VERSION

router = APIRouter(tags=["system"])


@router.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok", "version": VERSION}
