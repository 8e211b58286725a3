"""Signed download endpoint for stored objects."""

from fastapi import APIRouter
from fastapi.responses import FileResponse

from healthnet.dependencies import Storage

router = APIRouter(prefix="/storage", tags=["Storage"])


@router.get("/{token}", response_class=FileResponse, summary="Download stored object")
async def download(token: str, storage: Storage) -> FileResponse:
    """Serve the object a signed link points at, while the link is still valid."""
    path = storage.resolve_signed_token(token)
    return FileResponse(path, filename=path.name)
