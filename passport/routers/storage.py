"""
Object downloads for the local storage backend.
Photos are public; documents need the token from a signed URL.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse
from typing import Optional

from passport.services.error_handler import ERROR_RESPONSES
from passport.services.storage import LocalStorageBackend, StorageBackend
from passport.utils.dependencies import get_storage
from passport.utils.exceptions import NotFoundError


router = APIRouter(tags=["Media"])


@router.get(
    "/storage/{bucket}/{object_path:path}",
    summary="Download a stored object",
    description="Public photos are served as-is; documents require `?token=` from a signed URL.",
    response_class=FileResponse,
    responses={code: ERROR_RESPONSES[code] for code in (401, 403, 404)}
)
async def download_object(
    bucket: str,
    object_path: str,
    token: Optional[str] = Query(None, description="Signed URL token"),
    storage: StorageBackend = Depends(get_storage)
) -> FileResponse:
    """
    Stream an object from the local buckets.

    Raises:
        UnauthorizedError: If a document is requested without a valid token
        ForbiddenError: If the token was issued for another object
        NotFoundError: If the object does not exist or storage is not local
    """
    if not isinstance(storage, LocalStorageBackend):
        raise NotFoundError("Object")

    target = storage.open_object(bucket, object_path, token)
    return FileResponse(target)
