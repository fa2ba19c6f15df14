"""
Property photo and document endpoints backed by the storage buckets.
"""

from fastapi import APIRouter, Depends, File, Form, Path, Query, UploadFile, status
from fastapi.responses import JSONResponse
from typing import Optional
from uuid import UUID

from passport.models.enums import DocumentType
from passport.schemas.auth import AuthenticatedUser
from passport.schemas.envelope import RequestContext, envelope
from passport.schemas.property import DocumentSummary, PhotoSummary, SignedUrlPayload
from passport.services.error_handler import ERROR_RESPONSES
from passport.services.media import MediaService
from passport.utils.dependencies import get_current_user, get_media_service, get_request_context


router = APIRouter(tags=["Media"])

UPLOAD_RESPONSES = {code: ERROR_RESPONSES[code] for code in (400, 401, 403, 502)}


@router.post(
    "/properties/{property_id}/photos",
    status_code=status.HTTP_201_CREATED,
    summary="Upload a property photo",
    description="Upload a JPEG, PNG or WebP photo (max 10MB). Owner only.",
    responses=UPLOAD_RESPONSES
)
async def upload_photo(
    property_id: UUID = Path(..., description="Property ID"),
    file: UploadFile = File(..., description="Image file to upload"),
    caption: Optional[str] = Form(None, max_length=500),
    room_type: Optional[str] = Form(None, max_length=50),
    is_featured: bool = Form(False),
    user: AuthenticatedUser = Depends(get_current_user),
    context: RequestContext = Depends(get_request_context),
    media_service: MediaService = Depends(get_media_service)
) -> JSONResponse:
    """
    Upload a photo to the public photos bucket.

    Returns:
        Created photo record, whose file_url is the object's public URL

    Raises:
        PropertyAccessDeniedError: If the caller is not the owner
        UnsupportedFileTypeError: If the file type is not allowed
        FileSizeExceededError: If the file is too large
    """
    context.property_id = str(property_id)
    photo = await media_service.upload_photo(
        user.id, property_id, file, caption=caption, room_type=room_type, is_featured=is_featured
    )
    data = PhotoSummary.model_validate(photo).model_dump(mode="json")
    return JSONResponse(status_code=status.HTTP_201_CREATED, content=envelope(data, context.request_id))


@router.get(
    "/properties/{property_id}/photos",
    summary="List property photos",
    responses={code: ERROR_RESPONSES[code] for code in (400, 401, 403)}
)
async def list_photos(
    property_id: UUID = Path(..., description="Property ID"),
    user: AuthenticatedUser = Depends(get_current_user),
    context: RequestContext = Depends(get_request_context),
    media_service: MediaService = Depends(get_media_service)
) -> dict:
    context.property_id = str(property_id)
    photos = await media_service.list_photos(user.id, property_id)
    data = [PhotoSummary.model_validate(photo).model_dump(mode="json") for photo in photos]
    return envelope(data, context.request_id)


@router.post(
    "/properties/{property_id}/documents",
    status_code=status.HTTP_201_CREATED,
    summary="Upload a property document",
    description="Upload a document to the private documents bucket (max 25MB). Owner only.",
    responses=UPLOAD_RESPONSES
)
async def upload_document(
    property_id: UUID = Path(..., description="Property ID"),
    file: UploadFile = File(..., description="Document to upload"),
    document_type: DocumentType = Form(...),
    description: Optional[str] = Form(None, max_length=1000),
    is_public: bool = Form(False),
    user: AuthenticatedUser = Depends(get_current_user),
    context: RequestContext = Depends(get_request_context),
    media_service: MediaService = Depends(get_media_service)
) -> JSONResponse:
    context.property_id = str(property_id)
    document = await media_service.upload_document(
        user.id, property_id, file, document_type, description=description, is_public=is_public
    )
    data = DocumentSummary.model_validate(document).model_dump(mode="json")
    return JSONResponse(status_code=status.HTTP_201_CREATED, content=envelope(data, context.request_id))


@router.get(
    "/documents/{document_id}/signed-url",
    summary="Signed download URL for a document",
    responses={code: ERROR_RESPONSES[code] for code in (400, 401, 403, 404, 502)}
)
async def document_signed_url(
    document_id: UUID = Path(..., description="Document ID"),
    expires_in: Optional[int] = Query(None, ge=60, le=7 * 24 * 3600, description="URL lifetime in seconds"),
    user: AuthenticatedUser = Depends(get_current_user),
    context: RequestContext = Depends(get_request_context),
    media_service: MediaService = Depends(get_media_service)
) -> dict:
    url, lifetime = await media_service.get_document_signed_url(user.id, document_id, expires_in)
    payload = SignedUrlPayload(document_id=document_id, signed_url=url, expires_in=lifetime)
    return envelope(payload.model_dump(mode="json"), context.request_id)
