"""
Photo and document uploads for property passports.
Validates files, writes them to the storage buckets and records their metadata.
"""

from fastapi import UploadFile
from pathlib import Path
from PIL import Image, UnidentifiedImageError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional, Tuple
import io
import logging
import uuid

from passport.config import settings
from passport.models.enums import DocumentType, MediaType, Relationship
from passport.models.media import Document, PropertyPhoto
from passport.repositories.media import DocumentRepository, MediaRepository, PhotoRepository
from passport.services.access import AccessService, READ_RELATIONSHIPS, WRITE_RELATIONSHIPS
from passport.services.storage import StorageBackend
from passport.utils.exceptions import (
    FileSizeExceededError,
    NotFoundError,
    PropertyAccessDeniedError,
    UnsupportedFileTypeError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Pillow format names accepted for each declared image type
IMAGE_FORMATS = {
    "image/jpeg": ("JPEG",),
    "image/png": ("PNG",),
    "image/webp": ("WEBP",),
}
IMAGE_EXTENSIONS = {
    "image/jpeg": (".jpg", ".jpeg"),
    "image/png": (".png",),
    "image/webp": (".webp",),
}


class MediaService:
    """Service for property photo and document uploads."""

    def __init__(self, db_session: AsyncSession, storage: StorageBackend):
        self.db = db_session
        self.storage = storage
        self.access_service = AccessService(db_session)
        self.photo_repo = PhotoRepository(db_session)
        self.media_repo = MediaRepository(db_session)
        self.document_repo = DocumentRepository(db_session)

    async def validate_image_file(self, file: UploadFile) -> Tuple[bytes, str, int, int]:
        """
        Validate an uploaded image.

        Args:
            file: Uploaded file object

        Returns:
            Tuple of (content, mime_type, width, height)

        Raises:
            UnsupportedFileTypeError: If the declared type or extension is not allowed
            FileSizeExceededError: If the file is larger than MAX_FILE_SIZE
            ValidationError: If the bytes are not a decodable image of the declared type
        """
        mime_type = file.content_type or ""
        if mime_type not in settings.allowed_image_types:
            raise UnsupportedFileTypeError(mime_type, settings.allowed_image_types)

        if not file.filename:
            raise ValidationError("Filename is required")

        extension = Path(file.filename).suffix.lower()
        if extension not in IMAGE_EXTENSIONS.get(mime_type, ()):
            raise ValidationError(f"File extension '{extension}' doesn't match MIME type '{mime_type}'")

        content = await self._read(file, settings.max_file_size)

        try:
            with Image.open(io.BytesIO(content)) as img:
                width, height = img.size
                image_format = img.format
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise ValidationError(f"Invalid image file: {e}")

        if image_format not in IMAGE_FORMATS[mime_type]:
            raise ValidationError(f"File content doesn't match declared type {mime_type}")

        return content, mime_type, width, height

    async def validate_document_file(self, file: UploadFile) -> Tuple[bytes, str]:
        """Validate an uploaded document's type and size; returns (content, mime_type)."""
        mime_type = file.content_type or ""
        if mime_type not in settings.allowed_document_types:
            raise UnsupportedFileTypeError(mime_type, settings.allowed_document_types)
        if not file.filename:
            raise ValidationError("Filename is required")

        content = await self._read(file, settings.max_document_size)
        return content, mime_type

    async def upload_photo(
        self,
        user_id: uuid.UUID,
        property_id: uuid.UUID,
        file: UploadFile,
        caption: Optional[str] = None,
        room_type: Optional[str] = None,
        is_featured: bool = False
    ) -> PropertyPhoto:
        """
        Store a photo in the public photos bucket and record it.

        Raises:
            PropertyAccessDeniedError: If the caller is not the owner
            StorageError: If the bucket rejects the upload
        """
        await self.access_service.authorize_property_access(user_id, property_id, WRITE_RELATIONSHIPS)
        content, mime_type, width, height = await self.validate_image_file(file)

        bucket = settings.photos_bucket
        object_path = self._object_path(property_id, file.filename)
        await self.storage.upload(bucket, object_path, content, mime_type)
        public_url = self.storage.public_url(bucket, object_path)

        try:
            photo = self.photo_repo.stage({
                "property_id": property_id,
                "file_url": public_url,
                "file_name": file.filename,
                "caption": caption,
                "room_type": room_type,
                "is_featured": is_featured,
                "uploaded_by": user_id,
            })
            self.media_repo.stage({
                "property_id": property_id,
                "type": MediaType.PHOTO,
                "url": public_url,
                "caption": caption,
                "room_type": room_type,
                "is_featured": is_featured,
                "uploaded_by": user_id,
                "media_metadata": {
                    "width": width,
                    "height": height,
                    "mime_type": mime_type,
                    "size_bytes": len(content),
                    "object_path": object_path,
                },
            })
            # Photo and media rows are written together or not at all
            await self.db.commit()
            await self.db.refresh(photo)
        except Exception:
            await self.db.rollback()
            logger.error(f"Recording photo for property {property_id} failed, removing {object_path}")
            await self.storage.delete(bucket, object_path)
            raise

        logger.info(f"Photo {photo.id} uploaded for property {property_id}", extra={"object_path": object_path})
        return photo

    async def list_photos(self, user_id: uuid.UUID, property_id: uuid.UUID) -> List[PropertyPhoto]:
        await self.access_service.authorize_property_access(user_id, property_id, READ_RELATIONSHIPS)
        return await self.photo_repo.list_for_property(property_id)

    async def upload_document(
        self,
        user_id: uuid.UUID,
        property_id: uuid.UUID,
        file: UploadFile,
        document_type: DocumentType,
        description: Optional[str] = None,
        is_public: bool = False
    ) -> Document:
        """
        Store a document in the private documents bucket and record its object path.

        Raises:
            PropertyAccessDeniedError: If the caller is not the owner
            StorageError: If the bucket rejects the upload
        """
        await self.access_service.authorize_property_access(user_id, property_id, WRITE_RELATIONSHIPS)
        content, mime_type = await self.validate_document_file(file)

        bucket = settings.documents_bucket
        object_path = self._object_path(property_id, file.filename)
        await self.storage.upload(bucket, object_path, content, mime_type)

        try:
            document = await self.document_repo.create({
                "property_id": property_id,
                "document_type": document_type,
                "file_name": file.filename,
                "file_url": object_path,
                "file_size_bytes": len(content),
                "mime_type": mime_type,
                "description": description,
                "is_public": is_public,
                "uploaded_by": user_id,
            })
        except Exception:
            await self.storage.delete(bucket, object_path)
            raise

        logger.info(f"Document {document.id} uploaded for property {property_id}")
        return document

    async def get_document_signed_url(
        self,
        user_id: uuid.UUID,
        document_id: uuid.UUID,
        expires_in: Optional[int] = None
    ) -> Tuple[str, int]:
        """
        Time-boxed download URL for a private document.

        Interested parties may only download documents marked public.

        Raises:
            NotFoundError: If the document does not exist
            PropertyAccessDeniedError: If the caller may not read it
        """
        document = await self.document_repo.get_by_id(document_id)
        if document is None:
            raise NotFoundError("Document", str(document_id))

        access = await self.access_service.authorize_property_access(
            user_id, document.property_id, READ_RELATIONSHIPS
        )
        if access.relationship == Relationship.INTERESTED and not document.is_public:
            raise PropertyAccessDeniedError()

        expires_in = expires_in or settings.signed_url_expires_in
        url = await self.storage.create_signed_url(settings.documents_bucket, document.file_url, expires_in)
        return url, expires_in

    @staticmethod
    def _object_path(property_id: uuid.UUID, filename: str) -> str:
        extension = Path(filename).suffix.lower()
        return f"{property_id}/{uuid.uuid4()}{extension}"

    @staticmethod
    async def _read(file: UploadFile, max_size: int) -> bytes:
        await file.seek(0)
        content = await file.read()
        if not content:
            raise ValidationError("File is empty")
        if len(content) > max_size:
            raise FileSizeExceededError(len(content), max_size)
        return content
