"""General image uploads and project logos."""

import logging
from uuid import UUID

from clients.storage_client import StorageClient, decode_data_url, logo_key, upload_key
from core.config import BillingConfig
from core.models import ImageUpload, Project
from core.services.project_service import ProjectService

logger = logging.getLogger(__name__)


class UploadService:
    """Stores owner-uploaded images in object storage."""

    def __init__(self, storage: StorageClient, projects: ProjectService, config: BillingConfig | None = None):
        self.storage = storage
        self.projects = projects
        self.config = config or BillingConfig()

    def upload(self, owner_id: UUID, data: ImageUpload) -> dict:
        """
        Store an image under the owner's upload area.

        Returns:
            {"key", "url"} with a presigned download URL
        """
        image = decode_data_url(data.base64_image, self.config.max_upload_bytes)
        key = self.storage.put(upload_key(owner_id, image.extension), image.data, image.content_type)
        logger.info(f"Stored upload {key}")
        return {
            "key": key,
            "url": self.storage.presigned_url(key, self.config.presigned_url_expiry_seconds),
        }

    def upload_logo(self, owner_id: UUID, project_id: UUID, data: ImageUpload) -> Project:
        """Store a project's logo and point the project at it."""
        self.projects.get(owner_id, project_id)
        image = decode_data_url(data.base64_image, self.config.max_upload_bytes)
        key = self.storage.put(logo_key(project_id, image.extension), image.data, image.content_type)
        return self.projects.set_logo(owner_id, project_id, key)
