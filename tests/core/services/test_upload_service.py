"""Tests for UploadService."""

import base64

import pytest

from core.exceptions import BusinessRuleError, NotFoundError
from core.models import ImageUpload
from core.services.upload_service import UploadService

JPEG_URL = "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8\xffjpeg").decode("ascii")


@pytest.fixture
def upload_service(storage, project_service, config):
    return UploadService(storage, project_service, config)


class TestUpload:

    def test_returns_key_and_url(self, upload_service, storage, test_user_id):
        result = upload_service.upload(test_user_id, ImageUpload(base64_image=JPEG_URL))

        assert result["key"].startswith(f"uploads/{test_user_id}/")
        assert result["key"].endswith(".jpg")
        assert result["url"].startswith("https://storage.test/uploads/")
        assert storage.put.call_args.args[2] == "image/jpeg"

    def test_rejects_non_image(self, upload_service, test_user_id):
        pdf = "data:application/pdf;base64," + base64.b64encode(b"%PDF").decode("ascii")

        with pytest.raises(BusinessRuleError) as exc_info:
            upload_service.upload(test_user_id, ImageUpload(base64_image=pdf))

        assert str(exc_info.value) == "Only image files are allowed"


class TestUploadLogo:

    def test_sets_project_logo(self, upload_service, project, test_user_id):
        updated = upload_service.upload_logo(test_user_id, project.id, ImageUpload(base64_image=JPEG_URL))

        assert updated.logo_key.startswith(f"logo/{project.id}/")

    def test_foreign_project(self, upload_service, storage, other_project, test_user_id):
        with pytest.raises(NotFoundError):
            upload_service.upload_logo(test_user_id, other_project.id, ImageUpload(base64_image=JPEG_URL))
        storage.put.assert_not_called()
