# app/services/images.py
"""
Profile picture hosting on Cloudinary.

The rest of the app only sees ImageHost.upload()/destroy(); routers get
an instance from get_image_host() so tests can swap in a fake.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import cloudinary
import cloudinary.uploader

from app.config import get_settings
from app.errors import ValidationError

logger = logging.getLogger("ledger.images")

ALLOWED_FORMATS = ["jpg", "jpeg", "png"]


class ImageUploadError(ValidationError):
    """The image host refused or failed the upload (answered as a 400)."""


@dataclass(frozen=True)
class UploadedImage:
    url: str
    public_id: str


class ImageHost:
    def __init__(self):
        self._settings = get_settings()
        self._configured = False

    def _configure(self):
        """Configure Cloudinary SDK."""
        if not self._configured:
            cloudinary.config(
                cloud_name=self._settings.cloudinary_cloud_name,
                api_key=self._settings.cloudinary_api_key,
                api_secret=self._settings.cloudinary_api_secret,
                secure=True,
            )
            self._configured = True

    def upload(self, data: bytes) -> UploadedImage:
        self._configure()
        try:
            result = cloudinary.uploader.upload(
                data,
                folder=self._settings.cloudinary_folder,
                transformation=[{"width": 500, "height": 500, "crop": "limit"}],
                allowed_formats=ALLOWED_FORMATS,
            )
        except Exception as e:
            logger.error("Cloudinary upload error: %s", e)
            raise ImageUploadError(str(e)) from e
        if not result or "secure_url" not in result:
            raise ImageUploadError("Upload failed: no result from Cloudinary")
        return UploadedImage(url=result["secure_url"], public_id=result["public_id"])

    def destroy(self, public_id: str) -> None:
        self._configure()
        cloudinary.uploader.destroy(public_id)


def get_image_host() -> ImageHost:
    """FastAPI dependency (overridden in tests)."""
    return ImageHost()
