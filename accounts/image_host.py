"""Client for the third-party image host that stores profile pictures.

Uploads and deletions go through the Cloudinary SDK. The configuration is
read from `settings.IMAGE_HOST` once per process and passed to every SDK
call explicitly, so the SDK's global configuration is never touched.
"""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

import cloudinary.exceptions
from cloudinary import uploader
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from courses.exceptions import UploadFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageHostConfig:
    cloud_name: str
    api_key: str
    api_secret: str
    folder: str = ""
    upload_prefix: str = "https://api.cloudinary.com"
    timeout: float = 10.0

    @classmethod
    def from_settings(cls, options: dict | None = None) -> "ImageHostConfig":
        options = options if options is not None else settings.IMAGE_HOST
        return cls(
            cloud_name=options.get("CLOUD_NAME", ""),
            api_key=options.get("API_KEY", ""),
            api_secret=options.get("API_SECRET", ""),
            folder=options.get("FOLDER", ""),
            upload_prefix=options.get("UPLOAD_PREFIX", cls.upload_prefix).rstrip("/"),
            timeout=float(options.get("TIMEOUT", cls.timeout)),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    def sdk_options(self) -> dict[str, Any]:
        return {
            "cloud_name": self.cloud_name,
            "api_key": self.api_key,
            "api_secret": self.api_secret,
            "upload_prefix": self.upload_prefix,
            "timeout": self.timeout,
        }


@dataclass(frozen=True)
class UploadedImage:
    url: str
    public_id: str


class ImageHostClient:
    """Upload and delete images on the host.

    SDK errors, transport failures and answers without the expected fields
    surface as `UploadFailed`; callers decide whether that is fatal.
    """

    def __init__(self, config: ImageHostConfig):
        if not config.is_configured:
            raise ImproperlyConfigured("IMAGE_HOST needs CLOUD_NAME, API_KEY and API_SECRET.")
        self.config = config

    def _call(self, action: str, func, *args, **options) -> dict[str, Any]:
        try:
            result = func(*args, **options, **self.config.sdk_options())
        except (cloudinary.exceptions.Error, OSError) as exc:
            raise UploadFailed(f"Image host {action} failed") from exc
        if not isinstance(result, dict):
            raise UploadFailed(f"Image host returned an invalid {action} response")
        return result

    def upload(self, data: bytes, public_id: str) -> UploadedImage:
        body = self._call(
            "upload",
            uploader.upload,
            io.BytesIO(data),
            public_id=public_id,
            folder=self.config.folder or None,
            overwrite=True,
            resource_type="image",
            filename=f"{public_id}.png",
        )
        url = body.get("secure_url") or body.get("url")
        if not url:
            raise UploadFailed("Image host response did not include a URL")
        stored_id = body.get("public_id") or (f"{self.config.folder}/{public_id}" if self.config.folder else public_id)
        logger.info("Uploaded image %s", stored_id)
        return UploadedImage(url=url, public_id=stored_id)

    def destroy(self, public_id: str) -> None:
        body = self._call("destroy", uploader.destroy, public_id, resource_type="image")
        if body.get("result") not in ("ok", "not found"):
            raise UploadFailed(f"Image host refused to delete {public_id}")
        logger.info("Deleted image %s", public_id)


@lru_cache(maxsize=1)
def get_image_host() -> ImageHostClient:
    """Process-wide client built from settings on first use."""
    return ImageHostClient(ImageHostConfig.from_settings())
