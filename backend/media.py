"""
Image upload relay to Cloudinary.

Each file is uploaded once through the Cloudinary SDK. The relay keeps no
state beyond credentials and returns the public `secure_url` of each upload.
"""
import io
import logging
from typing import Iterable, List, Optional, Tuple

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader

logger = logging.getLogger(__name__)

# width auto, quality auto, served as avif
TRANSFORMATION = [
    {"width": "auto"},
    {"quality": "auto"},
    {"fetch_format": "avif"},
]

MAX_IMAGES = 20


class MediaUploadError(Exception):
    pass


class MediaRelay:
    def __init__(
        self,
        cloud_name: Optional[str],
        api_key: Optional[str],
        api_secret: Optional[str],
        timeout: int = 60,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = timeout
        if self.configured:
            cloudinary.config(cloud_name=cloud_name, api_key=api_key, api_secret=api_secret, secure=True)

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    def upload(self, filename: str, content: bytes, content_type: Optional[str] = None) -> str:
        if not self.configured:
            raise MediaUploadError("Cloudinary credentials are not configured")

        try:
            result = cloudinary.uploader.upload(
                io.BytesIO(content),
                transformation=TRANSFORMATION,
                cloud_name=self.cloud_name,
                api_key=self.api_key,
                api_secret=self.api_secret,
                timeout=self.timeout,
            )
        except cloudinary.exceptions.Error as e:
            raise MediaUploadError(f"Upload of {filename} failed: {e}") from e

        url = result.get("secure_url")
        if not url:
            raise MediaUploadError(f"Upload of {filename} returned no secure_url")
        logger.debug("Uploaded %s (%s) to %s", filename, content_type or "unknown type", url)
        return url

    def upload_many(self, files: Iterable[Tuple[str, bytes, Optional[str]]]) -> List[str]:
        return [self.upload(name, content, content_type) for name, content, content_type in files]
