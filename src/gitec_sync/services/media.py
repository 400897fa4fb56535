"""
Image ingestion: download a product image and register it, returning an
opaque image reference the product store understands.
"""

import hashlib
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import unquote, urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..exceptions import ImageIngestionError

logger = logging.getLogger(__name__)


def image_filename(url: str) -> str:
    """File name for an image URL, basename of its path."""
    name = os.path.basename(unquote(urlparse(url).path))
    return name or "image"


class ImageIngestor(ABC):
    """Downloads an image by URL and registers it."""

    def __init__(self, timeout: float = 60.0, verify_ssl: bool = True, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.verify_ssl = verify_ssl

        if session is None:
            # Configure session with retries
            session = requests.Session()
            retry_strategy = Retry(
                total=3,
                status_forcelist=[429, 500, 502, 503, 504],
                backoff_factor=1
            )
            adapter = HTTPAdapter(max_retries=retry_strategy)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self.session = session

    def download(self, url: str) -> Tuple[bytes, Optional[str]]:
        """
        Download an image.

        Returns:
            Image bytes and the response content type

        Raises:
            ImageIngestionError: If the download fails
        """
        try:
            response = self.session.get(url, timeout=self.timeout, verify=self.verify_ssl)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise ImageIngestionError(f"Image download failed for {url}: {e}") from e

        if not response.content:
            raise ImageIngestionError(f"Image download returned no content for {url}")
        return response.content, response.headers.get("Content-Type")

    @abstractmethod
    def ingest(self, url: str) -> str:
        """
        Download and register the image at url.

        Returns:
            Image reference

        Raises:
            ImageIngestionError: If the image could not be ingested
        """
        pass


class DirectoryImageIngestor(ImageIngestor):
    """Stores images in a local media directory. The reference is the stored file name."""

    def __init__(self, media_dir: str = "media", **kwargs):
        super().__init__(**kwargs)
        self.media_dir = Path(media_dir)

    def ingest(self, url: str) -> str:
        content, _ = self.download(url)

        # Prefix with a digest so different images with the same name do not collide
        digest = hashlib.sha256(content).hexdigest()[:12]
        filename = f"{digest}-{image_filename(url)}"

        try:
            self.media_dir.mkdir(parents=True, exist_ok=True)
            (self.media_dir / filename).write_bytes(content)
        except OSError as e:
            raise ImageIngestionError(f"Could not store image {filename}: {e}") from e

        logger.debug(f"Stored image {url} as {filename}")
        return filename


class WordPressMediaIngestor(ImageIngestor):
    """Uploads images to the WordPress media library. The reference is the media id."""

    def __init__(self, site_url: str, username: str, app_password: str, **kwargs):
        """
        Args:
            site_url: WordPress site URL
            username: WordPress user
            app_password: Application password for the user
        """
        super().__init__(**kwargs)
        self.media_endpoint = f"{site_url.rstrip('/')}/wp-json/wp/v2/media"
        self.auth = (username, app_password)

    def ingest(self, url: str) -> str:
        content, content_type = self.download(url)
        filename = image_filename(url)

        try:
            response = self.session.post(
                self.media_endpoint,
                data=content,
                headers={
                    "Content-Disposition": f'attachment; filename="{filename}"',
                    "Content-Type": content_type or "application/octet-stream",
                },
                auth=self.auth,
                timeout=self.timeout,
                verify=self.verify_ssl,
            )
            response.raise_for_status()
            media_id = response.json()["id"]
        except requests.exceptions.RequestException as e:
            raise ImageIngestionError(f"Media upload failed for {filename}: {e}") from e
        except (ValueError, KeyError) as e:
            raise ImageIngestionError(f"Unexpected media upload response for {filename}: {e}") from e

        logger.info(f"Uploaded image {filename} as media {media_id}")
        return str(media_id)
