"""Image upload to Supabase Storage."""

import logging

from supabase import Client

from src.api.middleware.error_handler import ValidationError
from src.core.config import Settings, get_settings
from src.core.ids import generate_id
from src.core.supabase import get_supabase_client

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = "jpg"


class MediaService:
    """Stores product images in the public image bucket."""

    def __init__(
        self,
        supabase_client: Client | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._supabase_client = supabase_client
        self.settings = settings or get_settings()

    @property
    def supabase(self) -> Client:
        """Get Supabase client."""
        if self._supabase_client is None:
            self._supabase_client = get_supabase_client()
        return self._supabase_client

    async def upload_image(
        self,
        file_content: bytes,
        file_name: str | None,
        content_type: str | None,
    ) -> dict[str, str]:
        """Upload an image and return its public URL.

        Args:
            file_content: Raw file bytes.
            file_name: Original file name, used for the extension.
            content_type: MIME type stored with the object.

        Returns:
            dict: url and key of the stored object.

        Raises:
            ValidationError: If the file is empty.
        """
        if not file_content:
            raise ValidationError("No file provided")

        extension = DEFAULT_EXTENSION
        if file_name and "." in file_name:
            extension = file_name.rsplit(".", 1)[-1].lower() or DEFAULT_EXTENSION
        key = f"{generate_id('img')}.{extension}"

        self.supabase.storage.from_(self.settings.storage_bucket).upload(
            path=key,
            file=file_content,
            file_options={"content-type": content_type or "application/octet-stream"},
        )

        url = f"{self.settings.storage_public_url.rstrip('/')}/{key}"
        logger.info("Uploaded image %s (%d bytes)", key, len(file_content))
        return {"url": url, "key": key}
