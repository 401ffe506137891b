"""Image downloads shared across every consumer of the same URL."""
from modio_sync.clients.base import ModioApi
from modio_sync.core.config import Settings
from modio_sync.services.coalescer import InFlightRequestCoalescer


class ImageRequestManager(InFlightRequestCoalescer[str, bytes]):
    """
    Downloads images by URL, one request per URL no matter how many widgets ask.

    Holds the raw encoded bytes; decoding is left to the caller.
    """

    def __init__(self, api: ModioApi, settings: Settings) -> None:
        super().__init__(
            fetch=api.fetch_url,
            clear_cache_on_deactivate=settings.clear_image_cache_on_deactivate,
        )

    async def request_image(self, url: str) -> bytes:
        """Return the image at url, downloading it at most once while in flight."""
        if not url:
            raise ValueError("Image URL must not be empty")
        return await self.request(url)
