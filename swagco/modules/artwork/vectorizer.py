# swagco/modules/artwork/vectorizer.py
import logging
from typing import Optional, Tuple

import requests

from swagco.core import get_config_value

logger = logging.getLogger(__name__)


class VectorizerError(Exception):
    """Raised when the vectorization API call fails"""


class VectorizerNotConfigured(VectorizerError):
    """Raised when VECTORIZER_API_ID / VECTORIZER_API_SECRET are missing"""


class VectorizerService:
    """Raster-to-SVG conversion through the Vectorizer.AI HTTP API"""

    def __init__(self, api_id: str = None, api_secret: str = None, api_url: str = None,
                 mode: str = None, timeout: int = 60):
        self._api_id = api_id
        self._api_secret = api_secret
        self._api_url = api_url
        self._mode = mode
        self.timeout = timeout

    @property
    def api_id(self) -> Optional[str]:
        return self._api_id or get_config_value('VECTORIZER_API_ID')

    @property
    def api_secret(self) -> Optional[str]:
        return self._api_secret or get_config_value('VECTORIZER_API_SECRET')

    @property
    def api_url(self) -> str:
        return self._api_url or get_config_value('VECTORIZER_API_URL', 'https://vectorizer.ai/api/v1/vectorize')

    @property
    def mode(self) -> str:
        return self._mode or get_config_value('VECTORIZER_MODE', 'production')

    def is_configured(self) -> bool:
        return bool(self.api_id and self.api_secret)

    def vectorize(self, image_bytes: bytes, filename: str) -> Tuple[bytes, Optional[str]]:
        """
        Convert a raster image to SVG

        Args:
            image_bytes: Raw bytes of the source image
            filename: Source filename (sent as the multipart filename)

        Returns:
            (svg_bytes, image_token) - image_token is None unless the API returned one
        """
        if not self.is_configured():
            raise VectorizerNotConfigured('Vectorization service not configured')

        try:
            response = requests.post(
                self.api_url,
                files={'image': (filename, image_bytes)},
                data={'mode': self.mode},
                auth=(self.api_id, self.api_secret),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Vectorizer request failed: {e}")
            raise VectorizerError(f'Vectorization request failed: {e}') from e

        if response.status_code != 200:
            logger.error(f"Vectorizer API returned {response.status_code}: {response.text[:500]}")
            raise VectorizerError(f'Vectorization failed with status {response.status_code}')

        logger.info(f"Vectorized {filename} ({len(image_bytes)} bytes in, {len(response.content)} bytes out)")
        return response.content, response.headers.get('X-Image-Token')


# Global instance
vectorizer_service = VectorizerService()
