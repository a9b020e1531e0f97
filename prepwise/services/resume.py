"""Resume text lookup from the voice-AI provider's file store."""

import asyncio
import logging
from typing import Optional

import requests

from prepwise.config import VAPI_API_KEY, VAPI_API_URL, VAPI_REQUEST_TIMEOUT

logger = logging.getLogger("prepwise.resume")


def _strip_trailing_slash(value: str) -> str:
    return value[:-1] if value.endswith("/") else value


class VapiFileClient:
    """Reads uploaded files (parsed resume text) back from the voice provider."""

    def __init__(self, api_key: str = VAPI_API_KEY, base_url: str = VAPI_API_URL,
                 timeout: float = VAPI_REQUEST_TIMEOUT, session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.base_url = _strip_trailing_slash(base_url)
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_file_text_sync(self, file_id: str) -> Optional[str]:
        """Return the file's extracted text, or None if it can't be fetched."""
        if not self.api_key or not file_id:
            return None
        try:
            resp = self.session.get(
                f"{self.base_url}/file/{file_id}",
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("[Resume] Could not fetch file %s: %s", file_id, e)
            return None

        text = data.get("text") if isinstance(data, dict) else None
        if not isinstance(text, str) or not text.strip():
            return None
        return text

    async def get_file_text(self, file_id: str) -> Optional[str]:
        return await asyncio.to_thread(self.get_file_text_sync, file_id)
