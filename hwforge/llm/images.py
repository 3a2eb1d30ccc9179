"""Image generation client for blueprint concept renders."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Protocol

import requests

log = logging.getLogger("hwforge.llm.images")


class ImageClient(Protocol):
    async def generate(self, prompt: str) -> str:
        """Render ``prompt`` and return the image URL."""
        ...


@dataclass
class HttpImageClient:
    """Client for a JSON image endpoint.

    Configure environment variables:
      - HWFORGE_IMAGE_URL   endpoint accepting POST {"prompt": ...}
      - HWFORGE_IMAGE_KEY   bearer token (optional)

    The endpoint must answer with ``{"imageUrl": ...}`` or ``{"image_url": ...}``.
    """
    url: str = field(default_factory=lambda: os.environ.get("HWFORGE_IMAGE_URL", ""))
    api_key: str = field(default_factory=lambda: os.environ.get("HWFORGE_IMAGE_KEY", ""))
    timeout: float = 120.0

    def _generate_sync(self, prompt: str) -> str:
        if not self.url:
            raise RuntimeError("HWFORGE_IMAGE_URL must be set.")

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        r = requests.post(self.url, headers=headers, json={"prompt": prompt},
                          timeout=self.timeout)
        r.raise_for_status()
        data = r.json()
        image_url = data.get("imageUrl") or data.get("image_url")
        if not image_url:
            raise RuntimeError("Image endpoint returned no image URL.")
        return image_url

    async def generate(self, prompt: str) -> str:
        log.debug("Generating image: %s", prompt[:80])
        return await asyncio.to_thread(self._generate_sync, prompt)
