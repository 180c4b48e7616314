from __future__ import annotations

from typing import Protocol


class TextGenerationPort(Protocol):
    async def generate(self, prompt: str) -> str:
        """Return the raw text the model produced for ``prompt``.

        Raises:
            UpstreamError: If the call fails, times out or returns no text.
        """
        ...
