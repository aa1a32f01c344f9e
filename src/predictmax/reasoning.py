"""ReasoningTextGenerator backed by an LLM messages API over httpx."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from predictmax.errors import ReasoningUnavailable

log = structlog.get_logger(__name__)

API_VERSION = "2023-06-01"


class LLMReasoningGenerator:
    def __init__(
        self,
        api_key: str,
        model: str,
        api_base: str = "https://api.anthropic.com/v1",
        max_tokens: int = 300,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.api_base = api_base.rstrip("/")
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._transport = transport

    async def generate(self, prompt: str) -> str:
        """First text block of the model's reply; ReasoningUnavailable on any failure."""
        body = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {"x-api-key": self.api_key, "anthropic-version": API_VERSION}
        try:
            async with httpx.AsyncClient(
                base_url=self.api_base, timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.post("/messages", json=body, headers=headers)
                resp.raise_for_status()
                data: dict[str, Any] = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ReasoningUnavailable(str(e)) from e
        for block in data.get("content") or []:
            if isinstance(block, dict) and block.get("type") == "text" and block.get("text"):
                return str(block["text"])
        log.debug("reasoning_empty", model=self.model)
        raise ReasoningUnavailable("no text content in response")
