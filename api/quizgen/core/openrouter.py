from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple, Union

import httpx

from quizgen.core.config import Settings
from quizgen.core.errors import ConfigurationError, UpstreamResponseError, UpstreamUnavailableError
from quizgen.core.logging import excerpt

logger = logging.getLogger("openrouter")

SYSTEM_PROMPT = "You are a helpful study assistant."


@dataclass(frozen=True)
class ContentFragment:
    type: str
    text: str = ""

    @property
    def is_text(self) -> bool:
        return bool(self.text)


@dataclass(frozen=True)
class TextContent:
    text: str


@dataclass(frozen=True)
class FragmentContent:
    fragments: Tuple[ContentFragment, ...]


MessageContent = Union[TextContent, FragmentContent]


def parse_content(raw: Any) -> MessageContent:
    """
    The only place that looks at the runtime shape of `message.content`.
    A string becomes TextContent, a list becomes FragmentContent.
    """
    if isinstance(raw, str):
        return TextContent(text=raw)

    if isinstance(raw, list):
        fragments: List[ContentFragment] = []
        for item in raw:
            if not isinstance(item, dict):
                continue
            text = item.get("text")
            fragments.append(
                ContentFragment(
                    type=str(item.get("type", "")),
                    text=text if isinstance(text, str) else "",
                )
            )
        return FragmentContent(fragments=tuple(fragments))

    raise UpstreamResponseError(context={"content": repr(raw)[:500]})


def content_text(content: MessageContent) -> str:
    if isinstance(content, TextContent):
        return content.text
    return "".join(f.text for f in content.fragments if f.is_text)


@dataclass(frozen=True)
class GenerationResult:
    model: str
    text: str


class OpenRouterClient:
    """
    Chat-completions client. One request per call, no retries.
    """

    def __init__(self, http: httpx.AsyncClient, settings: Settings) -> None:
        self.http = http
        self.base_url = settings.openrouter_base_url.rstrip("/")
        self.api_key = (settings.openrouter_api_key or "").strip()
        self.model = settings.openrouter_model
        self.temperature = settings.temperature
        self.timeout_s = settings.openrouter_timeout_s
        self.referer = settings.openrouter_referer
        self.title = settings.openrouter_title

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "HTTP-Referer": self.referer,
            "X-Title": self.title,
        }

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
        }

    async def generate(self, prompt: str) -> GenerationResult:
        if not self.api_key:
            raise ConfigurationError("No OpenRouter api key set. Set OPENROUTER_API_KEY in the env file")

        url = f"{self.base_url}/chat/completions"
        try:
            r = await self.http.post(
                url,
                headers=self._headers(),
                json=self.build_payload(prompt),
                timeout=self.timeout_s,
            )
        except httpx.TransportError as e:
            logger.warning("openrouter transport failure url=%s err=%s", url, e)
            raise UpstreamUnavailableError(context={"url": url, "reason": str(e)}) from e

        if r.status_code >= 400:
            raise UpstreamResponseError(
                f"AI service returned HTTP {r.status_code}",
                context={"status": r.status_code, "raw": excerpt(r.text)},
            )

        try:
            data = r.json()
        except ValueError as e:
            raise UpstreamResponseError(context={"raw": excerpt(r.text)}) from e

        logger.debug("openrouter raw response=%s", excerpt(r.text))
        return GenerationResult(model=self.model, text=extract_reply(data))


def extract_reply(data: Any) -> str:
    """Pull the first choice's message text out of a chat-completions body."""
    choices = data.get("choices") if isinstance(data, dict) else None
    if not choices or not isinstance(choices, list):
        raise UpstreamResponseError(context={"raw": excerpt(repr(data))})

    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    if not isinstance(message, dict) or message.get("content") is None:
        raise UpstreamResponseError(context={"raw": excerpt(repr(data))})

    text = content_text(parse_content(message["content"]))
    if not text:
        raise UpstreamResponseError(context={"raw": excerpt(repr(data))})
    return text
