import json
import logging
import re
from typing import Any, Dict, List, Optional, Protocol

import httpx
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential_jitter

from .config import Settings
from .errors import ProviderError
from .security import mask_api_key

logger = logging.getLogger(__name__)

# =========================
# Prompts
# =========================
CONTENT_PROMPT_TMPL = (
    'Create a professional {slide_count}-slide presentation structure about "{topic}" '
    "(Intangible Cultural Heritage).\n"
    "Return a JSON object matching the following structure.\n"
    "Each slide should have a clear title, bullet points (content), and a suggested layout "
    "('split', 'centered', or 'full-image').\n"
    "Focus on history, significance, specific examples, and conservation efforts.\n"
    "Output in {language}."
)

IMAGE_PROMPT_TMPL = (
    "A beautiful, high-quality, professional photography style artistic illustration "
    "representing {slide_title} in the context of {topic} (Chinese Intangible Cultural Heritage). "
    "Elegant lighting, detailed textures, cultural essence."
)

LAYOUT_VALUES = ["split", "centered", "full-image"]

PRESENTATION_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "topic": {"type": "STRING"},
        "theme": {"type": "STRING"},
        "slides": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "id": {"type": "STRING"},
                    "title": {"type": "STRING"},
                    "content": {"type": "ARRAY", "items": {"type": "STRING"}},
                    "layout": {"type": "STRING", "enum": LAYOUT_VALUES},
                },
                "required": ["id", "title", "content", "layout"],
            },
        },
    },
    "required": ["topic", "theme", "slides"],
}


class GenerativeClient(Protocol):
    """The two capabilities the orchestrator needs from a remote model."""

    async def generate_json(self, prompt: str, response_schema: Dict[str, Any]) -> str: ...

    async def generate_image(self, prompt: str, aspect_ratio: str) -> List[Dict[str, Any]]: ...


# =========================
# Helpers
# =========================
def extract_json(text: str) -> Dict[str, Any]:
    """Extract a JSON object from model output (handles ```json fences or prose-wrapped JSON)."""
    if not text or not text.strip():
        raise ValueError("Empty response from model")

    m = re.search(r"```json\s*(\{.*?\})\s*```", text, flags=re.S | re.I)
    if m:
        return json.loads(m.group(1))

    m = re.search(r"(\{.*\})", text, flags=re.S)
    if m:
        return json.loads(m.group(1))

    return json.loads(text)

def _raise_for_provider_error(resp: httpx.Response, provider_label: str):
    try:
        body = resp.text[:500]
    except Exception:
        body = "<no body>"
    raise ProviderError(f"{provider_label} HTTP {resp.status_code}: {body}", status_code=resp.status_code)

def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, ProviderError):
        return exc.status_code is not None and (exc.status_code == 429 or exc.status_code >= 500)
    return False


# =========================
# Gemini (native REST)
# =========================
class GeminiClient:
    def __init__(
        self,
        api_key: str,
        text_model: str,
        image_model: str,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 60.0,
        max_attempts: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.text_model = text_model
        self.image_model = image_model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "GeminiClient":
        return cls(
            api_key=settings.api_key,
            text_model=settings.text_model,
            image_model=settings.image_model,
            base_url=settings.gemini_base,
            timeout=settings.timeout,
            max_attempts=settings.max_attempts,
            **kwargs,
        )

    def __repr__(self) -> str:
        return f"GeminiClient(base={self.base_url!r}, key={mask_api_key(self.api_key)!r})"

    async def _post(self, model: str, data: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}/models/{model}:generateContent"
        headers = {"x-goog-api-key": self.api_key}
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            r = await client.post(url, headers=headers, json=data)
            if r.status_code >= 400:
                _raise_for_provider_error(r, "Gemini")
            return r.json()

    async def generate_json(self, prompt: str, response_schema: Dict[str, Any]) -> str:
        """Ask the text model for JSON; returns the raw text of the first candidate."""
        data = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            },
        }
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential_jitter(initial=1, max=8),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.info("Retrying content request (attempt %s)", attempt.retry_state.attempt_number)
                j = await self._post(self.text_model, data)

        candidates = j.get("candidates") or []
        if not candidates:
            return ""
        parts = candidates[0].get("content", {}).get("parts", [])
        return "".join(p.get("text", "") for p in parts)

    async def generate_image(self, prompt: str, aspect_ratio: str) -> List[Dict[str, Any]]:
        """Ask the image model for a picture; returns the raw parts of the first candidate."""
        data = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseModalities": ["IMAGE"],
                "imageConfig": {"aspectRatio": aspect_ratio},
            },
        }
        j = await self._post(self.image_model, data)
        candidates = j.get("candidates") or []
        if not candidates:
            return []
        return candidates[0].get("content", {}).get("parts", []) or []
