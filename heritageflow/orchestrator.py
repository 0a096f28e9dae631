"""Content assembly: one structured-content call, then per-slide image back-fill."""
import asyncio
import base64
import binascii
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .config import Settings
from .errors import GenerationError, ImageGenerationError
from .ids import IdFactory, UuidIdFactory
from .llm_providers import (
    CONTENT_PROMPT_TMPL,
    IMAGE_PROMPT_TMPL,
    PRESENTATION_SCHEMA,
    GenerativeClient,
    extract_json,
)
from .models import DEFAULT_THEME, GeneratedDeck, ImageRef, ImageUpdate, Presentation, Slide, SlideLayout

logger = logging.getLogger(__name__)


class ContentOrchestrator:
    """Turns a topic into a Presentation using an injected generative client.

    Never mutates a Presentation: content comes back as a new object and
    images come back as ``ImageUpdate`` messages for the controller to merge.
    """

    def __init__(
        self,
        client: GenerativeClient,
        id_factory: Optional[IdFactory] = None,
        slide_count: int = 8,
        language: str = "Chinese (Simplified)",
        aspect_ratio: str = "16:9",
    ):
        self.client = client
        self.id_factory = id_factory or UuidIdFactory()
        self.slide_count = slide_count
        self.language = language
        self.aspect_ratio = aspect_ratio

    @classmethod
    def from_settings(cls, client: GenerativeClient, settings: Settings, **kwargs) -> "ContentOrchestrator":
        return cls(
            client,
            slide_count=settings.slide_count,
            language=settings.language,
            aspect_ratio=settings.aspect_ratio,
            **kwargs,
        )

    async def generate_content(self, topic: str) -> Presentation:
        prompt = CONTENT_PROMPT_TMPL.format(slide_count=self.slide_count, topic=topic, language=self.language)
        try:
            raw = await self.client.generate_json(prompt, PRESENTATION_SCHEMA)
        except Exception as e:
            raise GenerationError(f"Content request failed: {e}") from e

        try:
            deck = GeneratedDeck.model_validate(extract_json(raw))
        except (ValueError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            raise GenerationError(f"Bad model output: {e}") from e

        slides = []
        for s in deck.slides:
            layout = SlideLayout.coerce(s.layout)
            if layout.value != s.layout:
                logger.warning(f"Slide {s.id!r} has unknown layout {s.layout!r}; using {layout.value}")
            slides.append(Slide(id=s.id, title=s.title, content=s.content, layout=layout, category=s.category))

        presentation = Presentation(
            id=self.id_factory(),
            topic=(deck.topic or "").strip() or topic,
            theme=DEFAULT_THEME,
            slides=tuple(slides),
        )
        logger.info("Generated presentation %s with %d slides", presentation.id, len(presentation.slides))
        return presentation

    async def generate_image(self, slide_title: str, topic: str) -> Optional[ImageRef]:
        """Best effort: any failure resolves to ``None``."""
        try:
            return await self._request_image(slide_title, topic)
        except ImageGenerationError as e:
            logger.warning(f"Image generation failed for {slide_title!r}: {e}")
            return None

    async def _request_image(self, slide_title: str, topic: str) -> ImageRef:
        prompt = IMAGE_PROMPT_TMPL.format(slide_title=slide_title, topic=topic)
        try:
            parts = await self.client.generate_image(prompt, self.aspect_ratio)
        except Exception as e:
            raise ImageGenerationError(str(e)) from e

        if not isinstance(parts, list):
            raise ImageGenerationError(f"unexpected image response: {type(parts).__name__}")
        image = first_inline_image(parts)
        if image is None:
            raise ImageGenerationError("no usable image part in response")
        return image

    async def _backfill_one(self, presentation_id: str, slide: Slide, topic: str, channel: asyncio.Queue):
        image = await self.generate_image(slide.title, topic)
        if image is not None:
            await channel.put(ImageUpdate(presentation_id=presentation_id, slide_id=slide.id, image=image))

    def spawn_backfill(
        self, presentation: Presentation, channel: asyncio.Queue, topic: Optional[str] = None
    ) -> List[asyncio.Task]:
        """Start one independent image task per slide; results go to ``channel``.

        ``topic`` is the one the user asked for; the model-returned topic is used without it.
        """
        topic = topic or presentation.topic
        return [
            asyncio.create_task(
                self._backfill_one(presentation.id, slide, topic, channel),
                name=f"backfill-{presentation.id}-{slide.id}",
            )
            for slide in presentation.slides
        ]


def first_inline_image(parts: List[Dict[str, Any]]) -> Optional[ImageRef]:
    """Pick the first part carrying decodable inline image data."""
    for part in parts:
        if not isinstance(part, dict):
            continue
        inline = part.get("inlineData") or part.get("inline_data")
        if not isinstance(inline, dict):
            continue
        data = inline.get("data")
        mime_type = inline.get("mimeType") or inline.get("mime_type")
        if not (isinstance(data, str) and data and isinstance(mime_type, str) and mime_type):
            continue
        try:
            base64.b64decode(data, validate=True)
            return ImageRef(mime_type=mime_type, data=data)
        except (binascii.Error, TypeError, ValueError, ValidationError):
            continue
    return None
