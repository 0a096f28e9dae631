"""Playback state machine that owns the current Presentation."""
import asyncio
import logging
from typing import Optional, Set

from .errors import GenerationError
from .models import AppStatus, ControllerSnapshot, ImageUpdate, Presentation
from .orchestrator import ContentOrchestrator
from .security import clean_topic

logger = logging.getLogger(__name__)

GENERATION_FAILED_MESSAGE = "Failed to generate presentation. Please try again later."

NEXT_KEYS = ("ArrowRight", " ")
PREVIOUS_KEYS = ("ArrowLeft",)
CANCEL_KEYS = ("Escape",)


class PlaybackController:
    """Idle -> Generating -> Presenting | Error, back to Idle on reset.

    All state changes happen on the event loop. Image back-fill tasks never
    touch the Presentation themselves; they post ``ImageUpdate`` messages to
    ``self.updates`` and the merge step applies them, dropping any update whose
    target Presentation is no longer owned.
    """

    def __init__(self, orchestrator: ContentOrchestrator):
        self.orchestrator = orchestrator
        self.status = AppStatus.IDLE
        self.topic = ""
        self.error: Optional[str] = None
        self.presentation: Optional[Presentation] = None
        self.current_index = 0
        self.is_fullscreen = False
        self.updates: asyncio.Queue = asyncio.Queue()
        self._backfill_tasks: Set[asyncio.Task] = set()
        self._pump: Optional[asyncio.Task] = None
        # bumped by every submit and reset; a generation whose token is stale is discarded
        self._generation = 0

    # ---------- generation ----------
    async def submit(self, topic: str) -> None:
        topic = clean_topic(topic)
        if not topic or self.status == AppStatus.GENERATING:
            return

        self._generation += 1
        token = self._generation
        self.topic = topic
        self.status = AppStatus.GENERATING
        self.error = None
        try:
            result = await self.orchestrator.generate_content(topic)
        except GenerationError as e:
            logger.error(f"Generation failed for {topic!r}: {e}")
            if token != self._generation:
                return
            self.error = GENERATION_FAILED_MESSAGE
            self.status = AppStatus.ERROR
            return

        if token != self._generation:
            logger.debug("Discarding presentation %s, superseded while generating", result.id)
            return

        self.presentation = result
        self.current_index = 0
        self.status = AppStatus.PRESENTING
        for task in self.orchestrator.spawn_backfill(result, self.updates, topic=topic):
            self._backfill_tasks.add(task)
            task.add_done_callback(self._backfill_tasks.discard)

    async def refresh_image(self, slide_id: str) -> bool:
        """Regenerate one slide image; returns whether a new image was merged."""
        presentation = self.presentation
        if presentation is None:
            return False
        slide = presentation.find_slide(slide_id)
        if slide is None:
            return False

        image = await self.orchestrator.generate_image(slide.title, presentation.topic)
        return self.merge(ImageUpdate(presentation_id=presentation.id, slide_id=slide_id, image=image))

    # ---------- merge step ----------
    def merge(self, update: ImageUpdate) -> bool:
        presentation = self.presentation
        if presentation is None or presentation.id != update.presentation_id:
            logger.debug("Dropping stale image for %s/%s", update.presentation_id, update.slide_id)
            return False
        if update.image is None:
            return False
        slide = presentation.find_slide(update.slide_id)
        if slide is None:
            return False
        slide.image = update.image
        return True

    def drain_updates(self) -> int:
        """Apply every update already queued without waiting for more."""
        merged = 0
        while True:
            try:
                update = self.updates.get_nowait()
            except asyncio.QueueEmpty:
                return merged
            merged += self.merge(update)

    async def settle(self) -> int:
        """Wait for in-flight back-fill tasks, then merge what they produced."""
        if self._backfill_tasks:
            await asyncio.gather(*list(self._backfill_tasks))
        return self.drain_updates()

    async def _run_merges(self):
        while True:
            update = await self.updates.get()
            self.merge(update)

    def start(self) -> None:
        if self._pump is None:
            self._pump = asyncio.create_task(self._run_merges(), name="image-merge")

    async def aclose(self) -> None:
        tasks = list(self._backfill_tasks)
        if self._pump is not None:
            tasks.append(self._pump)
            self._pump = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    # ---------- navigation ----------
    @property
    def slide_count(self) -> int:
        return len(self.presentation.slides) if self.presentation else 0

    def navigate_next(self) -> None:
        if self.status == AppStatus.PRESENTING and self.current_index < self.slide_count - 1:
            self.current_index += 1

    def navigate_previous(self) -> None:
        if self.status == AppStatus.PRESENTING and self.current_index > 0:
            self.current_index -= 1

    def jump_to(self, index: int) -> None:
        if self.status == AppStatus.PRESENTING and 0 <= index < self.slide_count:
            self.current_index = index

    def toggle_fullscreen(self) -> None:
        if self.status == AppStatus.PRESENTING:
            self.is_fullscreen = not self.is_fullscreen

    def handle_key(self, key: str) -> None:
        if self.status != AppStatus.PRESENTING:
            return
        if key in NEXT_KEYS:
            self.navigate_next()
        elif key in PREVIOUS_KEYS:
            self.navigate_previous()
        elif key in CANCEL_KEYS:
            self.reset()

    def reset(self) -> None:
        # In-flight calls keep running; their results are dropped when they land.
        self._generation += 1
        self.presentation = None
        self.status = AppStatus.IDLE
        self.topic = ""
        self.error = None
        self.current_index = 0
        self.is_fullscreen = False

    def snapshot(self) -> ControllerSnapshot:
        return ControllerSnapshot(
            status=self.status,
            topic=self.topic,
            error=self.error,
            presentation=self.presentation,
            current_index=self.current_index,
            is_fullscreen=self.is_fullscreen,
        )
