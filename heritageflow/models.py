from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator


class SlideLayout(str, Enum):
    SPLIT = "split"
    CENTERED = "centered"
    FULL_IMAGE = "full-image"

    @classmethod
    def coerce(cls, value) -> "SlideLayout":
        """Map any tag onto the closed set; unknown or missing tags fall back to centered."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.CENTERED


class Theme(str, Enum):
    CLASSICAL = "classical"
    MODERN = "modern"
    MINIMALIST = "minimalist"


DEFAULT_THEME = Theme.CLASSICAL


class AppStatus(str, Enum):
    IDLE = "IDLE"
    GENERATING = "GENERATING"
    PRESENTING = "PRESENTING"
    ERROR = "ERROR"


class ImageRef(BaseModel):
    mime_type: str
    data: str = Field(..., description="Base64 encoded image bytes")

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


class Slide(BaseModel):
    id: str = Field(..., min_length=1)
    title: str
    content: List[str] = Field(default_factory=list)
    layout: SlideLayout = SlideLayout.CENTERED
    image: Optional[ImageRef] = None
    category: Optional[str] = None

    @field_validator("layout", mode="before")
    @classmethod
    def tolerate_legacy_layout(cls, v):
        return SlideLayout.coerce(v)


class Presentation(BaseModel):
    id: str
    topic: str
    theme: Theme = DEFAULT_THEME
    # A tuple: the slide sequence never changes length or order once created
    slides: Tuple[Slide, ...]

    def find_slide(self, slide_id: str) -> Optional[Slide]:
        for slide in self.slides:
            if slide.id == slide_id:
                return slide
        return None


class ImageUpdate(BaseModel):
    """Back-fill result travelling from the orchestrator to the controller."""
    presentation_id: str
    slide_id: str
    image: Optional[ImageRef] = None


# =========================
# Remote response shape
# =========================
class GeneratedSlide(BaseModel):
    id: str = Field(..., min_length=1)
    title: str
    content: List[str]
    layout: str
    category: Optional[str] = None


class GeneratedDeck(BaseModel):
    topic: Optional[str] = None
    theme: Optional[str] = None
    slides: List[GeneratedSlide] = Field(..., min_length=1)

    @field_validator("slides")
    @classmethod
    def unique_ids(cls, v):
        seen = set()
        for s in v:
            if s.id in seen:
                raise ValueError(f"duplicate slide id {s.id!r}")
            seen.add(s.id)
        return v


# =========================
# View layer
# =========================
class ImageRegion(BaseModel):
    image_uri: Optional[str] = None
    placeholder: Optional[str] = None
    refreshable: bool = False


class SlideView(BaseModel):
    slide_id: str
    variant: SlideLayout
    title: str
    content: List[str]
    image_region: Optional[ImageRegion] = None


class SlideIndicator(BaseModel):
    index: int
    slide_id: str
    active: bool


class ControllerSnapshot(BaseModel):
    status: AppStatus
    topic: str = ""
    error: Optional[str] = None
    presentation: Optional[Presentation] = None
    current_index: int = 0
    is_fullscreen: bool = False


class PresentationView(BaseModel):
    status: AppStatus
    topic: str = ""
    error: Optional[str] = None
    presentation_id: Optional[str] = None
    theme: Optional[Theme] = None
    current_index: int = 0
    slide_count: int = 0
    readout: str = ""
    can_previous: bool = False
    can_next: bool = False
    is_fullscreen: bool = False
    export_available: bool = False
    indicators: List[SlideIndicator] = Field(default_factory=list)
    slide: Optional[SlideView] = None
