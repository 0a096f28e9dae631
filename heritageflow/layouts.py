from typing import Callable, Dict

from .models import (
    AppStatus,
    ControllerSnapshot,
    ImageRegion,
    PresentationView,
    Slide,
    SlideIndicator,
    SlideLayout,
    SlideView,
)

IMAGE_PLACEHOLDER = "Generating Visual Heritage..."


def _image_region(slide: Slide, refreshable: bool) -> ImageRegion:
    if slide.image is not None:
        return ImageRegion(image_uri=slide.image.data_uri, refreshable=refreshable)
    return ImageRegion(placeholder=IMAGE_PLACEHOLDER, refreshable=refreshable)


def _render_split(slide: Slide) -> SlideView:
    # Text block beside an image that can be regenerated by hand
    return SlideView(
        slide_id=slide.id,
        variant=SlideLayout.SPLIT,
        title=slide.title,
        content=list(slide.content),
        image_region=_image_region(slide, refreshable=True),
    )


def _render_full_image(slide: Slide) -> SlideView:
    return SlideView(
        slide_id=slide.id,
        variant=SlideLayout.FULL_IMAGE,
        title=slide.title,
        content=list(slide.content),
        image_region=_image_region(slide, refreshable=False),
    )


def _render_centered(slide: Slide) -> SlideView:
    return SlideView(
        slide_id=slide.id,
        variant=SlideLayout.CENTERED,
        title=slide.title,
        content=list(slide.content),
    )


_RENDERERS: Dict[SlideLayout, Callable[[Slide], SlideView]] = {
    SlideLayout.SPLIT: _render_split,
    SlideLayout.FULL_IMAGE: _render_full_image,
    SlideLayout.CENTERED: _render_centered,
}


def render_slide(slide: Slide) -> SlideView:
    return _RENDERERS[SlideLayout.coerce(slide.layout)](slide)


def build_view(snapshot: ControllerSnapshot) -> PresentationView:
    """Everything the presenting surface shows, derived from controller state."""
    view = PresentationView(
        status=snapshot.status,
        topic=snapshot.topic,
        error=snapshot.error,
    )
    presentation = snapshot.presentation
    # The presenting surface only exists while presenting; other states show the topic input
    if presentation is None or snapshot.status != AppStatus.PRESENTING:
        return view

    count = len(presentation.slides)
    index = min(max(snapshot.current_index, 0), count - 1)
    view.presentation_id = presentation.id
    view.theme = presentation.theme
    view.current_index = index
    view.slide_count = count
    view.readout = f"{index + 1} / {count}"
    view.can_previous = index > 0
    view.can_next = index < count - 1
    view.is_fullscreen = snapshot.is_fullscreen
    view.indicators = [
        SlideIndicator(index=i, slide_id=s.id, active=i == index)
        for i, s in enumerate(presentation.slides)
    ]
    view.slide = render_slide(presentation.slides[index])
    return view
