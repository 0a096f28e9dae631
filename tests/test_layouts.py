"""
Tests for layout dispatch and the presenting view
"""

from heritageflow.layouts import IMAGE_PLACEHOLDER, build_view, render_slide
from heritageflow.models import AppStatus, ControllerSnapshot, ImageRef, Presentation, Slide, SlideLayout


def _slide(layout, image=None, **kwargs):
    return Slide(id="s1", title="窗花", content=["一", "二"], layout=layout, image=image, **kwargs)


IMAGE = ImageRef(mime_type="image/png", data="aGk=")


class TestRenderSlide:
    def test_split_has_refreshable_image_region(self):
        view = render_slide(_slide("split", IMAGE))
        assert view.variant is SlideLayout.SPLIT
        assert view.image_region.image_uri == "data:image/png;base64,aGk="
        assert view.image_region.refreshable
        assert view.content == ["一", "二"]

    def test_split_without_image_shows_placeholder(self):
        region = render_slide(_slide("split")).image_region
        assert region.image_uri is None
        assert region.placeholder == IMAGE_PLACEHOLDER

    def test_full_image(self):
        view = render_slide(_slide("full-image", IMAGE))
        assert view.variant is SlideLayout.FULL_IMAGE
        assert view.image_region.image_uri.startswith("data:image/png")
        assert not view.image_region.refreshable

    def test_full_image_without_image_shows_placeholder(self):
        assert render_slide(_slide("full-image")).image_region.placeholder == IMAGE_PLACEHOLDER

    def test_centered_has_no_image_region(self):
        view = render_slide(_slide("centered", IMAGE))
        assert view.variant is SlideLayout.CENTERED
        assert view.image_region is None

    def test_unrecognized_layout_renders_centered(self):
        assert render_slide(_slide("mosaic")).variant is SlideLayout.CENTERED


def _snapshot(**kwargs):
    presentation = Presentation(
        id="p1",
        topic="剪纸",
        slides=tuple(Slide(id=f"s{i}", title=f"t{i}", layout="split") for i in range(1, 4)),
    )
    values = dict(status=AppStatus.PRESENTING, topic="剪纸", presentation=presentation)
    values.update(kwargs)
    return ControllerSnapshot(**values)


class TestBuildView:
    def test_idle_view_is_empty(self):
        view = build_view(ControllerSnapshot(status=AppStatus.IDLE))
        assert view.slide is None
        assert view.slide_count == 0
        assert view.indicators == []

    def test_presenting_view(self):
        view = build_view(_snapshot(current_index=1, is_fullscreen=True))
        assert view.presentation_id == "p1"
        assert view.readout == "2 / 3"
        assert view.can_previous and view.can_next
        assert view.is_fullscreen
        assert [i.active for i in view.indicators] == [False, True, False]
        assert view.slide.slide_id == "s2"
        assert not view.export_available

    def test_boundaries(self):
        assert not build_view(_snapshot(current_index=0)).can_previous
        assert not build_view(_snapshot(current_index=2)).can_next

    def test_error_view_carries_message_without_deck(self):
        view = build_view(_snapshot(status=AppStatus.ERROR, error="Failed"))
        assert view.error == "Failed"
        assert view.presentation_id is None
        assert view.slide is None
        assert view.slide_count == 0
        assert view.indicators == []

    def test_generating_view_hides_previous_deck(self):
        view = build_view(_snapshot(status=AppStatus.GENERATING, current_index=1))
        assert view.status == AppStatus.GENERATING
        assert view.slide is None
        assert view.readout == ""
