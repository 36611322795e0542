"""Tests for coordinate conversion helpers."""

from __future__ import annotations

import pytest

from richmenu_studio.core.geometry import (
    Bounds,
    CanvasSize,
    DraftRect,
    Point,
    Viewport,
    clamp_position,
    fit_viewport,
    normalize_rect,
    percent_rect,
    scale_delta,
    to_logical,
)


class TestCanvasSize:
    def test_presets_match_platform_sizes(self) -> None:
        assert CanvasSize.full().to_dict() == {"width": 2500, "height": 1686}
        assert CanvasSize.compact().to_dict() == {"width": 2500, "height": 843}

    def test_from_preset_is_case_insensitive(self) -> None:
        assert CanvasSize.from_preset(" Compact ") == CanvasSize.compact()

    def test_from_preset_rejects_unknown_name(self) -> None:
        with pytest.raises(ValueError):
            CanvasSize.from_preset("huge")

    def test_preset_name_for_custom_size_is_none(self) -> None:
        assert CanvasSize.full().preset_name == "full"
        assert CanvasSize(1200, 405).preset_name is None

    def test_rejects_non_positive_dimensions(self) -> None:
        with pytest.raises(ValueError):
            CanvasSize(0, 100)

    def test_from_value_requires_both_keys(self) -> None:
        with pytest.raises(ValueError):
            CanvasSize.from_value({"width": 2500})


class TestBounds:
    def test_float_inputs_are_rounded(self) -> None:
        assert Bounds(10.4, 10.6, 99.5, 20.0) == Bounds(10, 11, 100, 20)

    def test_negative_values_rejected(self) -> None:
        with pytest.raises(ValueError):
            Bounds(-1, 0, 10, 10)

    def test_bool_values_rejected(self) -> None:
        with pytest.raises(ValueError):
            Bounds(True, 0, 10, 10)

    def test_contains_includes_edges(self) -> None:
        bounds = Bounds(100, 100, 50, 50)
        assert bounds.contains(Point(100, 150))
        assert not bounds.contains(Point(151, 120))

    def test_clamped_to_moves_then_crops(self) -> None:
        size = CanvasSize.compact()
        assert Bounds(2400, 800, 300, 200).clamped_to(size) == Bounds(2200, 643, 300, 200)
        assert Bounds(0, 0, 3000, 1000).clamped_to(size) == Bounds(0, 0, 2500, 843)

    def test_fits_in(self) -> None:
        assert Bounds(0, 0, 2500, 1686).fits_in(CanvasSize.full())
        assert not Bounds(1, 0, 2500, 1686).fits_in(CanvasSize.full())

    def test_from_value_reports_missing_keys(self) -> None:
        with pytest.raises(ValueError, match="height"):
            Bounds.from_value({"x": 0, "y": 0, "width": 1})


def test_to_logical_uses_per_axis_scale(full_viewport: Viewport) -> None:
    point = to_logical(Point(100, 50), full_viewport, CanvasSize.full())

    assert point is not None
    assert point.x == pytest.approx(500)
    assert point.y == pytest.approx(250)


def test_to_logical_accounts_for_viewport_offset() -> None:
    viewport = Viewport(20.0, 10.0, 1250.0, 843.0)

    point = to_logical(Point(645, 10), viewport, CanvasSize.full())

    assert point is not None
    assert point.x == pytest.approx(1250)
    assert point.y == pytest.approx(0)


@pytest.mark.parametrize("viewport", [None, Viewport(0, 0, 0, 0), Viewport(0, 0, 100, 0)])
def test_unmeasured_viewport_yields_none(viewport: Viewport | None) -> None:
    assert to_logical(Point(1, 1), viewport, CanvasSize.full()) is None
    assert scale_delta(1, 1, viewport, CanvasSize.full()) is None


def test_scale_delta_scales_each_axis_independently() -> None:
    viewport = Viewport(0, 0, 1000, 843)

    dx, dy = scale_delta(10, 10, viewport, CanvasSize.full())

    assert dx == pytest.approx(25)
    assert dy == pytest.approx(20)


def test_normalize_rect_handles_any_drag_direction() -> None:
    rect = normalize_rect(Point(300, 200), Point(100, 50))

    assert rect == DraftRect(100, 50, 200, 150)


def test_clamp_position_keeps_rectangle_inside() -> None:
    size = CanvasSize.full()

    assert clamp_position(-30, 1600, 400, 300, size) == (0, 1386)
    assert clamp_position(2200.6, 10.2, 200, 100, size) == (2201, 10)


def test_percent_rect_round_trips_to_pixels(full_viewport: Viewport) -> None:
    rect = percent_rect(Bounds(1250, 843, 625, 421), CanvasSize.full())

    assert rect.left == pytest.approx(50)
    assert rect.top == pytest.approx(50)
    x, y, width, height = rect.to_pixels(full_viewport)
    assert (x, y) == (pytest.approx(250), pytest.approx(168.6))
    assert width == pytest.approx(125)
    assert height == pytest.approx(84.2)


def test_fit_viewport_letterboxes_at_canvas_aspect() -> None:
    viewport = fit_viewport(1000, 1000, CanvasSize.full())

    assert viewport is not None
    assert viewport.width == pytest.approx(1000)
    assert viewport.height == pytest.approx(674.4)
    assert viewport.top == pytest.approx((1000 - 674.4) / 2)
    assert viewport.left == pytest.approx(0)


def test_fit_viewport_without_area() -> None:
    assert fit_viewport(0, 300, CanvasSize.full()) is None
