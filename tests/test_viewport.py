import pytest
from hypothesis import given
from hypothesis import strategies as st

from wallpaper_span_tool.models import Offset
from wallpaper_span_tool.viewport import (
    DegenerateBoundError, ViewportSession, apply_drag, apply_zoom, bounds,
    degenerate_axes, fitted_size, load_image, require_cover, resize, zoom_for_wheel,
)


def _state(image_w, image_h, container_width, aspect_ratio, path="img.png"):
    natural = fitted_size(image_w, image_h, container_width)
    return load_image(path, natural, container_width, aspect_ratio)


class FakeHandle:
    def __init__(self, name):
        self.name = name
        self.close_calls = 0

    def close(self):
        self.close_calls += 1


# =============================================================================
# Pure transitions
# =============================================================================

def test_fitted_size_keeps_aspect():
    assert fitted_size(4000, 2000, 1000) == (1000.0, 500.0)
    assert fitted_size(0, 2000, 1000) == (0.0, 0.0)


def test_load_resets_pan_and_zoom():
    state = _state(1000, 1000, 1000, 0.5)
    assert state.offset == Offset(0.0, 0.0)
    assert state.zoom == 1.0
    assert state.wheel_offset == 0.0
    assert (state.natural_width, state.natural_height) == (1000.0, 1000.0)
    assert state.has_image


def test_drag_is_clamped_per_axis():
    state = apply_zoom(_state(1000, 1000, 1000, 0.5), -750)
    assert state.zoom == pytest.approx(2.0)
    assert bounds(state) == pytest.approx((-1000.0, -1500.0))

    dragged = apply_drag(state, -5000, 40)
    assert dragged.offset == Offset(-1000.0, 0.0)
    dragged = apply_drag(dragged, 300, -200)
    assert dragged.offset == Offset(-700.0, -200.0)


def test_short_image_pins_vertical_offset_to_zero():
    # 1000x500 laid out in a 1000x640 container leaves 140 px uncovered
    state = _state(2000, 1000, 1000, 0.64)
    _, bound_y = bounds(state)
    assert bound_y > 0

    dragged = apply_drag(state, -50, -50)
    assert dragged.offset.y == 0.0
    assert dragged.offset.x == 0.0
    assert degenerate_axes(dragged) == ("y",)
    with pytest.raises(DegenerateBoundError):
        require_cover(dragged)


def test_zooming_in_resolves_degenerate_axis():
    state = apply_zoom(_state(2000, 1000, 1000, 0.64), -750)
    assert degenerate_axes(state) == ()
    require_cover(state)
    assert apply_drag(state, -50, -50).offset == Offset(-50.0, -50.0)


def test_zoom_out_reclamps_with_new_zoom():
    state = apply_zoom(_state(1000, 1000, 1000, 0.5), -750)
    state = apply_drag(state, -5000, -5000)
    assert state.offset == Offset(-1000.0, -1500.0)

    state = apply_zoom(state, 0)
    assert state.zoom == 1.0
    assert state.offset == Offset(0.0, -500.0)


def test_zoom_never_drops_below_one():
    assert zoom_for_wheel(500) == 1.0
    assert zoom_for_wheel(0) == 1.0
    assert zoom_for_wheel(-75) == pytest.approx(1.1)


def test_resize_keeps_the_same_part_of_the_image():
    state = apply_zoom(_state(1000, 1000, 1000, 0.5), -750)
    state = apply_drag(state, -200, -100)

    resized = resize(state, 500, fitted_size(1000, 1000, 500), 0.5)
    assert resized.container_width == 500.0
    assert resized.zoom == state.zoom
    assert resized.offset == Offset(-100.0, -50.0)


wheel_travel = st.floats(min_value=-5000, max_value=5000, allow_nan=False)
drag_delta = st.floats(min_value=-3000, max_value=3000, allow_nan=False)
operations = st.lists(
    st.one_of(
        st.tuples(st.just("drag"), drag_delta, drag_delta),
        st.tuples(st.just("zoom"), wheel_travel, st.just(0.0)),
    ),
    max_size=20,
)


@given(
    image_w=st.integers(min_value=50, max_value=8000),
    image_h=st.integers(min_value=50, max_value=8000),
    container_width=st.floats(min_value=100, max_value=2500),
    aspect_ratio=st.floats(min_value=0.1, max_value=2.0),
    ops=operations,
)
def test_offset_stays_within_bounds(image_w, image_h, container_width, aspect_ratio, ops):
    state = _state(image_w, image_h, container_width, aspect_ratio)
    for kind, a, b in ops:
        state = apply_drag(state, a, b) if kind == "drag" else apply_zoom(state, a)

        assert state.zoom >= 1.0
        for value, bound in zip((state.offset.x, state.offset.y), bounds(state)):
            if bound > 0:
                assert value == 0.0
            else:
                assert bound <= value <= 0.0

    assert apply_drag(state, 0, 0) is state


@given(first=wheel_travel, second=wheel_travel)
def test_more_wheel_travel_up_never_zooms_out(first, second):
    low, high = sorted((first, second))
    assert zoom_for_wheel(low) >= zoom_for_wheel(high)


# =============================================================================
# Session
# =============================================================================

def test_second_load_replaces_and_releases_first():
    released = []
    session = ViewportSession(1000, 0.5, release=lambda h: released.append((h, session.handle)))
    first, second = FakeHandle("first"), FakeHandle("second")

    session.load_image("first.png", first, (1000, 1000))
    session.drag(0, -100)
    session.load_image("second.png", second, (2000, 500))

    assert session.handle is second
    assert session.state.source_path == "second.png"
    assert (session.state.natural_width, session.state.natural_height) == (1000.0, 250.0)
    assert session.state.offset == Offset(0.0, 0.0)
    assert session.state.zoom == 1.0
    # Released once, after the second image was installed
    assert released == [(first, second)]


def test_reloading_same_handle_does_not_release_it():
    handle = FakeHandle("same")
    session = ViewportSession(1000, 0.5)
    session.load_image("a.png", handle, (1000, 1000))
    session.load_image("a.png", handle, (1000, 1000))
    assert handle.close_calls == 0


def test_close_releases_exactly_once():
    handle = FakeHandle("only")
    with ViewportSession(1000, 0.5) as session:
        session.load_image("a.png", handle, (1000, 1000))
    session.close()
    assert handle.close_calls == 1
    assert session.handle is None
    assert not session.has_image()


def test_load_after_close_is_released_and_ignored():
    session = ViewportSession(1000, 0.5)
    session.close()
    late = FakeHandle("late")
    session.load_image("late.png", late, (1000, 1000))
    assert late.close_calls == 1
    assert session.handle is None
    assert not session.state.has_image


def test_listeners_see_every_change_and_can_unsubscribe():
    session = ViewportSession(1000, 0.5)
    seen = []
    unsubscribe = session.subscribe(seen.append)

    session.load_image("a.png", FakeHandle("a"), (1000, 1000))
    session.drag(0, -100)
    session.drag(0, 0)
    assert len(seen) == 2
    assert seen[-1] is session.state

    unsubscribe()
    session.drag(0, -10)
    assert len(seen) == 2


def test_scroll_accumulates_and_does_not_bank_travel_past_zoom_one():
    session = ViewportSession(1000, 0.5)
    session.load_image("a.png", FakeHandle("a"), (1000, 1000))

    session.scroll(-375)
    session.scroll(-375)
    assert session.state.zoom == pytest.approx(2.0)

    session.scroll(5000)
    assert session.state.zoom == 1.0
    assert session.state.wheel_offset == 0.0

    session.scroll(-75)
    assert session.state.zoom == pytest.approx(1.1)


def test_resize_follows_container():
    session = ViewportSession(1000, 0.5)
    session.load_image("a.png", FakeHandle("a"), (2000, 2000))
    session.scroll(-750)
    session.drag(-400, -400)

    session.resize(500)
    assert session.state.container_width == 500.0
    assert (session.state.natural_width, session.state.natural_height) == (500.0, 500.0)
    assert session.state.offset == Offset(-200.0, -200.0)


def test_failing_listener_still_releases_previous_image():
    session = ViewportSession(1000, 0.5)
    first, second = FakeHandle("first"), FakeHandle("second")
    session.load_image("first.png", first, (1000, 1000))

    def broken_listener(state):
        raise RuntimeError("listener failed")

    session.subscribe(broken_listener)
    with pytest.raises(RuntimeError, match="listener failed"):
        session.load_image("second.png", second, (1000, 1000))

    assert session.handle is second
    assert first.close_calls == 1
    session.close()
    assert first.close_calls == 1
    assert second.close_calls == 1


def test_closed_flag_tracks_session_lifetime():
    session = ViewportSession(1000, 0.5)
    assert not session.closed
    session.close()
    assert session.closed
