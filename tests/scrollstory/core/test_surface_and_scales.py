import pytest

from scrollstory.core.dataset import DerivedSeries
from scrollstory.core.easing import EASINGS, get_easing
from scrollstory.core.scales import BandScale, BarLayout, LinearScale
from scrollstory.core.surface import ChartSurface, interpolate


def _make_surface():
    now = {"ms": 0.0}
    surface = ChartSurface(clock=lambda: now["ms"])
    return surface, now


# -----------------------------------------------------------------------------
# Easing
# -----------------------------------------------------------------------------
@pytest.mark.parametrize("name", sorted(EASINGS))
def test_easings_hit_both_ends(name):
    ease = get_easing(name)
    assert ease(0.0) == pytest.approx(0.0)
    assert ease(1.0) == pytest.approx(1.0)


def test_cubic_in_out_is_symmetric():
    ease = get_easing("cubic-in-out")
    assert ease(0.5) == pytest.approx(0.5)
    assert ease(0.25) == pytest.approx(1 - ease(0.75))


def test_get_easing_passes_callables_and_rejects_unknown():
    fn = lambda t: t ** 2  # noqa: E731
    assert get_easing(fn) is fn
    with pytest.raises(ValueError):
        get_easing("bounce")


# -----------------------------------------------------------------------------
# Surface
# -----------------------------------------------------------------------------
def test_interpolate_numbers_colors_and_snapping():
    assert interpolate(0, 10, 0.5) == 5
    assert interpolate("#000000", "#ff0000", 1.0) == "#ff0000"
    assert interpolate("old", "new", 0.5) == "old"
    assert interpolate("old", "new", 1.0, done=True) == "new"
    assert interpolate(None, 3, 0.2) == 3


def test_add_rejects_duplicate_key():
    surface, _ = _make_surface()
    surface.add("a", "bars", {"x": 0})
    with pytest.raises(KeyError):
        surface.add("a", "bars", {"x": 1})


def test_transition_on_missing_element_raises():
    surface, _ = _make_surface()
    with pytest.raises(KeyError):
        surface.transition("missing", {"x": 1}, 100)


def test_channels_run_independently():
    surface, now = _make_surface()
    surface.add("a", "bars", {"x": 0.0, "opacity": 0.0})

    surface.transition("a", {"x": 100.0}, 1000)
    surface.transition("a", {"opacity": 1.0}, 500, channel="opacity")

    now["ms"] = 500
    surface.tick()
    assert surface.get("a").attrs == pytest.approx({"x": 50.0, "opacity": 1.0})
    assert surface.pending_ms("a") == pytest.approx(500.0)


def test_remove_drops_transitions_and_clear_empties():
    surface, _ = _make_surface()
    surface.add("a", "bars", {"x": 0.0})
    surface.add("t", "titles", {"opacity": 0.0})
    surface.transition("a", {"x": 1.0}, 100)

    surface.remove("a")
    assert not surface.is_animating
    assert surface.keys() == ["t"]

    surface.clear()
    assert surface.keys() == []


# -----------------------------------------------------------------------------
# Scales
# -----------------------------------------------------------------------------
def test_band_scale_with_padding():
    scale = BandScale(("a", "b", "c", "d"), (0.0, 100.0), padding_inner=0.2)
    assert scale.step == pytest.approx(100 / 3.8)
    assert scale.bandwidth == pytest.approx(scale.step * 0.8)
    assert scale("a") == 0.0
    assert scale("d") + scale.bandwidth == pytest.approx(100.0)


def test_linear_scale_flat_domain():
    assert LinearScale((0.0, 0.0), (50.0, 0.0))(3.0) == 50.0
    assert LinearScale((0.0, 10.0), (50.0, 0.0))(5.0) == 25.0


def test_bar_layout_shared_y_max():
    layout = BarLayout(width=100, height=50, padding=0.0)
    series = DerivedSeries.from_pairs("s", [("a", 5)])

    own = layout.mapper(series)(series.points[0], 0)
    shared = layout.mapper(series, y_max=10)(series.points[0], 0)

    assert own["height"] == pytest.approx(50.0)
    assert shared["height"] == pytest.approx(25.0)
    assert layout.baseline(shared)["height"] == 0.0
    assert layout.baseline(shared)["x"] == shared["x"]


def test_axis_thins_ticks():
    layout = BarLayout(width=360, height=50, padding=0.0)
    series = DerivedSeries.from_pairs("years", [(str(1984 + i), i) for i in range(36)])

    axis = layout.axis(series, max_ticks=12)

    assert len(axis.ticks) == 12
    assert axis.ticks[0][1] == "1984"
    assert axis.ticks[1][1] == "1987"
