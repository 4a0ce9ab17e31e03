import pytest

from hltools.common import ToolError
from hltools.polylib import Side, Winding


def square():
    return Winding([(1, 1, 0), (1, -1, 0), (-1, -1, 0), (-1, 1, 0)])


def approx_vec(v):
    return pytest.approx(tuple(v), abs=1e-6)


@pytest.mark.parametrize(
    "normal,dist",
    [((0, 0, 1), 0.0), ((1, 0, 0), 16.0), ((0, -1, 0), -32.0)],
)
def test_base_for_plane_lies_on_plane(normal, dist):
    w = Winding.base_for_plane(normal, dist)
    assert len(w) == 4
    plane_normal, plane_dist = w.plane()
    assert plane_normal == approx_vec(normal)
    assert plane_dist == pytest.approx(dist, abs=1e-3)
    assert w.on_plane_side(normal, dist) == Side.ON


def test_base_for_plane_is_too_big_to_check():
    with pytest.raises(ToolError):
        Winding.base_for_plane((0, 0, 1), 0).check()


def test_center_and_bounds():
    w = square()
    assert w.center() == approx_vec((0, 0, 0))
    mins, maxs = w.bounds()
    assert mins == approx_vec((-1, -1, 0))
    assert maxs == approx_vec((1, 1, 0))


def test_clip_splits_area():
    w = square()
    front, back = w.clip((1, 0, 0), 0.0)
    assert front is not None and back is not None
    assert front.area() + back.area() == pytest.approx(w.area())
    assert all(p[0] >= -0.01 for p in front)
    assert all(p[0] <= 0.01 for p in back)


def test_clip_axial_plane_uses_exact_distance():
    front, back = square().clip((1, 0, 0), 0.5)
    xs = sorted({p[0] for p in front})
    assert 0.5 in xs
    assert max(xs) == 1.0


def test_clip_all_front_and_all_back():
    w = square()
    front, back = w.clip((1, 0, 0), -5.0)
    assert back is None
    assert front.points == w.points
    front, back = w.clip((1, 0, 0), 5.0)
    assert front is None
    assert back.points == w.points


def test_clip_on_plane_goes_to_back():
    w = square()
    front, back = w.clip((0, 0, 1), 0.0)
    assert front is None
    assert back.points == w.points


def test_chop_keeps_front():
    w = square()
    chopped = w.chop((0, 1, 0), 0.0)
    assert chopped.area() == pytest.approx(w.area() / 2)
    assert all(p[1] >= -0.01 for p in chopped)
    assert w.chop((0, 1, 0), 10.0) is None


def test_on_plane_side():
    w = square()
    assert w.on_plane_side((1, 0, 0), 0.0) == Side.CROSS
    assert w.on_plane_side((1, 0, 0), -5.0) == Side.FRONT
    assert w.on_plane_side((1, 0, 0), 5.0) == Side.BACK
    assert w.on_plane_side((0, 0, 1), 0.0) == Side.ON


def test_remove_colinear_points():
    w = Winding(
        [(1, 1, 0), (1, 0, 0), (1, -1, 0), (-1, -1, 0), (-1, 0, 0), (-1, 1, 0)]
    )
    cleaned = w.remove_colinear_points()
    assert set(cleaned.points) == set(square().points)
    assert cleaned.area() == pytest.approx(w.area())


def test_remove_colinear_points_keeps_clean_winding():
    w = square()
    assert w.remove_colinear_points().points == w.points


def test_check_accepts_convex_square():
    big = Winding([(8, 8, 0), (8, -8, 0), (-8, -8, 0), (-8, 8, 0)])
    big.check()
    assert big.area() > 1


@pytest.mark.parametrize(
    "points",
    [
        [(0, 0, 0), (4, 0, 0)],
        [(0, 0, 0), (0.5, 0, 0), (0.5, 0.5, 0)],
        [(0, 0, 0), (4, 0, 0), (4, 4, 0), (0, 4, 1)],
        [(0, 0, 0), (4, 0, 0), (4, 4, 0), (2, 1, 0), (0, 4, 0)],
        [(0, 0, 0), (9000, 0, 0), (9000, 4, 0), (0, 4, 0)],
    ],
)
def test_check_rejects_bad_windings(points):
    with pytest.raises(ToolError):
        Winding(points).check()