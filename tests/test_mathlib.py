import math

import pytest

from hltools import mathlib as m


def approx_vec(values, tol=1e-6):
    return pytest.approx(tuple(values), abs=tol)


def test_vector_length_pythagorean():
    assert m.vector_length((3, 4, 0)) == pytest.approx(5.0)


def test_vector_compare_uses_epsilon():
    assert m.vector_compare((1, 2, 3), (1 + m.EQUAL_EPSILON / 2, 2, 3))
    assert not m.vector_compare((1, 2, 3), (1 + m.EQUAL_EPSILON * 2, 2, 3))


def test_q_rint_rounds_halves_up():
    assert m.q_rint(2.5) == math.floor(3.0)
    assert m.q_rint(-2.5) == -2.0
    assert m.q_rint(1.2) == 1.0


def test_add_subtract_round_trip():
    a, b = (1.5, -2.0, 7.25), (0.5, 3.0, -1.0)
    assert m.vector_subtract(m.vector_add(a, b), b) == approx_vec(a)


def test_vector_ma_matches_add_and_scale():
    a, b = (1.0, 2.0, 3.0), (-4.0, 5.0, 0.5)
    assert m.vector_ma(a, 2.5, b) == approx_vec(m.vector_add(a, m.vector_scale(b, 2.5)))


def test_cross_product_is_orthogonal():
    a, b = (1.0, 2.0, 3.0), (-2.0, 0.5, 4.0)
    c = m.cross_product(a, b)
    assert m.dot_product(c, a) == pytest.approx(0.0)
    assert m.dot_product(c, b) == pytest.approx(0.0)


def test_normalize_returns_unit_and_length():
    v = (2.0, -3.0, 6.0)
    unit, length = m.vector_normalize(v)
    assert m.vector_length(unit) == pytest.approx(1.0)
    assert length == pytest.approx(m.vector_length(v))


def test_normalize_zero_vector():
    unit, length = m.vector_normalize(m.VEC3_ORIGIN)
    assert length == 0
    assert unit == m.VEC3_ORIGIN


def test_inverse_sums_to_zero():
    v = (1.0, -5.0, 2.0)
    assert m.vector_add(v, m.vector_inverse(v)) == approx_vec(m.VEC3_ORIGIN)


def test_bounds():
    mins, maxs = m.clear_bounds()
    assert mins == (99999.0,) * 3
    assert maxs == (-99999.0,) * 3
    for point in [(1, 5, -2), (-3, 0, 4), (2, 2, 2)]:
        mins, maxs = m.add_point_to_bounds(point, mins, maxs)
    assert mins == (-3, 0, -2)
    assert maxs == (2, 5, 4)


def test_angle_imatrix_is_transpose():
    angles = (10.0, 35.0, -70.0)
    mat = m.angle_matrix(angles)
    inv = m.angle_imatrix(angles)
    for r in range(3):
        for c in range(3):
            assert inv[r][c] == pytest.approx(mat[c][r])


def test_rotate_irotate_round_trip():
    mat = m.angle_matrix((20.0, -45.0, 120.0))
    v = (3.0, -1.0, 2.0)
    assert m.vector_irotate(m.vector_rotate(v, mat), mat) == approx_vec(v)
    assert m.vector_length(m.vector_rotate(v, mat)) == pytest.approx(m.vector_length(v))


def test_zero_angles_give_identity():
    mat = m.angle_matrix((0, 0, 0))
    v = (1.0, 2.0, 3.0)
    assert m.vector_rotate(v, mat) == approx_vec(v)


def test_transform_adds_translation():
    mat = [list(row) for row in m.angle_matrix((0, 30, 60))]
    for row, offset in zip(mat, (1.0, 2.0, 3.0)):
        row[3] = offset
    v = (4.0, 5.0, 6.0)
    assert m.vector_transform(v, mat) == approx_vec(
        m.vector_add(m.vector_rotate(v, mat), (1.0, 2.0, 3.0))
    )


def test_concat_transforms_composes():
    a = m.angle_matrix((15.0, 25.0, 35.0))
    b = m.angle_matrix((-40.0, 10.0, 90.0))
    v = (1.0, -2.0, 0.5)
    combined = m.concat_transforms(a, b)
    assert m.vector_transform(v, combined) == approx_vec(
        m.vector_transform(m.vector_transform(v, b), a)
    )


def test_quaternion_matches_angle_matrix():
    degrees = (30.0, -20.0, 75.0)
    radians = tuple(math.radians(d) for d in degrees)
    qmat = m.quaternion_matrix(m.angle_quaternion(radians))
    amat = m.angle_matrix(degrees)
    for r in range(3):
        assert qmat[r] == approx_vec(amat[r])


def test_slerp_endpoints():
    p = m.angle_quaternion((0.1, 0.2, 0.3))
    q = m.angle_quaternion((-0.5, 1.0, 0.7))
    assert m.quaternion_slerp(p, q, 0.0) == approx_vec(p)
    assert m.quaternion_slerp(p, q, 1.0) == approx_vec(q)
    mid = m.quaternion_slerp(p, q, 0.5)
    assert math.sqrt(sum(c * c for c in mid)) == pytest.approx(1.0)


def test_slerp_flips_opposite_quaternion():
    p = m.angle_quaternion((0.3, 0.4, 0.5))
    q = tuple(-c for c in p)
    assert m.quaternion_slerp(p, q, 0.5) == approx_vec(p)