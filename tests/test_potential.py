import numpy as np
import pytest
from numpy.testing import assert_allclose

from schrodinger2d.potential import (
    Box,
    PotentialField,
    RadialWell,
    WellProfile,
    cap_border_widths,
    interior_slices,
    radial_profile,
)


def _field(Nx=32, Ny=24, **kwargs):
    n = min(Nx, Ny)
    return PotentialField(Nx=Nx, Ny=Ny, Lx=Nx / n, Ly=Ny / n, **kwargs)


def test_box_outside_domain_changes_nothing():
    pf = _field(cap_strength=0.5)
    V0 = pf.build()
    pf.boxes.append(Box(x0=2.0, y0=0.2, x1=2.0, y1=0.6, height=50.0))
    V1 = pf.build()
    assert np.array_equal(V0, V1)


def test_box_rasterization_inclusive_and_swapped():
    pf = _field(Nx=32, Ny=32, cap_strength=0.0)
    pf.boxes.append(Box(x0=0.5, y0=0.25, x1=0.25, y1=0.5, height=3.0))
    V = pf.build().reshape(32, 32)
    expected = np.zeros((32, 32))
    expected[8:17, 8:17] = 3.0
    assert_allclose(V.real, expected)
    assert np.all(V.imag == 0.0)


def test_overlapping_boxes_sum_and_clamp():
    pf = _field(Nx=16, Ny=16, cap_strength=0.0)
    pf.boxes.append(Box(x0=-0.5, y0=-0.5, x1=0.25, y1=0.25, height=1.0))
    pf.boxes.append(Box(x0=0.0, y0=0.0, x1=1.5, y1=0.0, height=2.0))
    V = pf.build().reshape(16, 16).real
    assert V[0, 0] == pytest.approx(3.0)
    assert V[0, 15] == pytest.approx(2.0)
    assert V[4, 4] == pytest.approx(1.0)
    assert V[5, 5] == 0.0


def test_build_fills_given_buffer_in_place():
    pf = _field(Nx=16, Ny=16)
    out = np.full(256, 7.0 + 7.0j)
    res = pf.build(out)
    assert res is out
    assert np.all(out.real == 0.0)

    wrong = np.zeros(10, dtype=np.complex128)
    assert pf.build(wrong) is not wrong


@pytest.mark.parametrize(
    "profile, center_value",
    [
        (WellProfile.GAUSSIAN, -5.0),
        (WellProfile.SOFT_COULOMB, -5.0 / 0.1),
        (WellProfile.INVERSE_SQUARE, -5.0 / 0.01),
        (WellProfile.HARMONIC_OSCILLATOR, -5.0),
    ],
)
def test_radial_profiles_at_center(profile, center_value):
    val = radial_profile(profile, -5.0, np.array([0.0]), 0.01)
    assert val[0] == pytest.approx(center_value)


def test_harmonic_profile_is_quadratic():
    r2 = np.array([0.0, 0.01, 0.04])
    val = radial_profile(WellProfile.HARMONIC_OSCILLATOR, -2.0, r2, 0.01)
    assert_allclose(val, [-2.0, 0.0, 6.0])


def test_profile_from_int():
    w = RadialWell(0.5, 0.5, -1.0, 0.1, 2)
    assert w.profile is WellProfile.INVERSE_SQUARE
    with pytest.raises(ValueError):
        RadialWell(0.5, 0.5, -1.0, 0.1, 9)


def test_gaussian_well_deepest_at_center():
    pf = _field(Nx=32, Ny=32, cap_strength=0.0)
    pf.wells.append(RadialWell(cx=0.5, cy=0.5, strength=-100.0, radius=0.1))
    V = pf.build().reshape(32, 32).real
    j, i = np.unravel_index(np.argmin(V), V.shape)
    assert (i, j) in {(15, 15), (15, 16), (16, 15), (16, 16)}
    assert V.max() < 0.0
    # cell centers are symmetric about the middle
    assert_allclose(V, V[::-1, ::-1], atol=1e-10)
    assert_allclose(V, V.T, atol=1e-10)


def test_radius_floor_guard():
    pf = _field(Nx=16, Ny=16, cap_strength=0.0)
    pf.wells.append(RadialWell(0.5, 0.5, -1.0, 0.0, WellProfile.INVERSE_SQUARE))
    V = pf.build()
    assert np.all(np.isfinite(V))


def test_cap_sponge_shape():
    pf = _field(Nx=40, Ny=20, cap_strength=2.0, cap_ratio=0.1)
    V = pf.build().reshape(20, 40)
    assert np.all(V.real == 0.0)
    assert np.all(V.imag <= 0.0)

    wx, wy = cap_border_widths(40, 20, 0.1)
    assert (wx, wy) == (4, 2)
    assert V.imag[0, 0] == pytest.approx(-2.0)
    assert V.imag[10, 0] == pytest.approx(-2.0)
    assert V.imag[10, 39] == pytest.approx(-2.0)
    # no absorption strictly inside the band
    assert np.all(V.imag[wy:20 - wy, wx:40 - wx] == 0.0)
    # ramp grows toward the edge
    row = -V.imag[10, :wx + 1]
    assert np.all(np.diff(row) < 0.0)


def test_cap_width_at_least_one_cell():
    assert cap_border_widths(8, 8, 0.0) == (1, 1)
    rows, cols = interior_slices(8, 8, 0.6)
    assert (rows, cols) == (slice(0, 8), slice(0, 8))


def test_cap_width_rounds_halves_up():
    assert cap_border_widths(10, 18, 0.25) == (3, 5)

    V = _field(Nx=10, Ny=10, cap_strength=1.0, cap_ratio=0.25).build().reshape(10, 10)
    # third column from the edge is still inside the sponge
    assert V.imag[5, 2] < 0.0
    assert V.imag[5, 3] == 0.0
    rows, cols = interior_slices(10, 10, 0.25)
    assert (rows, cols) == (slice(3, 7), slice(3, 7))


def test_cap_enabled():
    assert _field(cap_strength=1.0, cap_ratio=0.1).cap_enabled
    assert not _field(cap_strength=0.0, cap_ratio=0.1).cap_enabled
    assert not _field(cap_strength=1.0, cap_ratio=0.0).cap_enabled
