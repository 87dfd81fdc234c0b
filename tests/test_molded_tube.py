"""
Tests for molded tubes.

This module contains tests for:
1. Ply stacking and wall laminates along the tube
2. Section properties of the wall
3. Mass, volume, balance point and inertia integrals
"""

import math

import numpy as np
import pytest

from lpt_tube.core.errors import ProfileRangeError, ValidationError
from lpt_tube.core.layup import BraidedLayer, LayupContext, SolidLayer
from lpt_tube.core.material import IsotropicMaterial
from lpt_tube.tube.bat_calcs import calculate_barrel_compression
from lpt_tube.tube.bat_laminates import carbon_fiber, epoxy_resin, lam_4
from lpt_tube.tube.molded_tube import POSITION_EPS, MoldedTube
from lpt_tube.tube.plyspec import PlySpec
from lpt_tube.tube.profile import Profile

OD = 0.05
T_AL = 1e-3


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def aluminum_layer():
    """1 mm aluminum sheet."""
    aluminum = IsotropicMaterial(name="Aluminum", density=2700.0, E1=70e9, PR12=0.33)
    return SolidLayer(material=aluminum, thickness=T_AL, name="Al 1mm")


@pytest.fixture
def straight_tube():
    """Empty 1 m tube of constant diameter."""
    return MoldedTube(Profile((0.0, 1.0), (OD, OD)), epoxy_resin, name="Straight")


@pytest.fixture
def aluminum_tube(straight_tube, aluminum_layer):
    """Straight tube with a full length aluminum wall."""
    return straight_tube.add_layer(PlySpec(aluminum_layer, start=0.0, end=1.0))


def annulus(od, t):
    inside = od - 2.0 * t
    return math.pi / 4.0 * (od**2 - inside**2), math.pi / 64.0 * (od**4 - inside**4)


# =============================================================================
# Tests for Construction
# =============================================================================

class TestConstruction:
    """Tests for building tubes from ply specifications."""

    def test_add_layer_returns_new_tube(self, straight_tube, aluminum_layer):
        """Adding a ply leaves the original tube unchanged."""
        tube = straight_tube.add_layer(PlySpec(aluminum_layer, start=0.0, end=1.0))
        assert len(tube.ply_specs) == 1
        assert straight_tube.ply_specs == ()

    def test_add_layer_at_clamps_index(self, straight_tube, aluminum_layer):
        """Out of range indices insert at the nearest end."""
        first = PlySpec(aluminum_layer, start=0.0, end=0.5)
        second = PlySpec(aluminum_layer, start=0.5, end=1.0)
        tube = straight_tube.add_layer(first).add_layer_at(-5, second)
        assert tube.ply_specs == (second, first)
        tube = straight_tube.add_layer(first).add_layer_at(10, second)
        assert tube.ply_specs == (first, second)

    def test_missing_resin(self):
        """A resin is required."""
        with pytest.raises(ValidationError) as info:
            MoldedTube(Profile((0.0, 1.0), (OD, OD)), None)
        assert info.value.field == "resin"

    def test_bad_ply_spec(self, straight_tube):
        """Only ply specifications can be stacked."""
        with pytest.raises(ValidationError) as info:
            MoldedTube(straight_tube.profile, epoxy_resin, ply_specs=(lam_4,))
        assert info.value.field == "ply_specs"


# =============================================================================
# Tests for Positions and Laminates
# =============================================================================

class TestLaminates:
    """Tests for wall laminates along the tube."""

    def test_positions(self, straight_tube, aluminum_layer):
        """Ply ends and the points either side of them are listed."""
        tube = straight_tube.add_layer(PlySpec(aluminum_layer, start=0.2, end=0.6))
        assert tube.get_positions() == [
            0.0, 0.2 - POSITION_EPS, 0.2, 0.6, 0.6 + POSITION_EPS, 1.0,
        ]

    def test_positions_at_extent(self, aluminum_tube):
        """No points are added outside the overall extent."""
        assert aluminum_tube.get_positions() == [0.0, 1.0]

    def test_ply_active_over_half_open_range(self, aluminum_tube):
        """The wall is present from the start up to, not including, the end."""
        assert aluminum_tube.get_laminate(0.0).thickness == pytest.approx(T_AL)
        assert aluminum_tube.get_laminate(0.999).thickness == pytest.approx(T_AL)
        assert aluminum_tube.get_laminate(1.0).plies == ()

    def test_outside_profile(self, aluminum_tube):
        """Positions outside the profile raise."""
        with pytest.raises(ProfileRangeError):
            aluminum_tube.get_laminate(1.5)

    def test_inside_ply_first(self, aluminum_tube, aluminum_layer):
        """Laminates list the plies from the inside out."""
        braid = BraidedLayer(biax_fibers=(carbon_fiber,), biax_faws=(0.3,), braid_diameter=0.05)
        tube = MoldedTube(aluminum_tube.profile, epoxy_resin).add_layer(
            PlySpec(braid, start=0.0, end=1.0)
        ).add_layer(PlySpec(aluminum_layer, start=0.0, end=1.0))
        laminate = tube.get_laminate(0.5)
        assert laminate.n_plies == 2
        assert laminate.plies[1].layer.thickness == pytest.approx(T_AL)

    def test_inner_plies_see_reduced_diameter(self, aluminum_layer):
        """A braid under an aluminum sheet is resolved at the reduced diameter."""
        braid = BraidedLayer(biax_fibers=(carbon_fiber,), biax_faws=(0.3,), braid_diameter=0.05)
        tube = MoldedTube(Profile((0.0, 1.0), (OD, OD)), epoxy_resin).add_layer(
            PlySpec(braid, start=0.0, end=1.0)
        ).add_layer(PlySpec(aluminum_layer, start=0.0, end=1.0))
        inner = tube.get_laminate(0.5).plies[0].layer
        expected = braid.get_laminate(LayupContext(od=OD - 2.0 * T_AL, resin=epoxy_resin))
        unreduced = braid.get_laminate(LayupContext(od=OD, resin=epoxy_resin))
        assert np.isclose(inner.faw, expected.faw)
        assert not np.isclose(inner.faw, unreduced.faw)

    def test_ply_angle_applied(self, straight_tube):
        """The winding angle of a ply spec rotates its laminate."""
        tube = straight_tube.add_layer(PlySpec(lam_4, start=0.0, end=1.0, angle=90.0))
        ply = tube.get_laminate(0.5).plies[0]
        assert ply.angle == 90.0


# =============================================================================
# Tests for Section Properties
# =============================================================================

class TestSectionProperties:
    """Tests for wall section properties."""

    def test_aluminum_section(self, aluminum_tube):
        """A single isotropic wall gives E·I of the annulus."""
        s = aluminum_tube.get_section_properties(0.5)
        area, inertia = annulus(OD, T_AL)
        assert np.isclose(s.OD, OD)
        assert np.isclose(s.ID, OD - 2.0 * T_AL)
        assert np.isclose(s.area, area, rtol=1e-12)
        assert np.isclose(s.I, inertia, rtol=1e-12)
        assert np.isclose(s.ExI, 70e9 * inertia, rtol=1e-9)
        assert np.isclose(s.wt_per_len, 2700.0 * area, rtol=1e-12)

    def test_empty_section(self, aluminum_tube):
        """Where no ply is active the wall has no stiffness or mass."""
        s = aluminum_tube.get_section_properties(1.0)
        assert s.thickness == 0.0
        assert s.ID == s.OD
        assert s.ExI == 0.0
        assert s.wt_per_len == 0.0
        assert s.laminate_properties is None

    def test_barrel_compression_matches_wall(self):
        """A single wall tube reports the single wall barrel compression."""
        od = 0.056642
        tube = MoldedTube(Profile((0.0, 1.0), (od, od)), epoxy_resin).add_layer(
            PlySpec(lam_4, start=0.0, end=1.0)
        )
        wall = lam_4.get_laminate(LayupContext(od=od, resin=epoxy_resin))
        expected = calculate_barrel_compression(od, [wall])
        s = tube.get_section_properties(0.5)
        assert s.barrel_compression > 0.0
        assert np.isclose(s.barrel_compression, expected, rtol=1e-9)

    def test_to_dict(self, aluminum_tube):
        """The section record includes the ply count."""
        record = aluminum_tube.get_section_properties(0.5).to_dict()
        assert record["ply_count"] == 1
        assert record["x"] == 0.5

    def test_section_table(self, straight_tube, aluminum_layer):
        """One row of six columns per position inside the profile."""
        tube = straight_tube.add_layer(PlySpec(aluminum_layer, start=0.2, end=0.6))
        table = tube.get_section_table()
        assert table.shape == (6, 6)
        assert table[0, 2] == 0.0
        assert np.isclose(table[2, 2], T_AL)

    def test_section_table_positions(self, aluminum_tube):
        """Explicit positions are used as given."""
        table = aluminum_tube.get_section_table([0.1, 0.2])
        assert table.shape == (2, 6)
        np.testing.assert_allclose(table[:, 0], [0.1, 0.2])


# =============================================================================
# Tests for Integrals
# =============================================================================

class TestIntegrals:
    """Tests for mass properties of a tube."""

    def test_volume_and_weight(self, aluminum_tube):
        """A constant wall integrates to area times length."""
        area, _ = annulus(OD, T_AL)
        assert np.isclose(aluminum_tube.get_volume(0.0, 0.9), area * 0.9, rtol=1e-10)
        assert np.isclose(aluminum_tube.get_weight(0.0, 0.9), 2700.0 * area * 0.9, rtol=1e-10)

    def test_balance_point(self, aluminum_tube):
        """A uniform tube balances at its middle."""
        assert np.isclose(aluminum_tube.get_cog(0.0, 0.9), 0.45, rtol=1e-10)

    def test_moment_of_inertia(self, aluminum_tube):
        """A uniform tube has m·L²/12 about its balance point."""
        mass = aluminum_tube.get_weight(0.0, 0.9)
        assert np.isclose(aluminum_tube.get_moi(0.0, 0.9), mass * 0.9**2 / 12.0, rtol=1e-8)

    def test_whole_tube_defaults(self, aluminum_tube):
        """Default limits span the profile, including plies ending at its end."""
        area, _ = annulus(OD, T_AL)
        mass = 2700.0 * area * 1.0
        assert np.isclose(aluminum_tube.get_volume(), area, rtol=1e-10)
        assert np.isclose(aluminum_tube.get_weight(), mass, rtol=1e-10)
        assert np.isclose(aluminum_tube.get_cog(), 0.5, rtol=1e-10)
        assert np.isclose(aluminum_tube.get_moi(), mass / 12.0, rtol=1e-8)

    def test_upper_limit_at_ply_end(self, straight_tube, aluminum_layer):
        """A ply ending at the upper limit still counts at that limit."""
        tube = straight_tube.add_layer(PlySpec(aluminum_layer, start=0.0, end=0.5))
        area, _ = annulus(OD, T_AL)
        assert np.isclose(tube.get_weight(0.0, 0.5), 2700.0 * area * 0.5, rtol=1e-10)

    def test_partial_ply_weight(self, straight_tube, aluminum_layer):
        """The weight of a short ply is its area times its length."""
        tube = straight_tube.add_layer(PlySpec(aluminum_layer, start=0.0, end=0.5))
        area, _ = annulus(OD, T_AL)
        assert np.isclose(tube.get_weight(0.0, 0.4), 2700.0 * area * 0.4, rtol=1e-10)
