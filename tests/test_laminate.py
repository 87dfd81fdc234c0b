"""
Tests for the Classical Laminate Theory implementation.

This module contains tests for:
1. Reduced stiffness Q (aligned and random mats)
2. ABD block operations (rotation, flip, shift, smear)
3. Laminae (solid and composite)
4. Laminate aggregation and nested laminates
5. Layup helper functions

The tests validate:
- CLT formulation correctness
- Symmetric/balanced laminate properties
- Rotation of nested laminates
- Properties of empty laminates
"""

import numpy as np
import pytest

from lpt_tube.core.errors import EmptyLaminateError, ValidationError
from lpt_tube.core.laminate import (
    CompositeLamina,
    Laminate,
    Orientation,
    Ply,
    SolidLamina,
    compute_Q,
    create_laminate_from_angles,
    flip_ABD,
    lamina_ABD,
    make_plus_minus_90,
    rotate_ABD,
    shift_ABD,
)
from lpt_tube.core.material import IsotropicMaterial, OrthotropicMaterial, PlanarIso23Material


# =============================================================================
# Fixtures - Common test materials and configurations
# =============================================================================

@pytest.fixture
def carbon_epoxy_material():
    """Standard Carbon/Epoxy T300/5208 material."""
    return OrthotropicMaterial(
        name="Carbon/Epoxy T300/5208",
        density=1600.0,
        E1=181e9,
        E2=10.3e9,
        E3=10.3e9,
        G12=7.17e9,
        G13=7.17e9,
        G23=3.78e9,
        PR12=0.28,
        PR13=0.28,
        PR23=0.28,
    )


@pytest.fixture
def aluminum():
    """Isotropic aluminum."""
    return IsotropicMaterial(name="Aluminum", density=2700.0, E1=70e9, PR12=0.33)


@pytest.fixture
def epoxy():
    """Generic epoxy resin."""
    return IsotropicMaterial(name="Epoxy", density=1170.0, E1=3.1e9, PR12=0.3)


@pytest.fixture
def carbon_fiber():
    """Standard modulus carbon fiber."""
    return PlanarIso23Material(name="Carbon Fiber", density=1800.0, E1=207.5e9,
                               E2=18.7e9, G12=8e9, PR12=0.25, PR23=0.2)


@pytest.fixture
def ply_thickness():
    """Standard ply thickness."""
    return 0.125e-3  # 0.125 mm


@pytest.fixture
def carbon_ply(carbon_epoxy_material, ply_thickness):
    """Unidirectional carbon/epoxy ply."""
    return SolidLamina(carbon_epoxy_material, ply_thickness)


@pytest.fixture
def cu(carbon_fiber, epoxy):
    """150 gsm carbon at vf = 0.59."""
    return CompositeLamina(carbon_fiber, epoxy, vf=0.59, faw=0.15)


# =============================================================================
# Tests for Reduced Stiffness Matrix Q
# =============================================================================

class TestReducedStiffnessQ:
    """Tests for the reduced stiffness matrix computation."""

    def test_Q_symmetric(self, carbon_epoxy_material):
        """Q matrix should be symmetric."""
        Q = compute_Q(carbon_epoxy_material)
        assert np.allclose(Q, Q.T), "Q matrix should be symmetric"

    def test_Q_components(self, carbon_epoxy_material):
        """Every Q term shares the denominator 1 - PR12², not 1 - PR12·PR21."""
        mat = carbon_epoxy_material
        # an isotropic ply then gives Ex = E1 exactly
        denom = 1 - mat.PR12**2

        Q = compute_Q(mat)

        assert np.isclose(Q[0, 0], mat.E1 / denom, rtol=1e-10)
        assert np.isclose(Q[1, 1], mat.E2 / denom, rtol=1e-10)
        assert np.isclose(Q[0, 1], mat.PR12 * mat.E2 / denom, rtol=1e-10)
        assert np.isclose(Q[2, 2], mat.G12, rtol=1e-10)
        assert Q[0, 2] == 0.0 and Q[1, 2] == 0.0

    def test_Q_differs_from_reciprocal_form(self, carbon_epoxy_material):
        """For an orthotropic ply Q11 is below E1 / (1 - PR12·PR21)."""
        mat = carbon_epoxy_material
        pr21 = mat.PR12 * mat.E2 / mat.E1
        Q = compute_Q(mat)
        assert Q[0, 0] > mat.E1 / (1 - mat.PR12 * pr21)

    def test_Q_positive_definite(self, carbon_epoxy_material):
        """Q matrix should be positive definite."""
        Q = compute_Q(carbon_epoxy_material)
        eigenvalues = np.linalg.eigvalsh(Q)
        assert np.all(eigenvalues > 0), "Q should be positive definite"

    def test_random_mat_is_planar_isotropic(self, carbon_epoxy_material):
        """A random mat has Q11 = Q22 and Q66 = (Q11 - Q12)/2."""
        Q = compute_Q(carbon_epoxy_material, is_random=True)
        assert np.isclose(Q[0, 0], Q[1, 1], rtol=1e-12)
        assert np.isclose(Q[2, 2], (Q[0, 0] - Q[0, 1]) / 2.0, rtol=1e-12)

    def test_random_mat_rotation_invariant(self, carbon_epoxy_material):
        """Rotating a random mat ply does not change its stiffness."""
        ABD = lamina_ABD(compute_Q(carbon_epoxy_material, is_random=True), 1e-3)
        for angle in (15, 30, 45, 90):
            assert np.allclose(rotate_ABD(ABD, angle), ABD, rtol=1e-10,
                               atol=1e-10 * np.max(np.abs(ABD)))


# =============================================================================
# Tests for ABD Block Operations
# =============================================================================

class TestABDOperations:
    """Tests for the rotate, flip and shift operations."""

    def test_rotate_zero_angle(self, carbon_epoxy_material):
        """At θ=0°, rotation is the identity."""
        ABD = lamina_ABD(compute_Q(carbon_epoxy_material), 1e-3)
        assert np.allclose(rotate_ABD(ABD, 0.0), ABD, rtol=1e-12)

    def test_rotate_90_degrees(self, carbon_epoxy_material):
        """At θ=90°, A11 and A22 swap."""
        ABD = lamina_ABD(compute_Q(carbon_epoxy_material), 1e-3)
        rotated = rotate_ABD(ABD, 90.0)
        assert np.isclose(rotated[0, 0], ABD[1, 1], rtol=1e-10), "A11 -> A22"
        assert np.isclose(rotated[1, 1], ABD[0, 0], rtol=1e-10), "A22 -> A11"
        assert np.isclose(rotated[0, 1], ABD[0, 1], rtol=1e-10), "A12 unchanged"

    def test_rotate_keeps_symmetry(self, carbon_epoxy_material):
        """Rotated ABD matrices stay symmetric."""
        ABD = lamina_ABD(compute_Q(carbon_epoxy_material), 1e-3)
        for angle in [0, 30, 45, 60, 90, -45]:
            rotated = rotate_ABD(ABD, angle)
            assert np.allclose(rotated, rotated.T, rtol=1e-10), f"not symmetric at {angle}°"

    def test_rotate_angle_sign(self, carbon_epoxy_material):
        """A16 and A26 change sign between +θ and -θ."""
        ABD = lamina_ABD(compute_Q(carbon_epoxy_material), 1e-3)
        pos = rotate_ABD(ABD, 45.0)
        neg = rotate_ABD(ABD, -45.0)
        assert not np.isclose(pos[0, 2], 0.0), "A16 should be non-zero at 45°"
        assert np.isclose(pos[0, 2], -neg[0, 2], rtol=1e-10)
        assert np.isclose(pos[1, 2], -neg[1, 2], rtol=1e-10)
        assert np.isclose(pos[0, 0], neg[0, 0], rtol=1e-10)

    def test_rotations_compose(self, carbon_epoxy_material):
        """Rotating by a then b equals rotating by a + b."""
        ABD = lamina_ABD(compute_Q(carbon_epoxy_material), 1e-3)
        twice = rotate_ABD(rotate_ABD(ABD, 20.0), 25.0)
        once = rotate_ABD(ABD, 45.0)
        assert np.allclose(twice, once, rtol=1e-10, atol=1e-10 * np.max(np.abs(ABD)))

    def test_shift(self, carbon_epoxy_material):
        """Shifting builds B = zA and D = D + z²A for a lamina."""
        t, z = 1e-3, 2e-3
        ABD = lamina_ABD(compute_Q(carbon_epoxy_material), t)
        shifted = shift_ABD(ABD, z)
        A = ABD[:3, :3]
        assert np.allclose(shifted[:3, :3], A)
        assert np.allclose(shifted[:3, 3:], z * A)
        assert np.allclose(shifted[3:, 3:], ABD[3:, 3:] + z * z * A)

    def test_flip_lamina_at_zero(self, carbon_epoxy_material):
        """Flipping an unrotated lamina changes nothing."""
        ABD = lamina_ABD(compute_Q(carbon_epoxy_material), 1e-3)
        assert np.allclose(flip_ABD(ABD), ABD)


# =============================================================================
# Tests for Laminae
# =============================================================================

class TestLaminae:
    """Tests for single-ply laminae."""

    def test_isotropic_properties(self, aluminum):
        """A single isotropic ply has Ex = E1 and Exf = Ex."""
        props = SolidLamina(aluminum, 2e-3).properties
        assert np.isclose(props.Ex, aluminum.E1, rtol=1e-9)
        assert np.isclose(props.Ey, aluminum.E1, rtol=1e-9)
        assert np.isclose(props.Exf, props.Ex, rtol=1e-9)
        assert np.isclose(props.Gxy, aluminum.G12, rtol=1e-9)
        assert np.isclose(props.PRxy, aluminum.PR12, rtol=1e-9)
        assert props.NAx == 0.0 and props.NAy == 0.0
        assert props.ply_count == 1

    def test_solid_areal_weights(self, aluminum):
        """Solid laminae carry only solid areal weight."""
        lamina = SolidLamina(aluminum, 2e-3)
        assert np.isclose(lamina.saw, 5.4)
        assert lamina.faw == 0.0 and lamina.raw == 0.0
        assert np.isclose(lamina.taw, 5.4)

    def test_composite_lamina(self, cu):
        """Thickness, density and resin areal weight of a composite ply."""
        assert np.isclose(cu.thickness, 1.4124293785310735e-4, rtol=1e-12)
        assert np.isclose(cu.density, 1541.7, rtol=1e-12)
        assert np.isclose(cu.raw, 0.0677542372881356, rtol=1e-10)
        assert np.isclose(cu.taw, 0.15 + 0.0677542372881356, rtol=1e-10)
        assert cu.saw == 0.0

    def test_composite_lamina_invalid_vf(self, carbon_fiber, epoxy):
        """vf must be in (0, 1]."""
        with pytest.raises(ValidationError) as info:
            CompositeLamina(carbon_fiber, epoxy, vf=0.0, faw=0.15)
        assert info.value.field == "vf"

    def test_properties_matrices_read_only(self, cu):
        """The snapshot matrices cannot be modified."""
        props = cu.properties
        with pytest.raises(ValueError):
            props.stiffness_matrix[0, 0] = 0.0


# =============================================================================
# Tests for Ply Class
# =============================================================================

class TestPly:
    """Tests for Ply dataclass."""

    def test_ply_creation(self, carbon_ply):
        """Test basic ply creation."""
        ply = Ply(carbon_ply, 45.0)
        assert ply.layer is carbon_ply
        assert ply.angle == 45.0
        assert ply.orientation is Orientation.UPRIGHT

    @pytest.mark.parametrize("angle,expected", [
        (135.0, -45.0),
        (270.0, 90.0),
        (-90.0, -90.0),
        (-120.0, 60.0),
        (540.0, 0.0),
    ])
    def test_angle_normalized(self, carbon_ply, angle, expected):
        """Angles are stored in [-90, 90]."""
        assert Ply(carbon_ply, angle).angle == expected
        assert make_plus_minus_90(angle) == expected

    def test_orientation_from_string(self, carbon_ply):
        """Orientation accepts its string value."""
        assert Ply(carbon_ply, 0.0, "Flipped").orientation is Orientation.FLIPPED

    def test_invalid_orientation(self, carbon_ply):
        """Unknown orientations are rejected."""
        with pytest.raises(ValidationError) as info:
            Ply(carbon_ply, 0.0, "Sideways")
        assert info.value.field == "orientation"

    def test_invalid_layer(self, carbon_epoxy_material):
        """A ply must hold a lamina or laminate."""
        with pytest.raises(ValidationError):
            Ply(carbon_epoxy_material, 0.0)


# =============================================================================
# Tests for Laminate Class
# =============================================================================

class TestLaminate:
    """Tests for Laminate class and ABD matrix computation."""

    def test_laminate_creation(self, carbon_ply, ply_thickness):
        """Test basic laminate creation."""
        laminate = Laminate().add_ply(carbon_ply, 0).add_ply(carbon_ply, 90)

        assert laminate.n_plies == 2
        assert laminate.ply_count == 2
        assert np.isclose(laminate.thickness, 2 * ply_thickness)

    def test_immutable_construction(self, carbon_ply):
        """add_ply returns a new laminate and leaves the original unchanged."""
        base = Laminate(name="base")
        grown = base.add_ply(carbon_ply)
        assert base.n_plies == 0
        assert grown.n_plies == 1
        assert grown.name == "base"

    def test_add_ply_at_clamps_index(self, carbon_ply):
        """Out of range insertion indices are clamped."""
        laminate = Laminate().add_ply(carbon_ply, 0)
        laminate = laminate.add_ply_at(10, carbon_ply, 45).add_ply_at(-5, carbon_ply, 90)
        assert [p.angle for p in laminate.plies] == [90.0, 0.0, 45.0]

    def test_remove_ply_at(self, carbon_ply):
        """Removing a ply drops it; bad indices raise IndexError."""
        laminate = create_laminate_from_angles(carbon_ply, [0, 45, 90])
        removed = laminate.remove_ply_at(1)
        assert [p.angle for p in removed.plies] == [0.0, 90.0]
        with pytest.raises(IndexError):
            laminate.remove_ply_at(5)

    def test_symmetric_laminate_B_zero(self, carbon_ply):
        """For symmetric laminate, B matrix should be zero."""
        laminate = create_laminate_from_angles(carbon_ply, [0, 90, 90, 0])

        assert np.allclose(laminate.B, 0, atol=1e-10 * np.max(np.abs(laminate.A)))
        props = laminate.properties
        assert np.isclose(props.NAx, 0.0, atol=1e-12)

    def test_asymmetric_laminate_B_nonzero(self, carbon_ply):
        """For asymmetric laminate, B matrix should be non-zero."""
        laminate = create_laminate_from_angles(carbon_ply, [0, 90])

        assert not np.allclose(laminate.B, 0), "B should be non-zero"
        assert laminate.properties.NAx != 0.0

    def test_balanced_laminate_A16_A26_zero(self, carbon_ply):
        """For balanced laminate [±45]s, A16 = A26 = 0."""
        laminate = create_laminate_from_angles(carbon_ply, [45, -45, -45, 45])

        tol = 1e-10 * np.max(np.abs(laminate.A))
        assert np.isclose(laminate.A[0, 2], 0, atol=tol), "A16 should be zero"
        assert np.isclose(laminate.A[1, 2], 0, atol=tol), "A26 should be zero"

    def test_unbalanced_laminate(self, carbon_ply):
        """A single off-axis ply is not balanced."""
        laminate = create_laminate_from_angles(carbon_ply, [30, 30])
        assert not np.isclose(laminate.A[0, 2], 0.0)

    def test_quasi_isotropic_A11_A22_equal(self, carbon_ply):
        """For quasi-isotropic laminate, A11 ≈ A22."""
        laminate = create_laminate_from_angles(carbon_ply, [0, 45, -45, 90, 90, -45, 45, 0])
        A = laminate.A
        assert np.isclose(A[0, 0], A[1, 1], rtol=1e-10)
        assert np.isclose(A[2, 2], (A[0, 0] - A[0, 1]) / 2, rtol=1e-10)

    def test_identical_plies(self, cu):
        """N identical aligned plies have the single-ply in-plane properties."""
        single = cu.properties
        stack = create_laminate_from_angles(cu, [0] * 5).properties
        assert np.isclose(stack.thickness, 5 * cu.thickness)
        assert np.isclose(stack.Ex, single.Ex, rtol=1e-9)
        assert np.isclose(stack.Gxy, single.Gxy, rtol=1e-9)
        assert np.isclose(stack.PRxy, single.PRxy, rtol=1e-9)
        assert np.isclose(stack.Exf, single.Exf, rtol=1e-9)

    def test_aggregates(self, cu, aluminum):
        """Areal weights add up and density is thickness weighted."""
        plate = SolidLamina(aluminum, 1e-3)
        laminate = Laminate().add_ply(cu).add_ply(plate)
        t = cu.thickness + 1e-3
        assert np.isclose(laminate.thickness, t)
        assert np.isclose(laminate.density, (cu.thickness * cu.density + 1e-3 * 2700.0) / t)
        assert np.isclose(laminate.faw, 0.15)
        assert np.isclose(laminate.saw, 2.7)
        assert np.isclose(laminate.taw, cu.taw + 2.7)
        # vf only counts the composite plies
        assert np.isclose(laminate.vf, 0.59)

    def test_out_of_plane_averages(self, cu, aluminum):
        """E3 is the thickness weighted average of the plies."""
        plate = SolidLamina(aluminum, cu.thickness)
        laminate = Laminate().add_ply(cu).add_ply(plate)
        assert np.isclose(laminate.E3, (cu.E3 + aluminum.E3) / 2.0)

    def test_woven_smears_stiffness(self, carbon_ply):
        """Woven laminates have B = 0 and D = A·t²/12."""
        laminate = create_laminate_from_angles(carbon_ply, [0, 90], is_woven=True)
        t = laminate.thickness
        assert np.allclose(laminate.B, 0.0)
        assert np.allclose(laminate.D, laminate.A * t**2 / 12.0, rtol=1e-12)

    def test_contains_nested(self, carbon_ply, cu):
        """contains searches nested laminates."""
        inner = Laminate().add_ply(cu, 30).add_ply(cu, -30)
        outer = Laminate().add_ply(inner).add_ply(carbon_ply)
        assert outer.contains(outer)
        assert outer.contains(inner)
        assert outer.contains(cu)
        assert not inner.contains(carbon_ply)

    def test_repr(self, carbon_ply):
        """Representation shows angles and thickness."""
        laminate = create_laminate_from_angles(carbon_ply, [0, 90])
        assert repr(laminate) == "Laminate([0/90], h=0.250mm)"


# =============================================================================
# Tests for Nested Laminates
# =============================================================================

class TestNestedLaminates:
    """Tests for laminates used as plies of other laminates."""

    def test_ply_count_counts_leaves(self, cu):
        """ply_count sums the leaf plies of nested laminates."""
        pair = Laminate().add_ply(cu, 30).add_ply(cu, -30)
        stack = Laminate().add_ply(pair).add_ply(pair).add_ply(cu)
        assert stack.n_plies == 3
        assert stack.ply_count == 5
        assert stack.properties.ply_count == 5

    def test_single_nested_equals_lamina(self, cu):
        """A laminate of one aligned ply has the ply's properties."""
        nested = Laminate().add_ply(cu).properties
        direct = cu.properties
        assert np.allclose(nested.stiffness_matrix, direct.stiffness_matrix, rtol=1e-12)

    @pytest.mark.parametrize("theta", [s * a for a in range(0, 181, 15) for s in (1, -1)])
    def test_rotation_invariance(self, cu, theta):
        """Rotating a nested laminate equals offsetting each ply angle."""
        angles = [30, -30, 0, 45]
        inner = create_laminate_from_angles(cu, angles)
        rotated = Laminate().add_ply(inner, theta).properties
        rebuilt = create_laminate_from_angles(cu, [a + theta for a in angles]).properties

        for key in ("Ex", "Ey", "Gxy", "PRxy"):
            assert np.isclose(getattr(rotated, key), getattr(rebuilt, key), rtol=1e-9), key

    def test_flip_before_rotation(self, cu):
        """A flipped ply is mirrored in its own axes, then turned by its angle."""
        sub = create_laminate_from_angles(cu, [30, -45])
        flipped = Laminate().add_ply(sub, 10.0, Orientation.FLIPPED).properties
        # mirroring gives [45, -30], the ply angle then adds 10
        expected = create_laminate_from_angles(cu, [55, -20]).properties
        rotated_first = create_laminate_from_angles(cu, [35, -40]).properties
        for key in ("Ex", "Ey", "Gxy"):
            assert np.isclose(getattr(flipped, key), getattr(expected, key), rtol=1e-9), key
        assert not np.isclose(flipped.Ex, rotated_first.Ex, rtol=1e-6)

    def test_offsets_from_mid_plane(self, carbon_ply, ply_thickness):
        """Ply offsets are measured from the laminate mid-plane, not a face."""
        laminate = create_laminate_from_angles(carbon_ply, [0, 0])
        A = laminate.A
        h = 2 * ply_thickness
        # a surface datum would give B = A·h/2
        assert np.allclose(laminate.B, 0.0, atol=1e-10 * np.max(np.abs(A)) * h)
        assert np.allclose(laminate.D, A * h**2 / 12.0, rtol=1e-10)

    def test_flip_mirrors_sub_laminate(self, cu):
        """Flipping a sub-laminate equals reversing it with negated angles."""
        sub = create_laminate_from_angles(cu, [30, -45])
        mirrored = create_laminate_from_angles(cu, [45, -30])
        flipped = Laminate().add_ply(sub, 0.0, Orientation.FLIPPED)
        ABD = flipped.get_ABD_matrix()
        expected = mirrored.get_ABD_matrix()
        scale = np.max(np.abs(expected[:3, :3]))
        assert np.allclose(ABD[:3, :3], expected[:3, :3], atol=1e-9 * scale)
        assert np.allclose(ABD[:3, 3:], expected[:3, 3:], atol=1e-9 * scale * cu.thickness)
        assert np.allclose(ABD[3:, 3:], expected[3:, 3:], atol=1e-9 * scale * cu.thickness**2)


# =============================================================================
# Tests for Empty Laminates
# =============================================================================

class TestEmptyLaminate:
    """Tests for laminates with no plies."""

    def test_empty_abd_is_zero(self):
        """The ABD matrix of an empty laminate is all zeros."""
        laminate = Laminate()
        assert np.array_equal(laminate.get_ABD_matrix(), np.zeros((6, 6)))
        assert laminate.thickness == 0.0
        assert laminate.density == 0.0
        assert laminate.ply_count == 0

    def test_empty_properties_raise(self):
        """Properties of an empty laminate raise EmptyLaminateError."""
        with pytest.raises(EmptyLaminateError):
            Laminate(name="nothing").properties
        with pytest.raises(EmptyLaminateError):
            Laminate().E3
