"""
Laminate Module for Composite Materials.

This module provides classes and functions for defining and analyzing
laminated composite materials using Classical Lamination Theory (CLT).

The main classes are:
- SolidLamina: Single ply of a homogeneous material with a thickness
- CompositeLamina: Single ply of fiber and resin mixed at a volume fraction
- Ply: Placement of a lamina or laminate at an angle and orientation
- Laminate: Ordered stack of plies with ABD stiffness matrix computation
- LaminateProperties: Detached snapshot of the effective laminate properties

Laminates may themselves be used as plies of other laminates. A nested
laminate contributes its own aggregated ABD matrix, rotated, flipped and
shifted as a single super-ply.

References
----------
- Jones, R.M. (1999). Mechanics of Composite Materials, 2nd ed.
- Reddy, J.N. (2004). Mechanics of Laminated Composite Plates and Shells.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, ClassVar, Dict, List, Tuple, Union

import numpy as np

from lpt_tube.core.errors import (
    EmptyLaminateError,
    ValidationError,
    check_number,
    check_positive,
)
from lpt_tube.core.material import (
    MATERIAL_CLASSES,
    FRPMaterial,
    Material,
    mf_from_vf,
)

logger = logging.getLogger(__name__)

# Angular averaging weights (sin⁴, cos⁴, sin²cos²) for in-plane random mats
RANDOM_WEIGHTS = (0.375, 0.375, 0.125)
ALIGNED_WEIGHTS = (0.0, 1.0, 0.0)

# Tensorial to engineering shear strain
_R = np.diag([1.0, 1.0, 2.0])
_R_INV = np.diag([1.0, 1.0, 0.5])

# Sign pattern of a ply mirrored about its own mid-plane
_FLIP_SIGNS = np.array([
    [1.0, 1.0, -1.0],
    [1.0, 1.0, -1.0],
    [-1.0, -1.0, 1.0],
])


class Orientation(str, Enum):
    """Ply orientation within a laminate."""

    UPRIGHT = "Upright"
    FLIPPED = "Flipped"


def make_plus_minus_90(angle: float) -> float:
    """Equivalent ply angle in [-90, 90] degrees."""
    while angle > 90.0:
        angle -= 180.0
    while angle < -90.0:
        angle += 180.0
    return angle


# =============================================================================
# Stiffness matrices
# =============================================================================


def compute_Q(material: Material, is_random: bool = False) -> np.ndarray:
    """
    Compute reduced stiffness matrix Q in principal material coordinates.

    Parameters
    ----------
    material : Material
        Material with E1, E2, G12, PR12 properties
    is_random : bool, optional
        Blend the stiffness over all in-plane directions to model a random
        fiber mat.

    Returns
    -------
    np.ndarray
        3x3 reduced stiffness matrix Q

    Notes
    -----
    Components:
    Q11 = E1 / (1 - ν12²)
    Q22 = E2 / (1 - ν12²)
    Q12 = ν12·E2 / (1 - ν12²)
    Q66 = G12

    Random mats use the weights (s⁴, c⁴, s²c²) = (0.375, 0.375, 0.125):
    Q11' = Q11·c⁴ + 2(Q12 + 2Q66)·s²c² + Q22·s⁴
    Q22' = Q11·s⁴ + 2(Q12 + 2Q66)·s²c² + Q22·c⁴
    Q12' = (Q11 + Q22 - 4Q66)·s²c² + Q12·(s⁴ + c⁴)
    Q66' = (Q11 + Q22 - 2Q12 - 2Q66)·s²c² + Q66·(s⁴ + c⁴)
    """
    E1, E2 = material.E1, material.E2
    PR12, G12 = material.PR12, material.G12

    denom = 1.0 - PR12 * PR12
    q11 = E1 / denom
    q22 = E2 / denom
    q12 = PR12 * E2 / denom
    q66 = G12

    ssss, cccc, sscc = RANDOM_WEIGHTS if is_random else ALIGNED_WEIGHTS

    Q11 = q11 * cccc + 2.0 * (q12 + 2.0 * q66) * sscc + q22 * ssss
    Q22 = q11 * ssss + 2.0 * (q12 + 2.0 * q66) * sscc + q22 * cccc
    Q12 = (q11 + q22 - 4.0 * q66) * sscc + q12 * (ssss + cccc)
    Q66 = (q11 + q22 - 2.0 * q12 - 2.0 * q66) * sscc + q66 * (ssss + cccc)

    return np.array([
        [Q11, Q12, 0.0],
        [Q12, Q22, 0.0],
        [0.0, 0.0, Q66]
    ])


def assemble_ABD(A: np.ndarray, B: np.ndarray, D: np.ndarray) -> np.ndarray:
    """Build the 6x6 matrix [[A, B], [B, D]]."""
    ABD = np.zeros((6, 6))
    ABD[:3, :3] = A
    ABD[:3, 3:] = B
    ABD[3:, :3] = B
    ABD[3:, 3:] = D
    return ABD


def lamina_ABD(Q: np.ndarray, thickness: float) -> np.ndarray:
    """
    ABD matrix of a single layer about its own mid-plane.

    A = Q·t, B = 0, D = Q·t³/12
    """
    return assemble_ABD(Q * thickness, np.zeros((3, 3)), Q * thickness**3 / 12.0)


def rotate_ABD(ABD: np.ndarray, angle: float) -> np.ndarray:
    """
    Rotate each block of an ABD matrix from local to laminate axes.

    Parameters
    ----------
    ABD : np.ndarray
        6x6 stiffness matrix in local axes
    angle : float
        Rotation in degrees

    Returns
    -------
    np.ndarray
        6x6 stiffness matrix, X' = T⁻¹·X·R·T·R⁻¹ for X in (A, B, D)
    """
    theta = np.radians(angle)
    s = np.sin(theta)
    c = np.cos(theta)
    ss, cc, sc = s * s, c * c, s * c

    T = np.array([
        [cc, ss, 2 * sc],
        [ss, cc, -2 * sc],
        [-sc, sc, cc - ss]
    ])
    T_inv = np.array([
        [cc, ss, -2 * sc],
        [ss, cc, 2 * sc],
        [sc, -sc, cc - ss]
    ])
    right = _R @ T @ _R_INV

    A = T_inv @ ABD[:3, :3] @ right
    B = T_inv @ ABD[:3, 3:] @ right
    D = T_inv @ ABD[3:, 3:] @ right
    return assemble_ABD(A, B, D)


def flip_ABD(ABD: np.ndarray) -> np.ndarray:
    """Mirror an ABD matrix about its own mid-plane, in local axes."""
    A = ABD[:3, :3] * _FLIP_SIGNS
    B = ABD[:3, 3:] * -_FLIP_SIGNS
    D = ABD[3:, 3:] * _FLIP_SIGNS
    return assemble_ABD(A, B, D)


def shift_ABD(ABD: np.ndarray, z: float) -> np.ndarray:
    """
    Move an ABD matrix from its own mid-plane to a datum at offset ``z``.

    A' = A, B' = B + z·A, D' = D + 2z·B + z²·A
    """
    A = ABD[:3, :3]
    B = ABD[:3, 3:]
    D = ABD[3:, 3:]
    return assemble_ABD(A, B + z * A, D + 2.0 * z * B + z * z * A)


def smear_ABD(ABD: np.ndarray, thickness: float) -> np.ndarray:
    """
    Remove stacking sequence effects from a woven laminate.

    B is zeroed and D is rebuilt from A as if the stiffness were uniform
    through the thickness: Dij = Aij·((zt³ - zb³)/3)/(zt - zb).
    """
    zt = thickness / 2.0
    zb = -zt
    k = ((zt**3 - zb**3) / 3.0) / (zt - zb)
    A = ABD[:3, :3]
    return assemble_ABD(A, np.zeros((3, 3)), A * k)


# =============================================================================
# Properties snapshot
# =============================================================================


def _read_only(matrix: np.ndarray) -> np.ndarray:
    matrix = np.array(matrix, dtype=float)
    matrix.setflags(write=False)
    return matrix


@dataclass(frozen=True)
class LaminateProperties:
    """
    Effective properties of a lamina or laminate.

    The matrices are read-only copies; the snapshot never changes once
    computed and holds no reference to the layer it came from.

    Attributes
    ----------
    thickness : float
        Total thickness [m]
    Ex, Ey, Gxy : float
        In-plane (membrane) moduli [Pa]
    PRxy, PRyx : float
        In-plane Poisson's ratios
    Exf, Eyf, Gxyf : float
        Flexural moduli [Pa]
    NAx, NAy : float
        Offset of the bending neutral surface from the mid-plane [m]
    density : float
        Average density [kg/m³]
    vf : float
        Average fiber volume fraction of the composite plies
    taw, saw, faw, raw : float
        Total, solid, fiber and resin areal weights [kg/m²]
    stiffness_matrix : np.ndarray
        6x6 ABD matrix
    compliance_matrix : np.ndarray
        Inverse of the ABD matrix
    ply_count : int
        Number of leaf plies
    """

    thickness: float
    Ex: float
    Ey: float
    Gxy: float
    PRxy: float
    PRyx: float
    Exf: float
    Eyf: float
    Gxyf: float
    NAx: float
    NAy: float
    density: float
    vf: float
    taw: float
    saw: float
    faw: float
    raw: float
    stiffness_matrix: np.ndarray = field(repr=False, compare=False)
    compliance_matrix: np.ndarray = field(repr=False, compare=False)
    ply_count: int = 1

    def to_dict(self) -> Dict[str, Any]:
        """Plain record of numbers and nested lists."""
        return {
            "thickness": self.thickness,
            "Ex": self.Ex,
            "Ey": self.Ey,
            "Gxy": self.Gxy,
            "PRxy": self.PRxy,
            "PRyx": self.PRyx,
            "Exf": self.Exf,
            "Eyf": self.Eyf,
            "Gxyf": self.Gxyf,
            "NAx": self.NAx,
            "NAy": self.NAy,
            "density": self.density,
            "vf": self.vf,
            "taw": self.taw,
            "saw": self.saw,
            "faw": self.faw,
            "raw": self.raw,
            "stiffness_matrix": self.stiffness_matrix.tolist(),
            "compliance_matrix": self.compliance_matrix.tolist(),
            "ply_count": self.ply_count,
        }


def compute_properties(layer: "Lamina") -> LaminateProperties:
    """
    Derive effective properties by inverting the ABD matrix.

    Notes
    -----
    With c = ABD⁻¹ and t the thickness:
    Ex = 1/(c11·t), Ey = 1/(c22·t), Gxy = 1/(c66·t)
    PRxy = -c12/c11, PRyx = -c12/c22
    Exf = 12/(d11·t³), Eyf = 12/(d22·t³), Gxyf = 12/(d66·t³)
    NAx = B11/A11, NAy = B22/A22
    """
    t = layer.thickness
    ABD = layer.get_ABD_matrix()
    c = np.linalg.inv(ABD)

    return LaminateProperties(
        thickness=t,
        Ex=1.0 / (c[0, 0] * t),
        Ey=1.0 / (c[1, 1] * t),
        Gxy=1.0 / (c[2, 2] * t),
        PRxy=-c[0, 1] / c[0, 0],
        PRyx=-c[0, 1] / c[1, 1],
        Exf=12.0 / (c[3, 3] * t**3),
        Eyf=12.0 / (c[4, 4] * t**3),
        Gxyf=12.0 / (c[5, 5] * t**3),
        NAx=ABD[0, 3] / ABD[0, 0],
        NAy=ABD[1, 4] / ABD[1, 1],
        density=layer.density,
        vf=layer.vf,
        taw=layer.taw,
        saw=layer.saw,
        faw=layer.faw,
        raw=layer.raw,
        stiffness_matrix=_read_only(ABD),
        compliance_matrix=_read_only(c),
        ply_count=layer.ply_count,
    )


# =============================================================================
# Laminae
# =============================================================================


class _LaminaMixin:
    """Accessors shared by the single-ply laminae."""

    ply_count = 1

    @property
    def E1(self) -> float:
        return self.material.E1

    @property
    def E2(self) -> float:
        return self.material.E2

    @property
    def E3(self) -> float:
        return self.material.E3

    @property
    def G12(self) -> float:
        return self.material.G12

    @property
    def G13(self) -> float:
        return self.material.G13

    @property
    def G23(self) -> float:
        return self.material.G23

    @property
    def PR12(self) -> float:
        return self.material.PR12

    @property
    def PR13(self) -> float:
        return self.material.PR13

    @property
    def PR23(self) -> float:
        return self.material.PR23

    @property
    def density(self) -> float:
        return self.material.density

    @property
    def taw(self) -> float:
        return self.saw + self.faw + self.raw

    @property
    def mf(self) -> float:
        fiber_and_resin = self.faw + self.raw
        return self.faw / fiber_and_resin if fiber_and_resin > 0.0 else 0.0

    def contains(self, target) -> bool:
        return target is self

    def get_ABD_matrix(self) -> np.ndarray:
        """6x6 ABD matrix about the ply's own mid-plane."""
        return lamina_ABD(compute_Q(self.material, self.is_random), self.thickness)

    @property
    def properties(self) -> LaminateProperties:
        return compute_properties(self)


@dataclass(frozen=True)
class SolidLamina(_LaminaMixin):
    """
    Single ply of a homogeneous material.

    Parameters
    ----------
    material : Material
        Ply material
    thickness : float
        Ply thickness [m]
    is_random : bool, optional
        Blend the in-plane stiffness as a random mat
    name, description : str, optional
        Labels
    """

    type_tag: ClassVar[str] = "SolidLamina"

    material: Material
    thickness: float
    is_random: bool = False
    name: str = ""
    description: str = ""

    def __post_init__(self):
        if not isinstance(self.material, MATERIAL_CLASSES):
            raise ValidationError("material", "missing or not a material.")
        check_positive(self.thickness, "thickness")

    @property
    def saw(self) -> float:
        return self.material.density * self.thickness

    faw = 0.0
    raw = 0.0
    vf = 0.0


@dataclass(frozen=True)
class CompositeLamina(_LaminaMixin):
    """
    Single ply of fiber and resin mixed at a fiber volume fraction.

    The ply thickness follows from the fiber areal weight:
    t = faw / (ρf·vf)

    Parameters
    ----------
    fiber : Material
        Reinforcing fiber
    resin : Material
        Matrix resin
    vf : float
        Fiber volume fraction, 0 < vf <= 1
    faw : float
        Fiber areal weight [kg/m²]
    is_random : bool, optional
        Blend the in-plane stiffness as a random mat
    name, description : str, optional
        Labels
    """

    type_tag: ClassVar[str] = "CompositeLamina"

    fiber: Material
    resin: Material
    vf: float
    faw: float
    is_random: bool = False
    name: str = ""
    description: str = ""

    def __post_init__(self):
        for role in ("fiber", "resin"):
            if not isinstance(getattr(self, role), MATERIAL_CLASSES):
                raise ValidationError(role, "missing or not a material.")
        vf = check_number(self.vf, "vf")
        if vf <= 0.0 or vf > 1.0:
            raise ValidationError("vf", f"must be greater than 0 and at most 1, found {vf}.")
        check_positive(self.faw, "faw")

    @property
    def material(self) -> FRPMaterial:
        return FRPMaterial(
            name=self.name or f"{self.fiber.name} / {self.resin.name}",
            fiber=self.fiber,
            resin=self.resin,
            vf=self.vf,
        )

    @property
    def thickness(self) -> float:
        return self.faw / (self.fiber.density * self.vf)

    @property
    def raw(self) -> float:
        mf = mf_from_vf(self.fiber.density, self.resin.density, self.vf)
        return self.faw * (1.0 / mf - 1.0)

    saw = 0.0


# =============================================================================
# Laminate
# =============================================================================


@dataclass(frozen=True)
class Ply:
    """
    Placement of a lamina or nested laminate within a laminate.

    Parameters
    ----------
    layer : SolidLamina, CompositeLamina or Laminate
        What is placed
    angle : float
        Orientation angle [degrees], stored in [-90, 90]
    orientation : Orientation
        UPRIGHT, or FLIPPED to mirror the layer about its own mid-plane
    """

    layer: "Lamina"
    angle: float = 0.0
    orientation: Orientation = Orientation.UPRIGHT

    def __post_init__(self):
        if not isinstance(self.layer, LAMINA_CLASSES):
            raise ValidationError("layer", "must be a lamina or laminate.")
        angle = check_number(self.angle, "angle")
        object.__setattr__(self, "angle", make_plus_minus_90(angle))
        try:
            object.__setattr__(self, "orientation", Orientation(self.orientation))
        except ValueError:
            raise ValidationError("orientation", f"unknown orientation '{self.orientation}'.") from None


@dataclass(frozen=True)
class Laminate:
    """
    Ordered stack of plies with CLT stiffness matrices.

    Parameters
    ----------
    plies : tuple of Ply
        Plies from the bottom (inside) to the top (outside)
    is_woven : bool, optional
        Smear the stiffness through the thickness, see ``smear_ABD``
    name, description : str, optional
        Labels

    Notes
    -----
    The ABD matrix relates stress resultants to mid-plane strains and
    curvatures:

    [N]   [A  B] [ε⁰]
    [M] = [B  D] [κ ]

    Each ply contributes its own ABD matrix, mirrored if flipped, rotated to
    laminate axes and shifted to its mid-plane offset z from the laminate
    mid-plane. Laminates are immutable: ``add_ply``, ``add_ply_at`` and
    ``remove_ply_at`` return new laminates.

    Examples
    --------
    >>> ply = CompositeLamina(carbon, epoxy, vf=0.59, faw=0.15)
    >>> laminate = Laminate().add_ply(ply, 30).add_ply(ply, -30)
    >>> laminate.properties.Ex
    """

    type_tag: ClassVar[str] = "Laminate"

    plies: Tuple[Ply, ...] = ()
    is_woven: bool = False
    name: str = ""
    description: str = ""

    def __post_init__(self):
        plies = tuple(self.plies)
        for ply in plies:
            if not isinstance(ply, Ply):
                raise ValidationError("plies", f"expected Ply, found {type(ply).__name__}.")
        object.__setattr__(self, "plies", plies)

    # -- construction ---------------------------------------------------------

    def add_ply(self, layer: "Lamina", angle: float = 0.0,
                orientation: Orientation = Orientation.UPRIGHT) -> "Laminate":
        """New laminate with ``layer`` placed on top."""
        return self.add_ply_at(len(self.plies), layer, angle, orientation)

    def add_ply_at(self, index: int, layer: "Lamina", angle: float = 0.0,
                   orientation: Orientation = Orientation.UPRIGHT) -> "Laminate":
        """New laminate with ``layer`` inserted at ``index`` (clamped to the stack)."""
        index = min(len(self.plies), max(0, index))
        plies = list(self.plies)
        plies.insert(index, Ply(layer, angle, orientation))
        return replace(self, plies=tuple(plies))

    def remove_ply_at(self, index: int) -> "Laminate":
        """New laminate without the ply at ``index``."""
        plies = list(self.plies)
        del plies[index]
        return replace(self, plies=tuple(plies))

    def contains(self, target) -> bool:
        """True if ``target`` is this laminate or appears anywhere in its plies."""
        if target is self:
            return True
        return any(ply.layer.contains(target) for ply in self.plies)

    # -- aggregates -----------------------------------------------------------

    @property
    def n_plies(self) -> int:
        """Number of direct plies in the laminate."""
        return len(self.plies)

    @property
    def ply_count(self) -> int:
        """Number of leaf plies, counting through nested laminates."""
        return sum(ply.layer.ply_count for ply in self.plies)

    @property
    def thickness(self) -> float:
        return sum(ply.layer.thickness for ply in self.plies)

    @property
    def density(self) -> float:
        t = self.thickness
        if t <= 0.0:
            return 0.0
        return sum(ply.layer.thickness * ply.layer.density for ply in self.plies) / t

    @property
    def vf(self) -> float:
        """Thickness weighted vf of the composite plies (0 < vf < 1)."""
        total = 0.0
        composite_thickness = 0.0
        for ply in self.plies:
            t, vf = ply.layer.thickness, ply.layer.vf
            if 0.0 < vf < 1.0:
                total += t * vf
                composite_thickness += t
        return total / composite_thickness if composite_thickness > 0.0 else 0.0

    @property
    def taw(self) -> float:
        return sum(ply.layer.taw for ply in self.plies)

    @property
    def saw(self) -> float:
        return sum(ply.layer.saw for ply in self.plies)

    @property
    def faw(self) -> float:
        return sum(ply.layer.faw for ply in self.plies)

    @property
    def raw(self) -> float:
        return sum(ply.layer.raw for ply in self.plies)

    @property
    def E1(self) -> float:
        return self.properties.Ex

    @property
    def E2(self) -> float:
        return self.properties.Ey

    @property
    def G12(self) -> float:
        return self.properties.Gxy

    @property
    def PR12(self) -> float:
        return self.properties.PRxy

    def _thickness_average(self, attribute: str) -> float:
        t = self.thickness
        if t <= 0.0:
            raise EmptyLaminateError(self.name)
        return sum(ply.layer.thickness * getattr(ply.layer, attribute) for ply in self.plies) / t

    # Out-of-plane constants are simple thickness weighted averages
    @property
    def E3(self) -> float:
        return self._thickness_average("E3")

    @property
    def G13(self) -> float:
        return self._thickness_average("G13")

    @property
    def G23(self) -> float:
        return self._thickness_average("G23")

    @property
    def PR13(self) -> float:
        return self.E1 / (2.0 * self.G13) - 1.0

    @property
    def PR23(self) -> float:
        return self.E2 / (2.0 * self.G23) - 1.0

    # -- stiffness ------------------------------------------------------------

    def _ply_positions(self) -> List[float]:
        """Mid-plane z of each ply relative to the laminate mid-plane."""
        z = -self.thickness / 2.0
        positions = []
        for ply in self.plies:
            t = ply.layer.thickness
            positions.append(z + t / 2.0)
            z += t
        return positions

    def get_ABD_matrix(self) -> np.ndarray:
        """
        Get the full 6x6 ABD stiffness matrix about the laminate mid-plane.

        Returns
        -------
        np.ndarray
            6x6 matrix [[A, B], [B, D]], units N/m, N and N·m
        """
        ABD = np.zeros((6, 6))
        for ply, z in zip(self.plies, self._ply_positions()):
            block = ply.layer.get_ABD_matrix()
            if ply.orientation is Orientation.FLIPPED:
                block = flip_ABD(block)
            block = rotate_ABD(block, ply.angle)
            ABD += shift_ABD(block, z)

        if self.is_woven and self.plies:
            ABD = smear_ABD(ABD, self.thickness)
        return ABD

    @property
    def A(self) -> np.ndarray:
        return self.get_ABD_matrix()[:3, :3]

    @property
    def B(self) -> np.ndarray:
        return self.get_ABD_matrix()[:3, 3:]

    @property
    def D(self) -> np.ndarray:
        return self.get_ABD_matrix()[3:, 3:]

    @property
    def properties(self) -> LaminateProperties:
        """
        Effective laminate properties, recomputed on every access.

        Raises
        ------
        EmptyLaminateError
            If the laminate has no plies.
        """
        if not self.plies:
            raise EmptyLaminateError(self.name)
        logger.debug("Computing properties of laminate %r", self)
        return compute_properties(self)

    def __repr__(self) -> str:
        angles = [f"{p.angle:.0f}" for p in self.plies]
        return f"Laminate([{'/'.join(angles)}], h={self.thickness*1000:.3f}mm)"


Lamina = Union[SolidLamina, CompositeLamina, Laminate]
LAMINA_CLASSES = (SolidLamina, CompositeLamina, Laminate)


# =============================================================================
# Layup helpers
# =============================================================================


def create_laminate_from_angles(
    layer: Lamina,
    angles: List[float],
    is_woven: bool = False,
    name: str = "",
) -> Laminate:
    """
    Create a laminate of one layer repeated at a list of angles.

    Parameters
    ----------
    layer : SolidLamina, CompositeLamina or Laminate
        Layer for all plies
    angles : List[float]
        List of orientation angles [degrees], bottom to top

    Examples
    --------
    >>> laminate = create_laminate_from_angles(ply, [0, 45, -45, 90, 90, -45, 45, 0])
    """
    plies = tuple(Ply(layer, angle) for angle in angles)
    return Laminate(plies=plies, is_woven=is_woven, name=name)
