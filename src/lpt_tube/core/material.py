"""
Material Module.

Homogeneous elastic materials used as plies, fibers and resins. Each
symmetry class is its own immutable dataclass that stores only its
independent constants; the dependent constants are computed properties.
Fiber reinforced plastics (FRP) are a micromechanical mix of a fiber and a
resin material at a fiber volume fraction.

References
----------
- Jones, R.M. (1999). Mechanics of Composite Materials, 2nd ed.
- Chamis, C.C. (1989). Mechanics of composite materials: past, present and
  future. J. Compos. Technol. Res. 11(1).
"""

import math
from dataclasses import MISSING, dataclass, fields, replace
from typing import Any, ClassVar, Dict, Mapping, Optional, Union

from lpt_tube.core.errors import (
    ValidationError,
    check_fraction,
    check_poisson,
    check_positive,
)

MODULI = ("E1", "E2", "E3", "G12", "G13", "G23")
POISSON_RATIOS = ("PR12", "PR13", "PR23")
CONSTANTS = ("density",) + MODULI + POISSON_RATIOS


class _MaterialMixin:
    """Quantities shared by every material variant."""

    @property
    def PR21(self) -> float:
        return self.PR12 * self.E2 / self.E1

    @property
    def PR31(self) -> float:
        return self.PR13 * self.E3 / self.E1

    @property
    def PR32(self) -> float:
        return self.PR23 * self.E3 / self.E2

    def contains(self, other) -> bool:
        """True if ``other`` is this material or one of its constituents."""
        return other is self

    @property
    def properties(self) -> Dict[str, Any]:
        """Plain record of every elastic constant."""
        record = {"type": self.type_tag, "name": self.name, "description": self.description}
        for key in CONSTANTS + ("PR21", "PR31", "PR32"):
            record[key] = getattr(self, key)
        return record

    def _check_fields(self) -> None:
        for f in fields(self):
            if f.name == "density" or f.name in MODULI:
                check_positive(getattr(self, f.name), f.name)
            elif f.name in POISSON_RATIOS:
                check_poisson(getattr(self, f.name), f.name)


@dataclass(frozen=True)
class IsotropicMaterial(_MaterialMixin):
    """
    Isotropic material, identical properties in every direction.

    Parameters
    ----------
    name : str
        The name of the material.
    density : float
        Density [kg/m³].
    E1 : float
        Young's modulus [Pa].
    PR12 : float
        Poisson's ratio.
    description : str, optional
        Free text description.
    """

    type_tag: ClassVar[str] = "Isotropic"

    name: str
    density: float
    E1: float
    PR12: float
    description: str = ""

    def __post_init__(self):
        self._check_fields()

    @property
    def E2(self) -> float:
        return self.E1

    @property
    def E3(self) -> float:
        return self.E1

    @property
    def G12(self) -> float:
        return self.E1 / (2.0 * (1.0 + self.PR12))

    @property
    def G13(self) -> float:
        return self.G12

    @property
    def G23(self) -> float:
        return self.G12

    @property
    def PR13(self) -> float:
        return self.PR12

    @property
    def PR23(self) -> float:
        return self.PR12


@dataclass(frozen=True)
class PlanarIso12Material(_MaterialMixin):
    """
    Transversely isotropic material, isotropic in the 1-2 plane.

    Independent constants are density, E1, E3, G13, PR12 and PR13.
    """

    type_tag: ClassVar[str] = "PlanarIso12"

    name: str
    density: float
    E1: float
    E3: float
    G13: float
    PR12: float
    PR13: float
    description: str = ""

    def __post_init__(self):
        self._check_fields()

    @property
    def E2(self) -> float:
        return self.E1

    @property
    def G12(self) -> float:
        return self.E1 / (2.0 * (1.0 + self.PR12))

    @property
    def G23(self) -> float:
        return self.G13

    @property
    def PR23(self) -> float:
        return self.PR13


@dataclass(frozen=True)
class PlanarIso13Material(_MaterialMixin):
    """
    Transversely isotropic material, isotropic in the 1-3 plane.

    Independent constants are density, E1, E2, G12, PR12 and PR13.
    """

    type_tag: ClassVar[str] = "PlanarIso13"

    name: str
    density: float
    E1: float
    E2: float
    G12: float
    PR12: float
    PR13: float
    description: str = ""

    def __post_init__(self):
        self._check_fields()

    @property
    def E3(self) -> float:
        return self.E1

    @property
    def G13(self) -> float:
        return self.E1 / (2.0 * (1.0 + self.PR13))

    @property
    def G23(self) -> float:
        return self.G12

    @property
    def PR23(self) -> float:
        return self.PR12


@dataclass(frozen=True)
class PlanarIso23Material(_MaterialMixin):
    """
    Transversely isotropic material, isotropic in the 2-3 plane.

    This is the usual model for a fiber: the 1 direction is the fiber axis
    and the cross section is isotropic. Independent constants are density,
    E1, E2, G12, PR12 and PR23.
    """

    type_tag: ClassVar[str] = "PlanarIso23"

    name: str
    density: float
    E1: float
    E2: float
    G12: float
    PR12: float
    PR23: float
    description: str = ""

    def __post_init__(self):
        self._check_fields()

    @property
    def E3(self) -> float:
        return self.E2

    @property
    def G13(self) -> float:
        return self.G12

    @property
    def G23(self) -> float:
        return self.E2 / (2.0 * (1.0 + self.PR23))

    @property
    def PR13(self) -> float:
        return self.PR12


@dataclass(frozen=True)
class OrthotropicMaterial(_MaterialMixin):
    """
    Orthotropic material with nine independent elastic constants.

    Parameters
    ----------
    name : str
        The name of the material.
    density : float
        Density [kg/m³].
    E1, E2, E3 : float
        Young's moduli in the three material directions [Pa].
    G12, G13, G23 : float
        Shear moduli [Pa].
    PR12, PR13, PR23 : float
        Poisson's ratios.
    description : str, optional
        Free text description.
    """

    type_tag: ClassVar[str] = "Orthotropic"

    name: str
    density: float
    E1: float
    E2: float
    E3: float
    G12: float
    G13: float
    G23: float
    PR12: float
    PR13: float
    PR23: float
    description: str = ""

    def __post_init__(self):
        self._check_fields()


def _linear_mix(vf: float, fiber_value: float, resin_value: float) -> float:
    return vf * fiber_value + (1.0 - vf) * resin_value


def _transverse_mix(vf: float, fiber_value: float, resin_value: float) -> float:
    if vf == 1.0:
        return fiber_value
    if vf == 0.0:
        return resin_value
    return resin_value / (1.0 - math.sqrt(vf) * (1.0 - resin_value / fiber_value))


@dataclass(frozen=True)
class FRPMaterial(_MaterialMixin):
    """
    Fiber reinforced plastic: a fiber and a resin mixed at a volume fraction.

    Parameters
    ----------
    name : str
        The name of the material.
    fiber : Material
        Reinforcing fiber.
    resin : Material
        Matrix resin.
    vf : float
        Fiber volume fraction, 0 <= vf <= 1.
    description : str, optional
        Free text description.

    Notes
    -----
    Density, E1 and the Poisson's ratios follow the linear rule of mixtures.
    The transverse and shear moduli use the Chamis relation

        M = Mr / (1 - sqrt(vf)·(1 - Mr/Mf))

    which is replaced by the fiber or resin value at exactly vf = 1 or
    vf = 0.
    """

    type_tag: ClassVar[str] = "FRP"

    name: str
    fiber: "Material"
    resin: "Material"
    vf: float
    description: str = ""

    def __post_init__(self):
        for role in ("fiber", "resin"):
            value = getattr(self, role)
            if value is None:
                raise ValidationError(role, "missing.")
            if not isinstance(value, MATERIAL_CLASSES):
                raise ValidationError(role, f"expected a material, found {type(value).__name__}.")
        check_fraction(self.vf, "vf")

    def contains(self, other) -> bool:
        return other is self or self.fiber.contains(other) or self.resin.contains(other)

    @property
    def density(self) -> float:
        return _linear_mix(self.vf, self.fiber.density, self.resin.density)

    @property
    def E1(self) -> float:
        return _linear_mix(self.vf, self.fiber.E1, self.resin.E1)

    @property
    def E2(self) -> float:
        return _transverse_mix(self.vf, self.fiber.E2, self.resin.E2)

    @property
    def E3(self) -> float:
        return _transverse_mix(self.vf, self.fiber.E3, self.resin.E3)

    @property
    def G12(self) -> float:
        return _transverse_mix(self.vf, self.fiber.G12, self.resin.G12)

    @property
    def G13(self) -> float:
        return _transverse_mix(self.vf, self.fiber.G13, self.resin.G13)

    @property
    def G23(self) -> float:
        return _transverse_mix(self.vf, self.fiber.G23, self.resin.G23)

    @property
    def PR12(self) -> float:
        return _linear_mix(self.vf, self.fiber.PR12, self.resin.PR12)

    @property
    def PR13(self) -> float:
        return _linear_mix(self.vf, self.fiber.PR13, self.resin.PR13)

    @property
    def PR23(self) -> float:
        return _linear_mix(self.vf, self.fiber.PR23, self.resin.PR23)

    @property
    def properties(self) -> Dict[str, Any]:
        record = super().properties
        record["vf"] = self.vf
        record["fiber"] = self.fiber.properties
        record["resin"] = self.resin.properties
        return record


Material = Union[
    IsotropicMaterial,
    PlanarIso12Material,
    PlanarIso13Material,
    PlanarIso23Material,
    OrthotropicMaterial,
    FRPMaterial,
]

MATERIAL_CLASSES = (
    IsotropicMaterial,
    PlanarIso12Material,
    PlanarIso13Material,
    PlanarIso23Material,
    OrthotropicMaterial,
    FRPMaterial,
)

MATERIAL_TYPES = {cls.type_tag: cls for cls in MATERIAL_CLASSES}


def build_material(record: Mapping[str, Any],
                   materials: Optional[Mapping[str, Material]] = None) -> Material:
    """
    Build a material from a configuration record.

    Parameters
    ----------
    record : mapping
        Must hold a ``type`` tag (one of ``MATERIAL_TYPES``) plus the
        independent constants of that symmetry class. FRP records may give
        ``fiber`` and ``resin`` as names, nested records or material objects.
    materials : mapping, optional
        Materials by name, used to resolve named constituents

    Returns
    -------
    Material
        The validated material.

    Raises
    ------
    ValidationError
        If the tag is unknown, a name cannot be resolved or a required field
        is missing or invalid.

    Examples
    --------
    >>> epoxy = build_material(
    ...     {"type": "Isotropic", "name": "Epoxy", "density": 1170.0,
    ...      "E1": 3.1e9, "PR12": 0.3}
    ... )
    >>> cfrp = build_material(
    ...     {"type": "FRP", "name": "CF/Epoxy", "fiber": "carbon", "resin": "epoxy", "vf": 0.6},
    ...     materials={"carbon": carbon, "epoxy": epoxy},
    ... )
    """
    tag = record.get("type")
    if tag not in MATERIAL_TYPES:
        raise ValidationError("type", f"unknown material type '{tag}'.")
    cls = MATERIAL_TYPES[tag]

    kwargs = {}
    for f in fields(cls):
        if f.name in record:
            value = record[f.name]
            if f.name in ("fiber", "resin"):
                if isinstance(value, Mapping):
                    value = build_material(value, materials)
                elif isinstance(value, str):
                    if materials is None or value not in materials:
                        raise ValidationError(f.name, f"unknown material '{value}'.")
                    value = materials[value]
            kwargs[f.name] = value
        elif f.default is MISSING:
            if f.name == "name":
                raise ValidationError("name", "missing.")
            if f.name in ("fiber", "resin"):
                raise ValidationError(f.name, "missing.")
            raise ValidationError(f.name, "missing or not numeric.")
    return cls(**kwargs)


def evolve(material: Material, **changes) -> Material:
    """Return a copy of ``material`` with ``changes`` applied and revalidated."""
    return replace(material, **changes)


def duplicate_material(material: Material) -> Material:
    """Copy of ``material`` with the same symmetry class and constants."""
    return replace(material)


# =============================================================================
# Mass / volume fraction conversions
# =============================================================================


def mf_from_vf(fiber_density: float, resin_density: float, vf: float) -> float:
    """Fiber mass fraction for a fiber volume fraction."""
    return (vf * fiber_density) / (fiber_density * vf + resin_density * (1.0 - vf))


def vf_from_mf(fiber_density: float, resin_density: float, mf: float) -> float:
    """Fiber volume fraction for a fiber mass fraction."""
    return (mf * resin_density) / (fiber_density * (1.0 - mf) + resin_density * mf)


def rc_for_vf(fiber_density: float, resin_density: float, vf: float) -> float:
    """Resin content (mass fraction) that gives the requested fiber volume fraction."""
    return 1.0 - mf_from_vf(fiber_density, resin_density, vf)


def rc_for_equal_vf(rc1: float, fiber1_density: float, fiber2_density: float) -> float:
    """
    Resin content giving the same vf as an existing ply with another fiber.

    Parameters
    ----------
    rc1 : float
        Resin content of the existing ply.
    fiber1_density : float
        Fiber density of the existing ply.
    fiber2_density : float
        Fiber density of the new ply.
    """
    ratio = fiber2_density / fiber1_density
    return 1.0 - ((1.0 - rc1) * ratio) / (1.0 - (1.0 - rc1) * (1.0 - ratio))
