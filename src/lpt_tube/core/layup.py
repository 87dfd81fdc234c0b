"""
Layup Module.

Layers are the shop-floor view of a laminate: what is actually put on the
mandrel (a sheet of prepreg, a dry fabric, a braided sleeve). Given a
``LayupContext`` (mandrel diameter, resin, compaction pressure) every layer
resolves itself into a ``Laminate`` through ``get_laminate``.

The main classes are:
- LayupContext: Conditions the layup is used in
- CompactionModel: Fiber volume fraction as a function of pressure
- SolidLayer: A sheet of homogeneous material
- FiberLayer: Dry fiber, resin comes from the context
- PrepregLayer: A layer pre-impregnated with its own resin
- ReleaseLayer: Separation between an inner and an outer laminate
- FabricLayer: Stack or weave of other layers at angles
- BraidedLayer: Tubular braid whose properties vary with diameter

References
----------
- Potluri, P. et al. (2003). Geometrical modelling and control of a
  triaxial braiding machine for producing 3D preforms. Composites Part A.
- Gutowski, T.G. (1997). Advanced Composites Manufacturing.
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from enum import Enum
from typing import ClassVar, Optional, Tuple

import numpy as np

from lpt_tube.core.errors import (
    ValidationError,
    check_fraction,
    check_non_negative,
    check_number,
    check_positive,
)
from lpt_tube.core.laminate import (
    CompositeLamina,
    Laminate,
    Orientation,
    SolidLamina,
)
from lpt_tube.core.material import (
    MATERIAL_CLASSES,
    Material,
    mf_from_vf,
    vf_from_mf,
)

logger = logging.getLogger(__name__)

PSI_TO_PA = 6894.7573

DEFAULT_PRESSURES = (0.0, 14.7 * PSI_TO_PA, 50.0 * PSI_TO_PA, 120.0 * PSI_TO_PA,
                     400.0 * PSI_TO_PA, 1000.0 * PSI_TO_PA)
DEFAULT_VFS = (0.52, 0.545, 0.570, 0.60, 0.665, 0.685)


@dataclass(frozen=True)
class LayupContext:
    """
    Conditions a layup is used in.

    Parameters
    ----------
    od : float
        Outside diameter at the layer [m]
    resin : Material, optional
        Resin for dry fiber layers
    compaction_pressure : float
        Consolidation pressure [Pa]
    """

    od: float = 1.0
    resin: Optional[Material] = None
    compaction_pressure: float = 0.0


@dataclass(frozen=True)
class CompactionModel:
    """
    Fiber volume fraction of a dry preform as a function of pressure.

    Parameters
    ----------
    pressures : tuple of float
        Strictly increasing pressures [Pa]
    vfs : tuple of float
        Strictly increasing fiber volume fractions at those pressures

    Notes
    -----
    The default table is a typical curve for unidirectional carbon.
    """

    type_tag: ClassVar[str] = "CompactionModel"

    pressures: Tuple[float, ...] = DEFAULT_PRESSURES
    vfs: Tuple[float, ...] = DEFAULT_VFS

    def __post_init__(self):
        pressures = tuple(check_non_negative(p, "pressures") for p in self.pressures)
        vfs = tuple(check_number(v, "vfs") for v in self.vfs)
        if not vfs:
            raise ValidationError("vfs", "must not be empty.")
        if len(vfs) != len(pressures):
            raise ValidationError("vfs", "pressure and vf tables have different lengths.")
        for i, vf in enumerate(vfs):
            if vf <= 0.0 or vf > 1.0:
                raise ValidationError("vfs", f"vfs[{i}] = {vf} outside (0, 1].")
            if i > 0 and vf <= vfs[i - 1]:
                raise ValidationError("vfs", "must be an increasing series.")
            if i > 0 and pressures[i] <= pressures[i - 1]:
                raise ValidationError("pressures", "must be an increasing series.")
        object.__setattr__(self, "pressures", pressures)
        object.__setattr__(self, "vfs", vfs)

    @property
    def min_vf(self) -> float:
        return self.vfs[0]

    @property
    def max_vf(self) -> float:
        return self.vfs[-1]

    def vf_at_pressure(self, pressure: float) -> float:
        """Linear interpolation in the table, clamped to the end values."""
        return float(np.interp(pressure, self.pressures, self.vfs))

    def pressure_for_vf(self, vf: float) -> float:
        """
        Pressure needed to reach ``vf``.

        Raises
        ------
        ValidationError
            If ``vf`` is not strictly inside the table's range.
        """
        if vf <= self.min_vf or vf >= self.max_vf:
            raise ValidationError(
                "vf", f"{vf} outside possible range ({self.min_vf} - {self.max_vf})."
            )
        return float(np.interp(vf, self.vfs, self.pressures))


class WeaveType(str, Enum):
    """How the layers of a fabric are held together."""

    NONE = "None"
    KNIT = "Stitch-Knit"
    PLAIN = "Plain Weave"
    TWILL = "2x2 Twill"


def _single_ply(lamina, name: str) -> Laminate:
    return Laminate(name=name).add_ply(lamina, 0.0, Orientation.UPRIGHT)


def _require_resin(ctx: Optional[LayupContext], kind: str) -> Material:
    if ctx is None or ctx.resin is None:
        raise ValidationError("resin", f"{kind} layers need a resin from the layup context.")
    return ctx.resin


def _resin_for_vf(faw: float, fiber_density: float, resin_density: float, vf: float) -> float:
    mf = mf_from_vf(fiber_density, resin_density, vf)
    return faw * (1.0 - mf) / mf


class Layer(ABC):
    """
    Base class for everything that can be laid up.

    Areal weights are in kg/m², thickness in m. Every concrete layer
    implements the abstract methods; the totals and containment check are
    shared.
    """

    @property
    @abstractmethod
    def fiber_density(self) -> Optional[float]:
        """Average fiber density [kg/m³], None if there is no fiber."""

    @property
    @abstractmethod
    def resin_density(self) -> Optional[float]:
        """Average resin density [kg/m³], None if the context supplies it."""

    @property
    @abstractmethod
    def solid_density(self) -> Optional[float]:
        """Average solid density [kg/m³], None if there is no solid."""

    @abstractmethod
    def get_fiber_areal_wt(self, ctx: LayupContext) -> float:
        pass

    @abstractmethod
    def get_resin_areal_wt(self, ctx: LayupContext) -> float:
        pass

    @abstractmethod
    def get_solid_areal_wt(self, ctx: LayupContext) -> float:
        pass

    @abstractmethod
    def get_vf(self, ctx: LayupContext) -> float:
        """Fiber volume fraction of the non-solid part of the layer."""

    @abstractmethod
    def get_thickness(self, ctx: LayupContext) -> float:
        pass

    @abstractmethod
    def get_laminate(self, ctx: LayupContext) -> Laminate:
        """Laminate representing this layer under ``ctx``."""

    @property
    def is_compressible(self) -> bool:
        return False

    def get_total_areal_wt(self, ctx: LayupContext) -> float:
        return (
            self.get_fiber_areal_wt(ctx)
            + self.get_resin_areal_wt(ctx)
            + self.get_solid_areal_wt(ctx)
        )

    def contains(self, target) -> bool:
        """True if ``target`` is this layer or one of its sub-layers."""
        return target is self


def _check_layer(value, field: str) -> None:
    if not isinstance(value, Layer):
        raise ValidationError(field, f"expected a layer, found {type(value).__name__}.")


def _check_material(value, field: str) -> None:
    if not isinstance(value, MATERIAL_CLASSES):
        raise ValidationError(field, "missing or not a material.")


def _set_fiber_vf(layer: Layer, vf: float) -> Layer:
    """Copy of ``layer`` with every dry fiber layer in it at ``vf``."""
    if isinstance(layer, FiberLayer):
        return replace(layer, vf=vf, compaction_model=None)
    if isinstance(layer, ReleaseLayer):
        return replace(layer, layer=_set_fiber_vf(layer.layer, vf))
    if isinstance(layer, FabricLayer):
        return replace(layer, layers=tuple(_set_fiber_vf(inner, vf) for inner in layer.layers))
    return layer


@dataclass(frozen=True)
class SolidLayer(Layer):
    """A sheet of homogeneous material, e.g. a core or a metal foil."""

    type_tag: ClassVar[str] = "SolidLayer"

    material: Material
    thickness: float
    name: str = ""
    description: str = ""

    def __post_init__(self):
        _check_material(self.material, "material")
        check_positive(self.thickness, "thickness")

    @property
    def fiber_density(self) -> Optional[float]:
        return None

    @property
    def resin_density(self) -> Optional[float]:
        return None

    @property
    def solid_density(self) -> float:
        return self.material.density

    def get_fiber_areal_wt(self, ctx: LayupContext) -> float:
        return 0.0

    def get_resin_areal_wt(self, ctx: LayupContext) -> float:
        return 0.0

    def get_solid_areal_wt(self, ctx: LayupContext) -> float:
        return self.material.density * self.thickness

    def get_vf(self, ctx: LayupContext) -> float:
        return 0.0

    def get_thickness(self, ctx: LayupContext) -> float:
        return self.thickness

    def get_laminate(self, ctx: LayupContext) -> Laminate:
        lamina = SolidLamina(self.material, self.thickness, name=self.name,
                             description=self.description)
        return _single_ply(lamina, self.name)


@dataclass(frozen=True)
class FiberLayer(Layer):
    """
    Dry fiber; the resin is supplied by the layup context.

    Parameters
    ----------
    fiber : Material
        The fiber
    faw : float
        Fiber areal weight [kg/m²]
    vf : float, optional
        Fiber volume fraction. Required unless a compaction model is given.
    is_random : bool, optional
        Random in-plane fiber orientation (chopped mat)
    compaction_model : CompactionModel, optional
        If given, vf follows the context's compaction pressure
    """

    type_tag: ClassVar[str] = "FiberLayer"

    fiber: Material
    faw: float
    vf: Optional[float] = None
    is_random: bool = False
    compaction_model: Optional[CompactionModel] = None
    name: str = ""
    description: str = ""

    def __post_init__(self):
        _check_material(self.fiber, "fiber")
        check_positive(self.faw, "faw")
        if self.compaction_model is None or self.vf is not None:
            vf = check_number(self.vf, "vf")
            if vf <= 0.0 or vf > 1.0:
                raise ValidationError("vf", f"must be greater than 0 and at most 1, found {vf}.")
        if not self.name:
            label = f"{self.faw * 1000:g} gsm of {self.fiber.name} @ vf = {self.vf}"
            object.__setattr__(self, "name", label)

    @property
    def is_compressible(self) -> bool:
        return self.compaction_model is not None

    @property
    def fiber_density(self) -> float:
        return self.fiber.density

    @property
    def resin_density(self) -> Optional[float]:
        return None

    @property
    def solid_density(self) -> Optional[float]:
        return None

    def get_fiber_areal_wt(self, ctx: LayupContext) -> float:
        return self.faw

    def get_resin_areal_wt(self, ctx: LayupContext) -> float:
        resin = _require_resin(ctx, "Fiber")
        return _resin_for_vf(self.faw, self.fiber.density, resin.density, self.get_vf(ctx))

    def get_solid_areal_wt(self, ctx: LayupContext) -> float:
        return 0.0

    def get_vf(self, ctx: LayupContext) -> float:
        if self.compaction_model is not None:
            pressure = ctx.compaction_pressure if ctx is not None else 0.0
            return self.compaction_model.vf_at_pressure(pressure)
        return self.vf

    def get_thickness(self, ctx: LayupContext) -> float:
        return self.faw / (self.fiber.density * self.get_vf(ctx))

    def get_laminate(self, ctx: LayupContext) -> Laminate:
        resin = _require_resin(ctx, "Fiber")
        lamina = CompositeLamina(
            fiber=self.fiber,
            resin=resin,
            vf=self.get_vf(ctx),
            faw=self.faw,
            is_random=self.is_random,
            name=self.name,
            description=self.description,
        )
        return _single_ply(lamina, self.name)


@dataclass(frozen=True)
class PrepregLayer(Layer):
    """
    A layer pre-impregnated with its own resin.

    Final resin content is ``resin_content - resin_flow`` as a mass fraction
    of the cured layer.

    Parameters
    ----------
    layer : Layer
        The reinforcement
    resin : Material
        The prepreg resin, overrides the context resin
    resin_content : float
        As-purchased resin mass fraction
    resin_flow : float, optional
        Resin mass fraction lost during molding, must be below resin_content
    """

    type_tag: ClassVar[str] = "PrepregLayer"

    layer: Layer
    resin: Material
    resin_content: float
    resin_flow: float = 0.0
    name: str = ""
    description: str = ""

    def __post_init__(self):
        _check_layer(self.layer, "layer")
        _check_material(self.resin, "resin")
        check_fraction(self.resin_content, "resin_content")
        check_fraction(self.resin_flow, "resin_flow")
        if self.resin_flow >= self.resin_content:
            raise ValidationError("resin_flow", "must be less than resin content.")

    @property
    def fiber_density(self) -> Optional[float]:
        return self.layer.fiber_density

    @property
    def resin_density(self) -> float:
        return self.resin.density

    @property
    def solid_density(self) -> Optional[float]:
        return self.layer.solid_density

    def _context(self, ctx: Optional[LayupContext]) -> LayupContext:
        return replace(ctx if ctx is not None else LayupContext(), resin=self.resin)

    def get_fiber_areal_wt(self, ctx: LayupContext) -> float:
        return self.layer.get_fiber_areal_wt(self._context(ctx))

    def get_resin_areal_wt(self, ctx: LayupContext) -> float:
        rc = self.resin_content - self.resin_flow
        return rc * self.get_fiber_areal_wt(ctx) / (1.0 - rc)

    def get_solid_areal_wt(self, ctx: LayupContext) -> float:
        return self.layer.get_solid_areal_wt(self._context(ctx))

    def get_vf(self, ctx: LayupContext) -> float:
        faw = self.get_fiber_areal_wt(ctx)
        raw = self.get_resin_areal_wt(ctx)
        return vf_from_mf(self.fiber_density, self.resin_density, faw / (faw + raw))

    def get_thickness(self, ctx: LayupContext) -> float:
        thickness = self.get_fiber_areal_wt(ctx) / (self.fiber_density * self.get_vf(ctx))
        saw = self.get_solid_areal_wt(ctx)
        if saw > 0.0:
            thickness += saw / self.solid_density
        return thickness

    def contains(self, target) -> bool:
        return target is self or self.layer.contains(target)

    def get_laminate(self, ctx: LayupContext) -> Laminate:
        prepreg_ctx = self._context(ctx)
        # Dry fiber takes the vf set by the resin content
        layer = _set_fiber_vf(self.layer, self.get_vf(ctx))
        return layer.get_laminate(prepreg_ctx)


@dataclass(frozen=True)
class ReleaseLayer(Layer):
    """
    Separation between an inner and an outer laminate.

    Physically it is the wrapped layer; the release marks where the outer
    laminate can come off.
    """

    type_tag: ClassVar[str] = "ReleaseLayer"

    layer: Layer
    name: str = ""
    description: str = ""

    def __post_init__(self):
        _check_layer(self.layer, "layer")

    @property
    def fiber_density(self) -> Optional[float]:
        return self.layer.fiber_density

    @property
    def resin_density(self) -> Optional[float]:
        return self.layer.resin_density

    @property
    def solid_density(self) -> Optional[float]:
        return self.layer.solid_density

    @property
    def is_compressible(self) -> bool:
        return self.layer.is_compressible

    def get_fiber_areal_wt(self, ctx: LayupContext) -> float:
        return self.layer.get_fiber_areal_wt(ctx)

    def get_resin_areal_wt(self, ctx: LayupContext) -> float:
        return self.layer.get_resin_areal_wt(ctx)

    def get_solid_areal_wt(self, ctx: LayupContext) -> float:
        return self.layer.get_solid_areal_wt(ctx)

    def get_vf(self, ctx: LayupContext) -> float:
        return self.layer.get_vf(ctx)

    def get_thickness(self, ctx: LayupContext) -> float:
        return self.layer.get_thickness(ctx)

    def contains(self, target) -> bool:
        return target is self or self.layer.contains(target)

    def get_laminate(self, ctx: LayupContext) -> Laminate:
        return self.layer.get_laminate(ctx)


@dataclass(frozen=True)
class FabricLayer(Layer):
    """
    A collection of layers at angles, stitched or woven together.

    Parameters
    ----------
    layers : tuple of Layer
        Sub-layers from inside to outside
    angles : tuple of float, optional
        Angle of each sub-layer [degrees], default all zero
    orientations : tuple of Orientation, optional
        Orientation of each sub-layer, default all upright
    weave_type : WeaveType, optional
        Anything but NONE smears the laminate properties through the thickness
    """

    type_tag: ClassVar[str] = "FabricLayer"

    layers: Tuple[Layer, ...]
    angles: Optional[Tuple[float, ...]] = None
    orientations: Optional[Tuple[Orientation, ...]] = None
    weave_type: WeaveType = WeaveType.NONE
    name: str = ""
    description: str = ""

    def __post_init__(self):
        layers = tuple(self.layers)
        if not layers:
            raise ValidationError("layers", "a fabric needs at least one layer.")
        for layer in layers:
            _check_layer(layer, "layers")

        angles = self.angles if self.angles is not None else (0.0,) * len(layers)
        angles = tuple(check_number(a, "angles") for a in angles)
        if len(angles) != len(layers):
            raise ValidationError("angles", "the number of angles does not match the number of layers.")

        orientations = self.orientations
        if orientations is None:
            orientations = (Orientation.UPRIGHT,) * len(layers)
        orientations = tuple(Orientation(o) for o in orientations)
        if len(orientations) != len(layers):
            raise ValidationError(
                "orientations", "the number of orientations does not match the number of layers."
            )

        object.__setattr__(self, "layers", layers)
        object.__setattr__(self, "angles", angles)
        object.__setattr__(self, "orientations", orientations)
        object.__setattr__(self, "weave_type", WeaveType(self.weave_type))

    @property
    def is_woven(self) -> bool:
        return self.weave_type is not WeaveType.NONE

    @property
    def is_compressible(self) -> bool:
        return any(layer.is_compressible for layer in self.layers)

    @property
    def fiber_density(self) -> Optional[float]:
        ctx = LayupContext()
        faw = 0.0
        volume = 0.0
        for layer in self.layers:
            layer_faw = layer.get_fiber_areal_wt(ctx)
            if layer_faw > 0.0:
                faw += layer_faw
                volume += layer_faw / layer.fiber_density
        return faw / volume if volume > 0.0 else None

    @property
    def resin_density(self) -> Optional[float]:
        return None

    @property
    def solid_density(self) -> Optional[float]:
        ctx = LayupContext()
        saw = 0.0
        volume = 0.0
        for layer in self.layers:
            layer_saw = layer.get_solid_areal_wt(ctx)
            if layer_saw > 0.0:
                saw += layer_saw
                volume += layer_saw / layer.solid_density
        return saw / volume if volume > 0.0 else None

    def get_fiber_areal_wt(self, ctx: LayupContext) -> float:
        return sum(layer.get_fiber_areal_wt(ctx) for layer in self.layers)

    def get_resin_areal_wt(self, ctx: LayupContext) -> float:
        return sum(layer.get_resin_areal_wt(ctx) for layer in self.layers)

    def get_solid_areal_wt(self, ctx: LayupContext) -> float:
        return sum(layer.get_solid_areal_wt(ctx) for layer in self.layers)

    def get_vf(self, ctx: LayupContext) -> float:
        """Thickness weighted average of the sub-layers."""
        weighted = 0.0
        thickness = 0.0
        for layer in self.layers:
            t = layer.get_thickness(ctx)
            weighted += layer.get_vf(ctx) * t
            thickness += t
        return weighted / thickness

    def get_thickness(self, ctx: LayupContext) -> float:
        return sum(layer.get_thickness(ctx) for layer in self.layers)

    def contains(self, target) -> bool:
        return target is self or any(layer.contains(target) for layer in self.layers)

    def get_laminate(self, ctx: LayupContext) -> Laminate:
        laminate = Laminate(is_woven=self.is_woven, name=self.name, description=self.description)
        layer_ctx = ctx
        # outside to inside so each layer sees its own diameter
        for layer, angle, orientation in reversed(list(zip(self.layers, self.angles, self.orientations))):
            sub = layer.get_laminate(layer_ctx)
            laminate = laminate.add_ply_at(0, sub, angle, orientation)
            layer_ctx = replace(layer_ctx, od=layer_ctx.od - 2.0 * sub.thickness)
        return laminate


@dataclass(frozen=True)
class BraidedLayer(Layer):
    """
    Tubular triaxial braid whose properties vary with diameter.

    As the braid is expanded from its as-braided diameter Do the bias angle
    opens, the bias fiber areal weight drops and the axial fibers spread:

        A = asin(D/Do·sin(Ao))
        Faw_biax = Fawo_biax·cos(Ao)·sin(Ao) / (cos(A)·sin(A))
        Faw_axial = Fawo_axial·Do/D

    vf scales with the areal weight until the braid jams, then rises more
    slowly and is capped at ``braid_vfmax``. All fibers share one vf.

    Parameters
    ----------
    biax_fibers : tuple of Material
        Bias fibers
    biax_faws : tuple of float
        As-braided areal weight of each bias fiber, both directions [kg/m²]
    braid_diameter : float
        As-braided diameter [m]
    biax_angle : float, optional
        As-braided bias angle [degrees], default 45
    braid_vf : float, optional
        As-braided vf, default 0.375
    axial_fibers : tuple of Material, optional
        Axial fibers
    axial_faws : tuple of float, optional
        As-braided areal weight of each axial fiber [kg/m²]
    braid_vfj : float, optional
        vf at which the braid jams, default 0.55
    braid_vfmax : float, optional
        Maximum possible vf, default 0.67
    braid_packing_factor : float, optional
        Fraction of the vf increase kept after jamming, default 0.375
    """

    type_tag: ClassVar[str] = "BraidedLayer"

    biax_fibers: Tuple[Material, ...]
    biax_faws: Tuple[float, ...]
    braid_diameter: float
    biax_angle: float = 45.0
    braid_vf: float = 0.375
    axial_fibers: Tuple[Material, ...] = ()
    axial_faws: Tuple[float, ...] = ()
    braid_vfj: float = 0.55
    braid_vfmax: float = 0.67
    braid_packing_factor: float = 0.375
    name: str = "Untitled Braid"
    description: str = "Braided layer."

    def __post_init__(self):
        for fibers_field, faws_field in (("biax_fibers", "biax_faws"), ("axial_fibers", "axial_faws")):
            fibers = tuple(getattr(self, fibers_field))
            faws = tuple(check_positive(f, faws_field) for f in getattr(self, faws_field))
            if len(fibers) != len(faws):
                raise ValidationError(faws_field, f"needs one areal weight per entry of {fibers_field}.")
            for fiber in fibers:
                _check_material(fiber, fibers_field)
            object.__setattr__(self, fibers_field, fibers)
            object.__setattr__(self, faws_field, faws)
        if not self.biax_fibers:
            raise ValidationError("biax_fibers", "a braid needs at least one bias fiber.")
        check_positive(self.braid_diameter, "braid_diameter")
        angle = check_number(self.biax_angle, "biax_angle")
        if angle <= 0.0 or angle >= 90.0:
            raise ValidationError("biax_angle", f"must be between 0 and 90 degrees, found {angle}.")
        for name in ("braid_vf", "braid_vfj", "braid_vfmax", "braid_packing_factor"):
            check_fraction(getattr(self, name), name)
        check_positive(self.braid_vf, "braid_vf")

    # -- as-braided values ----------------------------------------------------

    @property
    def biax_fawo(self) -> float:
        return sum(self.biax_faws)

    @property
    def axial_fawo(self) -> float:
        return sum(self.axial_faws)

    @property
    def fawo(self) -> float:
        return self.biax_fawo + self.axial_fawo

    @property
    def fiber_density(self) -> float:
        faws = self.biax_faws + self.axial_faws
        fibers = self.biax_fibers + self.axial_fibers
        volume = sum(faw / fiber.density for faw, fiber in zip(faws, fibers))
        return sum(faws) / volume

    @property
    def resin_density(self) -> Optional[float]:
        return None

    @property
    def solid_density(self) -> Optional[float]:
        return None

    # -- diameter dependent values --------------------------------------------

    def get_biax_angle(self, diameter: float) -> float:
        """Bias angle [degrees] at ``diameter``."""
        ratio = diameter / self.braid_diameter * math.sin(math.radians(self.biax_angle))
        if ratio >= 1.0:
            raise ValueError(
                f"Braid cannot expand to a diameter of {diameter:.6g} m "
                f"(braided at {self.braid_diameter:.6g} m, {self.biax_angle} deg)"
            )
        return math.degrees(math.asin(ratio))

    def get_biax_faw(self, diameter: float) -> float:
        a = math.radians(self.get_biax_angle(diameter))
        ao = math.radians(self.biax_angle)
        return self.biax_fawo * (math.cos(ao) * math.sin(ao)) / (math.cos(a) * math.sin(a))

    def get_axial_faw(self, diameter: float) -> float:
        return self.axial_fawo * self.braid_diameter / diameter

    def get_faw(self, diameter: float) -> float:
        return self.get_biax_faw(diameter) + self.get_axial_faw(diameter)

    def get_vf_at_diameter(self, diameter: float) -> float:
        vf = self.braid_vf * self.get_faw(diameter) / self.fawo
        # jammed braids thicken instead of compacting
        if vf > self.braid_vfj:
            vf = self.braid_packing_factor * vf + (1.0 - self.braid_packing_factor) * self.braid_vfj
        return min(vf, self.braid_vfmax)

    def get_thickness_at_diameter(self, diameter: float) -> float:
        return self.get_faw(diameter) / (self.get_vf_at_diameter(diameter) * self.fiber_density)

    def dia_from_od(self, od: float) -> float:
        """Nominal braid diameter (od - thickness), iterated three times."""
        d = od
        for _ in range(3):
            d = od - self.get_thickness_at_diameter(d)
        return d

    def dia_from_id(self, inside_diameter: float) -> float:
        """Nominal braid diameter (id + thickness), iterated three times."""
        d = inside_diameter
        for _ in range(3):
            d = inside_diameter + self.get_thickness_at_diameter(d)
        return d

    # -- layer interface ------------------------------------------------------

    def get_fiber_areal_wt(self, ctx: LayupContext) -> float:
        return self.get_faw(self.dia_from_od(ctx.od))

    def get_resin_areal_wt(self, ctx: LayupContext) -> float:
        resin = _require_resin(ctx, "Braided")
        return _resin_for_vf(self.get_fiber_areal_wt(ctx), self.fiber_density,
                             resin.density, self.get_vf(ctx))

    def get_solid_areal_wt(self, ctx: LayupContext) -> float:
        return 0.0

    def get_vf(self, ctx: LayupContext) -> float:
        return self.get_vf_at_diameter(self.dia_from_od(ctx.od))

    def get_thickness(self, ctx: LayupContext) -> float:
        return self.get_thickness_at_diameter(self.dia_from_od(ctx.od))

    def get_laminate(self, ctx: LayupContext) -> Laminate:
        """
        Three-layer laminate: lower bias, axial, upper bias.

        Each bias fiber gives a +A and a -A ply in both bias laminates, each
        carrying a quarter of that fiber's areal weight. The bias and axial
        laminates are woven.
        """
        resin = _require_resin(ctx, "Braided")
        d = self.dia_from_od(ctx.od)
        vf = self.get_vf_at_diameter(d)
        angle = self.get_biax_angle(d)
        biax_ratio = self.get_biax_faw(d) / self.biax_fawo
        logger.debug("Braid at od=%.6g: d=%.6g, angle=%.3f, vf=%.4f", ctx.od, d, angle, vf)

        lower = Laminate(is_woven=True, name=f"{self.name} lower bias")
        upper = Laminate(is_woven=True, name=f"{self.name} upper bias")
        for fiber, faw in zip(self.biax_fibers, self.biax_faws):
            ply = CompositeLamina(fiber, resin, vf, faw * biax_ratio / 4.0)
            lower = lower.add_ply(ply, angle).add_ply(ply, -angle)
            upper = upper.add_ply(ply, angle).add_ply(ply, -angle)

        laminate = Laminate(name=self.name, description=self.description).add_ply(lower)
        if self.axial_fibers:
            axial = Laminate(is_woven=True, name=f"{self.name} axial")
            for fiber, faw in zip(self.axial_fibers, self.axial_faws):
                ply = CompositeLamina(fiber, resin, vf, faw * self.braid_diameter / d)
                axial = axial.add_ply(ply, 0.0)
            laminate = laminate.add_ply(axial)
        return laminate.add_ply(upper)
