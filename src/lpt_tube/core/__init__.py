"""
Core module for lpt-tube.

Provides materials, laminae, laminates and layup layers.
"""

from .errors import EmptyLaminateError, ProfileRangeError, ValidationError
from .laminate import (
    CompositeLamina,
    Laminate,
    LaminateProperties,
    Orientation,
    Ply,
    SolidLamina,
    compute_Q,
    create_laminate_from_angles,
)
from .layup import (
    BraidedLayer,
    CompactionModel,
    FabricLayer,
    FiberLayer,
    Layer,
    LayupContext,
    PrepregLayer,
    ReleaseLayer,
    SolidLayer,
    WeaveType,
)
from .material import (
    FRPMaterial,
    IsotropicMaterial,
    OrthotropicMaterial,
    PlanarIso12Material,
    PlanarIso13Material,
    PlanarIso23Material,
    build_material,
)

__all__ = [
    "EmptyLaminateError",
    "ProfileRangeError",
    "ValidationError",
    "CompositeLamina",
    "Laminate",
    "LaminateProperties",
    "Orientation",
    "Ply",
    "SolidLamina",
    "compute_Q",
    "create_laminate_from_angles",
    "BraidedLayer",
    "CompactionModel",
    "FabricLayer",
    "FiberLayer",
    "Layer",
    "LayupContext",
    "PrepregLayer",
    "ReleaseLayer",
    "SolidLayer",
    "WeaveType",
    "FRPMaterial",
    "IsotropicMaterial",
    "OrthotropicMaterial",
    "PlanarIso12Material",
    "PlanarIso13Material",
    "PlanarIso23Material",
    "build_material",
]
