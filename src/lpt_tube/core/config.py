"""
Tube Design Configuration Module.

This module provides a YAML-based configuration system for molded tubes,
allowing users to define materials, layers, a profile and a ply schedule
without writing Python code.

Example YAML configuration:
    name: "Example barrel"
    resin: epoxy_resin

    materials:
      carbon_im:
        type: PlanarIso23
        density: 1790.0
        E1: 290.0e9
        E2: 15.0e9
        G12: 7.0e9
        PR12: 0.25
        PR23: 0.3

    layers:
      im_uni:
        type: FiberLayer
        fiber: carbon_im
        faw: 0.15
        vf: 0.59

    profile:
      x: [0.0, 0.84]
      od: [0.0566, 0.0566]

    plies:
      - layer: lam_4
        start: 0.0
        end: 0.84

Materials and layers are referenced by name. Names not defined in the file
are looked up in the built-in bat catalog (``lpt_tube.tube.bat_laminates``).
"""

import logging
from collections.abc import Mapping as MappingABC
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import yaml

from lpt_tube.core.errors import ValidationError
from lpt_tube.core.layup import (
    BraidedLayer,
    CompactionModel,
    FabricLayer,
    FiberLayer,
    Layer,
    PrepregLayer,
    ReleaseLayer,
    SolidLayer,
)
from lpt_tube.core.material import MATERIAL_CLASSES, Material, build_material
from lpt_tube.tube.bat_laminates import BAT_LAYERS, BAT_MATERIALS
from lpt_tube.tube.molded_tube import MoldedTube
from lpt_tube.tube.plyspec import PlySpec
from lpt_tube.tube.profile import Profile

logger = logging.getLogger(__name__)

LAYER_TYPES = {
    cls.type_tag: cls
    for cls in (SolidLayer, FiberLayer, PrepregLayer, ReleaseLayer, FabricLayer, BraidedLayer)
}

# Layer fields holding references to other entries
MATERIAL_FIELDS = ("material", "fiber", "resin")
MATERIAL_LIST_FIELDS = ("biax_fibers", "axial_fibers")
LAYER_FIELDS = ("layer",)
LAYER_LIST_FIELDS = ("layers",)


# =============================================================================
# Layer records
# =============================================================================


def _lookup(value, registry: Optional[Mapping[str, Any]], kind: str, field_name: str,
            build: Callable[[Mapping[str, Any]], Any], classes) -> Any:
    if isinstance(value, classes):
        return value
    if isinstance(value, str):
        if registry is None or value not in registry:
            raise ValidationError(field_name, f"unknown {kind} '{value}'.")
        return registry[value]
    if isinstance(value, Mapping):
        return build(value)
    raise ValidationError(field_name, f"missing or not a {kind}.")


def build_layer(
    record: Mapping[str, Any],
    materials: Optional[Mapping[str, Material]] = None,
    layers: Optional[Mapping[str, Layer]] = None,
) -> Layer:
    """
    Build a layer from a configuration record.

    Parameters
    ----------
    record : mapping
        Must hold a ``type`` tag (one of ``LAYER_TYPES``) plus the fields of
        that layer. Material and layer fields may be names, nested records
        or objects.
    materials : mapping, optional
        Materials by name
    layers : mapping, optional
        Layers by name

    Raises
    ------
    ValidationError
        If the tag is unknown, a reference cannot be resolved or a field is
        missing or invalid.

    Examples
    --------
    >>> layer = build_layer(
    ...     {"type": "FiberLayer", "fiber": "carbon_fiber", "faw": 0.15, "vf": 0.59},
    ...     materials=BAT_MATERIALS,
    ... )
    """
    tag = record.get("type")
    if tag not in LAYER_TYPES:
        raise ValidationError("type", f"unknown layer type '{tag}'.")
    cls = LAYER_TYPES[tag]

    def material(value, name):
        return _lookup(value, materials, "material", name,
                       lambda r: build_material(r, materials), MATERIAL_CLASSES)

    def layer(value, name):
        return _lookup(value, layers, "layer", name,
                       lambda r: build_layer(r, materials, layers), Layer)

    kwargs = {}
    for f in fields(cls):
        if f.name not in record:
            continue
        value = record[f.name]
        if f.name in MATERIAL_FIELDS:
            value = material(value, f.name)
        elif f.name in MATERIAL_LIST_FIELDS:
            value = tuple(material(v, f.name) for v in value)
        elif f.name in LAYER_FIELDS:
            value = layer(value, f.name)
        elif f.name in LAYER_LIST_FIELDS:
            value = tuple(layer(v, f.name) for v in value)
        elif f.name == "compaction_model" and isinstance(value, Mapping):
            value = CompactionModel(**value)
        elif isinstance(value, list):
            value = tuple(value)
        kwargs[f.name] = value

    try:
        return cls(**kwargs)
    except TypeError as e:
        raise ValidationError(tag, f"missing required fields ({e}).") from None


class _Registry(MappingABC):
    """
    Named entries built on first access.

    Entries may refer to each other in any order; a chain of references
    that comes back to itself is rejected.
    """

    def __init__(self, kind: str, records: Mapping[str, Mapping[str, Any]],
                 build: Callable[[str, Mapping[str, Any]], Any],
                 fallback: Mapping[str, Any]):
        self.kind = kind
        self.records = records
        self.build = build
        self.fallback = fallback
        self.built: Dict[str, Any] = {}
        self.in_progress = set()

    def __getitem__(self, name: str) -> Any:
        if name in self.built:
            return self.built[name]
        if name not in self.records:
            return self.fallback[name]
        if name in self.in_progress:
            raise ValidationError(name, f"self-referential {self.kind} composition.")
        self.in_progress.add(name)
        try:
            record = dict(self.records[name])
            record.setdefault("name", name)
            self.built[name] = self.build(name, record)
        finally:
            self.in_progress.discard(name)
        return self.built[name]

    def __contains__(self, name) -> bool:
        return name in self.records or name in self.fallback

    def __iter__(self):
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)


# =============================================================================
# Configuration Data Classes
# =============================================================================


@dataclass
class ProfileConfig:
    """Outside diameter at a list of axial positions."""

    x: List[float]
    od: List[float]

    def __post_init__(self):
        if len(self.x) != len(self.od):
            raise ValueError(
                f"Profile has {len(self.x)} positions but {len(self.od)} diameters"
            )
        if len(self.x) < 2:
            raise ValueError("Profile needs at least two points")


@dataclass
class PlyConfig:
    """Placement of a named layer along the tube."""

    layer: str
    start: float
    end: float
    width_at_start: float = 1.0
    width_at_end: float = 1.0
    taper_start: Optional[float] = None
    taper_end: Optional[float] = None
    angle: float = 0.0
    orientation: str = "Upright"
    num_pieces: float = 1.0
    clocking: float = 0.0

    def __post_init__(self):
        if not self.layer:
            raise ValueError("Ply requires a layer name")
        if self.end <= self.start:
            raise ValueError(f"Ply end ({self.end}) must be greater than start ({self.start})")

    def to_ply_spec(self, layers: Mapping[str, Layer]) -> PlySpec:
        if self.layer not in layers:
            raise ValidationError("layer", f"unknown layer '{self.layer}'.")
        return PlySpec(
            layer=layers[self.layer],
            start=self.start,
            end=self.end,
            width_at_start=self.width_at_start,
            width_at_end=self.width_at_end,
            taper_start=self.taper_start,
            taper_end=self.taper_end,
            angle=self.angle,
            orientation=self.orientation,
            num_pieces=self.num_pieces,
            clocking=self.clocking,
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {"layer": self.layer, "start": self.start, "end": self.end}
        defaults = PlyConfig(layer=self.layer, start=self.start, end=self.end)
        for name in ("width_at_start", "width_at_end", "taper_start", "taper_end",
                     "angle", "orientation", "num_pieces", "clocking"):
            value = getattr(self, name)
            if value != getattr(defaults, name):
                result[name] = value
        return result


@dataclass
class ReportConfig:
    """What to report."""

    positions: Optional[List[float]] = None
    integration_points: int = 101

    def __post_init__(self):
        if self.integration_points < 3:
            raise ValueError(
                f"Integration needs at least 3 points: {self.integration_points}"
            )


@dataclass
class TubeDesignConfig:
    """Complete molded tube design."""

    resin: str
    profile: ProfileConfig
    plies: List[PlyConfig] = field(default_factory=list)
    materials: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    layers: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    name: str = "Tube"
    description: str = ""
    compaction_pressure: float = 0.0
    report: ReportConfig = field(default_factory=ReportConfig)

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> "TubeDesignConfig":
        """Load configuration from YAML file.

        Parameters
        ----------
        yaml_path : str or Path
            Path to the YAML configuration file.

        Returns
        -------
        TubeDesignConfig
            Validated configuration object.

        Raises
        ------
        FileNotFoundError
            If the YAML file does not exist.
        ValueError
            If the configuration is invalid.
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        with open(yaml_path, "r") as f:
            data = yaml.safe_load(f)

        config = cls.from_dict(data or {})
        logger.info("Loaded tube design '%s' from %s", config.name, yaml_path)
        return config

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TubeDesignConfig":
        """Create configuration from dictionary.

        Parameters
        ----------
        data : dict
            Configuration dictionary.

        Returns
        -------
        TubeDesignConfig
            Validated configuration object.
        """
        if not data.get("resin"):
            raise ValueError("Tube design requires a resin")

        profile_data = data.get("profile", {})
        profile_config = ProfileConfig(
            x=list(profile_data.get("x", [])),
            od=list(profile_data.get("od", [])),
        )

        plies = [PlyConfig(**ply) for ply in data.get("plies", [])]

        report_data = data.get("report") or {}
        report_config = ReportConfig(
            positions=report_data.get("positions"),
            integration_points=report_data.get("integration_points", 101),
        )

        return cls(
            resin=data["resin"],
            profile=profile_config,
            plies=plies,
            materials=dict(data.get("materials") or {}),
            layers=dict(data.get("layers") or {}),
            name=data.get("name", "Tube"),
            description=data.get("description", ""),
            compaction_pressure=data.get("compaction_pressure", 0.0),
            report=report_config,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for serialization."""
        result = {
            "name": self.name,
            "description": self.description,
            "resin": self.resin,
            "compaction_pressure": self.compaction_pressure,
            "materials": self.materials,
            "layers": self.layers,
            "profile": {
                "x": list(self.profile.x),
                "od": list(self.profile.od),
            },
            "plies": [ply.to_dict() for ply in self.plies],
            "report": {
                "integration_points": self.report.integration_points,
            },
        }
        if self.report.positions is not None:
            result["report"]["positions"] = list(self.report.positions)
        return result

    def save_yaml(self, yaml_path: Union[str, Path]) -> None:
        """Save configuration to YAML file.

        Parameters
        ----------
        yaml_path : str or Path
            Path to the output YAML file.
        """
        with open(yaml_path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    # -- building -------------------------------------------------------------

    def material_registry(self) -> Mapping[str, Material]:
        """Materials by name, built on first access."""
        registry = _Registry("material", self.materials, None, BAT_MATERIALS)
        registry.build = lambda name, record: build_material(record, registry)
        return registry

    def layer_registry(self, materials: Optional[Mapping[str, Material]] = None) -> Mapping[str, Layer]:
        """Layers by name, built on first access."""
        if materials is None:
            materials = self.material_registry()
        registry = _Registry("layer", self.layers, None, BAT_LAYERS)
        registry.build = lambda name, record: build_layer(record, materials, registry)
        return registry

    def build_tube(self) -> MoldedTube:
        """
        Build the molded tube described by this configuration.

        Raises
        ------
        ValidationError
            If a name cannot be resolved or a value is invalid.
        """
        materials = self.material_registry()
        layers = self.layer_registry(materials)
        if self.resin not in materials:
            raise ValidationError("resin", f"unknown material '{self.resin}'.")

        tube = MoldedTube(
            profile=Profile(tuple(self.profile.x), tuple(self.profile.od)),
            resin=materials[self.resin],
            compaction_pressure=self.compaction_pressure,
            name=self.name,
            description=self.description,
        )
        for ply in self.plies:
            tube = tube.add_layer(ply.to_ply_spec(layers))
        logger.debug("Built tube '%s' with %d plies", self.name, len(tube.ply_specs))
        return tube

    def validate(self) -> List[str]:
        """Validate the complete configuration.

        Returns
        -------
        list of str
            List of validation warnings (empty if all OK).
        """
        warnings = []

        if not self.plies:
            warnings.append("Tube has no plies")

        x_min, x_max = min(self.profile.x), max(self.profile.x)
        for i, ply in enumerate(self.plies):
            if ply.start < x_min or ply.end > x_max:
                warnings.append(
                    f"Ply {i} ({ply.layer}) extends outside the profile [{x_min}, {x_max}]"
                )

        used = {ply.layer for ply in self.plies}
        for name, record in self.layers.items():
            for key in LAYER_FIELDS + LAYER_LIST_FIELDS:
                value = record.get(key)
                if isinstance(value, str):
                    used.add(value)
                elif isinstance(value, list):
                    used.update(v for v in value if isinstance(v, str))
        for name in self.layers:
            if name not in used:
                warnings.append(f"Layer '{name}' is defined but never used")

        if self.report.positions is not None:
            outside = [x for x in self.report.positions if x < x_min or x > x_max]
            if outside:
                warnings.append(f"Report positions outside the profile: {outside}")

        return warnings

    def __str__(self) -> str:
        """Human-readable string representation."""
        lines = [
            "Tube Design Configuration",
            "=" * 40,
            f"Name: {self.name}",
            f"Resin: {self.resin}",
            f"Profile: {len(self.profile.x)} points, "
            f"x = {min(self.profile.x)} → {max(self.profile.x)} m, "
            f"OD = {min(self.profile.od)} → {max(self.profile.od)} m",
            f"Materials: {len(self.materials)} defined",
            f"Layers: {len(self.layers)} defined",
            f"Plies: {len(self.plies)}",
        ]
        for ply in self.plies:
            lines.append(f"  {ply.layer}: {ply.start} → {ply.end} m @ {ply.angle}°")
        if self.compaction_pressure:
            lines.append(f"Compaction pressure: {self.compaction_pressure} Pa")
        return "\n".join(lines)
