"""
Object graph serialization.

Materials, laminae, laminates, layers and tubes are written as an arena of
plain records keyed by id:

    root: '1'
    objects:
      '1': {type: FabricLayer, layers: [{$ref: '2'}, {$ref: '2'}], ...}
      '2': {type: FiberLayer, fiber: {$ref: '3'}, faw: 0.15, ...}
      '3': {type: PlanarIso23, name: Carbon Fiber, ...}

Every object appears once, so two layers sharing one material still share
it after decoding. Small value objects (``Ply``) are written inline. The
decoder dispatches on the ``type`` tag through a fixed table and rejects
reference cycles.
"""

import logging
import numbers
from dataclasses import MISSING, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Set, Union

import yaml

from lpt_tube.core.errors import ValidationError
from lpt_tube.core.laminate import CompositeLamina, Laminate, Ply, SolidLamina
from lpt_tube.core.layup import (
    BraidedLayer,
    CompactionModel,
    FabricLayer,
    FiberLayer,
    PrepregLayer,
    ReleaseLayer,
    SolidLayer,
)
from lpt_tube.core.material import MATERIAL_TYPES
from lpt_tube.tube.molded_tube import MoldedTube
from lpt_tube.tube.plyspec import PlySpec
from lpt_tube.tube.profile import Profile

logger = logging.getLogger(__name__)

REF = "$ref"

TYPE_DECODERS = dict(MATERIAL_TYPES)
TYPE_DECODERS.update({
    "SolidLamina": SolidLamina,
    "CompositeLamina": CompositeLamina,
    "Laminate": Laminate,
    "CompactionModel": CompactionModel,
    "SolidLayer": SolidLayer,
    "FiberLayer": FiberLayer,
    "PrepregLayer": PrepregLayer,
    "ReleaseLayer": ReleaseLayer,
    "FabricLayer": FabricLayer,
    "BraidedLayer": BraidedLayer,
    "Profile": Profile,
    "PlySpec": PlySpec,
    "MoldedTube": MoldedTube,
})

# Written inline instead of as arena entries
INLINE_TYPES = {"Ply": Ply}


def _tag(obj) -> str:
    if isinstance(obj, Ply):
        return "Ply"
    return getattr(obj, "type_tag", None)


class _Encoder:
    def __init__(self):
        self.objects: Dict[str, Dict[str, Any]] = {}
        self.ids: Dict[int, str] = {}

    def ref(self, obj) -> Dict[str, str]:
        key = self.ids.get(id(obj))
        if key is None:
            key = str(len(self.ids) + 1)
            self.ids[id(obj)] = key
            self.objects[key] = self.record(obj)
        return {REF: key}

    def record(self, obj) -> Dict[str, Any]:
        record = {"type": _tag(obj)}
        for f in fields(obj):
            record[f.name] = self.value(getattr(obj, f.name))
        return record

    def value(self, value):
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, bool) or value is None or isinstance(value, str):
            return value
        if isinstance(value, numbers.Integral):
            return int(value)
        if isinstance(value, numbers.Real):
            return float(value)
        if isinstance(value, (list, tuple)):
            return [self.value(v) for v in value]
        tag = _tag(value)
        if tag in INLINE_TYPES:
            return self.record(value)
        if tag in TYPE_DECODERS:
            return self.ref(value)
        raise TypeError(f"Cannot encode object of type {type(value).__name__}")


def encode(obj) -> Dict[str, Any]:
    """
    Encode an object graph as an arena of records.

    Parameters
    ----------
    obj : object
        Any material, lamina, laminate, layer, profile, ply spec or tube.

    Returns
    -------
    dict
        ``{"root": id, "objects": {id: record}}`` built from plain values.
    """
    if _tag(obj) not in TYPE_DECODERS:
        raise TypeError(f"Cannot encode object of type {type(obj).__name__}")
    encoder = _Encoder()
    root = encoder.ref(obj)[REF]
    logger.debug("Encoded %d objects", len(encoder.objects))
    return {"root": root, "objects": encoder.objects}


class _Decoder:
    def __init__(self, objects: Mapping[str, Mapping[str, Any]]):
        self.objects = objects
        self.built: Dict[str, Any] = {}
        self.in_progress: Set[str] = set()

    def resolve(self, key) -> Any:
        key = str(key)
        if key in self.built:
            return self.built[key]
        if key in self.in_progress:
            raise ValidationError(REF, f"object '{key}' contains itself.")
        if key not in self.objects:
            raise ValidationError(REF, f"unknown object id '{key}'.")
        self.in_progress.add(key)
        obj = self.build(self.objects[key], TYPE_DECODERS)
        self.in_progress.discard(key)
        self.built[key] = obj
        return obj

    def build(self, record: Mapping[str, Any], decoders) -> Any:
        tag = record.get("type")
        if tag not in decoders:
            raise ValidationError("type", f"unknown type '{tag}'.")
        cls = decoders[tag]
        kwargs = {}
        for f in fields(cls):
            if f.name in record:
                kwargs[f.name] = self.value(record[f.name])
            elif f.default is MISSING:
                raise ValidationError(f.name, f"missing from {tag} record.")
        return cls(**kwargs)

    def value(self, value):
        if isinstance(value, list):
            return tuple(self.value(v) for v in value)
        if isinstance(value, Mapping):
            if REF in value:
                return self.resolve(value[REF])
            if value.get("type") in INLINE_TYPES:
                return self.build(value, INLINE_TYPES)
            return {k: self.value(v) for k, v in value.items()}
        return value


def decode(data: Mapping[str, Any]) -> Any:
    """
    Rebuild an object graph written by ``encode``.

    Raises
    ------
    ValidationError
        For unknown tags, missing fields, dangling references or cycles.
    """
    if not isinstance(data, Mapping) or "root" not in data:
        raise ValidationError("root", "missing.")
    objects = data.get("objects")
    if not isinstance(objects, Mapping):
        raise ValidationError("objects", "missing.")
    objects = {str(k): v for k, v in objects.items()}
    return _Decoder(objects).resolve(data["root"])


def save_yaml(obj, yaml_path: Union[str, Path]) -> None:
    """Save an object graph to a YAML file."""
    with open(yaml_path, "w") as f:
        yaml.safe_dump(encode(obj), f, default_flow_style=False, sort_keys=False)


def load_yaml(yaml_path: Union[str, Path]) -> Any:
    """Load an object graph from a YAML file written by ``save_yaml``."""
    yaml_path = Path(yaml_path)
    if not yaml_path.exists():
        raise FileNotFoundError(f"File not found: {yaml_path}")
    with open(yaml_path, "r") as f:
        data = yaml.safe_load(f)
    return decode(data)
