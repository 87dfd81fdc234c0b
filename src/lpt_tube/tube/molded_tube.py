"""
Molded Tube Module.

A molded tube is a profile (outside diameter along the length), a default
resin and a list of ply specifications stored from the inside out. At any
axial position the active plies resolve into a wall laminate, from which
the section properties, weight and inertia of the tube follow.
"""

import logging
import math
import sys
from dataclasses import dataclass, replace
from typing import Any, Callable, ClassVar, Dict, List, Optional, Tuple

import numpy as np

from lpt_tube.core.errors import ValidationError, check_non_negative
from lpt_tube.core.helpers import integrate
from lpt_tube.core.laminate import Laminate, LaminateProperties
from lpt_tube.core.layup import LayupContext
from lpt_tube.core.material import MATERIAL_CLASSES, Material
from lpt_tube.tube.bat_calcs import calculate_wall_compression
from lpt_tube.tube.plyspec import PlySpec
from lpt_tube.tube.profile import Profile

logger = logging.getLogger(__name__)

POSITION_EPS = sys.float_info.epsilon * 100.0


@dataclass(frozen=True)
class SectionProperties:
    """
    Cross-section properties of a tube at one axial position.

    Attributes
    ----------
    x : float
        Axial position [m]
    OD, ID, thickness : float
        Outside diameter, inside diameter and wall thickness [m]
    area : float
        Wall cross-section area [m²]
    I : float
        Second moment of area of the annulus [m⁴]
    ExI : float
        Beam bending stiffness [N·m²]
    ExfT3Div12, EyfT3Div12 : float
        Local flexural stiffness per unit width [N·m]
    wt_per_len : float
        Mass per unit length [kg/m]
    barrel_compression : float
        Wall barrel compression [lbf per 0.050"]
    laminate : Laminate
        The wall laminate
    laminate_properties : LaminateProperties or None
        None for an empty wall
    """

    x: float
    OD: float
    ID: float
    thickness: float
    area: float
    I: float
    ExI: float
    ExfT3Div12: float
    EyfT3Div12: float
    wt_per_len: float
    barrel_compression: float
    laminate: Laminate
    laminate_properties: Optional[LaminateProperties] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x": self.x,
            "OD": self.OD,
            "ID": self.ID,
            "thickness": self.thickness,
            "area": self.area,
            "I": self.I,
            "ExI": self.ExI,
            "ExfT3Div12": self.ExfT3Div12,
            "EyfT3Div12": self.EyfT3Div12,
            "wt_per_len": self.wt_per_len,
            "barrel_compression": self.barrel_compression,
            "ply_count": self.laminate.ply_count,
        }


@dataclass(frozen=True)
class MoldedTube:
    """
    Tube molded from ply specifications over a profile.

    Parameters
    ----------
    profile : Profile
        Outside diameter along the tube
    resin : Material
        Resin for all dry fiber layers
    ply_specs : tuple of PlySpec
        Plies from the inside out
    compaction_pressure : float, optional
        Molding pressure [Pa], used by compressible layers
    name, description : str, optional
        Labels

    Examples
    --------
    >>> profile = Profile((0.0, 0.8), (0.0566, 0.0566))
    >>> tube = MoldedTube(profile, epoxy).add_layer(PlySpec(lam_4, start=0.0, end=0.8))
    >>> tube.get_section_properties(0.4).thickness
    """

    type_tag: ClassVar[str] = "MoldedTube"

    profile: Profile
    resin: Material
    ply_specs: Tuple[PlySpec, ...] = ()
    compaction_pressure: float = 0.0
    name: str = ""
    description: str = ""

    def __post_init__(self):
        if not isinstance(self.profile, Profile):
            raise ValidationError("profile", "missing or not a profile.")
        if not isinstance(self.resin, MATERIAL_CLASSES):
            raise ValidationError("resin", "missing or not a material.")
        ply_specs = tuple(self.ply_specs)
        for spec in ply_specs:
            if not isinstance(spec, PlySpec):
                raise ValidationError("ply_specs", f"expected PlySpec, found {type(spec).__name__}.")
        check_non_negative(self.compaction_pressure, "compaction_pressure")
        object.__setattr__(self, "ply_specs", ply_specs)

    def add_layer_at(self, index: int, ply_spec: PlySpec) -> "MoldedTube":
        """New tube with ``ply_spec`` inserted at ``index`` (clamped)."""
        index = min(len(self.ply_specs), max(0, index))
        specs = list(self.ply_specs)
        specs.insert(index, ply_spec)
        return replace(self, ply_specs=tuple(specs))

    def add_layer(self, ply_spec: PlySpec) -> "MoldedTube":
        """New tube with ``ply_spec`` as the outermost ply."""
        return self.add_layer_at(len(self.ply_specs), ply_spec)

    @property
    def x_min(self) -> float:
        return self.profile.x_min

    @property
    def x_max(self) -> float:
        return self.profile.x_max

    def get_od(self, x: float, extrapolate: bool = False) -> float:
        return self.profile.get_od(x, extrapolate)

    def get_positions(self) -> List[float]:
        """
        Positions of interest for sampling the tube.

        Every ply end, the points just either side of it (inside the
        overall extent) and every profile point, sorted and unique.
        """
        xs = list(self.profile.x_positions)
        for spec in self.ply_specs:
            xs.extend((spec.start, spec.end))
        x_min, x_max = min(xs), max(xs)

        positions = set(self.profile.x_positions)
        for spec in self.ply_specs:
            if spec.start - POSITION_EPS > x_min:
                positions.add(spec.start - POSITION_EPS)
            positions.add(spec.start)
            positions.add(spec.end)
            if spec.end + POSITION_EPS < x_max:
                positions.add(spec.end + POSITION_EPS)
        return sorted(positions)

    def get_laminate(self, x: float) -> Laminate:
        """
        Wall laminate at ``x``, inside to outside.

        Plies are resolved from the outside in so each sees the diameter left
        by the plies over it, and inserted at the front of the laminate.
        """
        od = self.get_od(x)
        laminate = Laminate(name=f"{self.name} @ {x:g}")
        for spec in reversed(self.ply_specs):
            if not spec.is_active(x):
                continue
            ctx = LayupContext(od=od, resin=self.resin, compaction_pressure=self.compaction_pressure)
            sub = spec.layer.get_laminate(ctx)
            laminate = laminate.add_ply_at(0, sub, spec.angle, spec.orientation)
            od = od - 2.0 * sub.thickness
        logger.debug("Laminate at x=%g: %d plies, t=%.6g", x, laminate.ply_count, laminate.thickness)
        return laminate

    def get_section_properties(self, x: float) -> SectionProperties:
        """Cross-section properties at ``x``; an empty wall has zero stiffness and weight."""
        laminate = self.get_laminate(x)
        od = self.get_od(x)
        if not laminate.plies:
            return SectionProperties(
                x=x, OD=od, ID=od, thickness=0.0, area=0.0, I=0.0, ExI=0.0,
                ExfT3Div12=0.0, EyfT3Div12=0.0, wt_per_len=0.0,
                barrel_compression=0.0, laminate=laminate,
            )

        props = laminate.properties
        t = props.thickness
        inside = od - 2.0 * t
        area = math.pi / 4.0 * (od**2 - inside**2)
        I = math.pi / 64.0 * (od**4 - inside**4)
        # positive NA is outward from the mid-plane
        sign = 1.0 if props.NAx >= 0 else -1.0

        return SectionProperties(
            x=x,
            OD=od,
            ID=inside,
            thickness=t,
            area=area,
            I=I,
            ExI=props.Ex * (I + area * props.NAx**2 * sign),
            ExfT3Div12=props.Exf * t**3 / 12.0,
            EyfT3Div12=props.Eyf * t**3 / 12.0,
            wt_per_len=area * props.density,
            barrel_compression=calculate_wall_compression(od, props),
            laminate=laminate,
            laminate_properties=props,
        )

    def get_area(self, x: float) -> float:
        return self.get_section_properties(x).area

    def get_wt_per_len(self, x: float) -> float:
        return self.get_section_properties(x).wt_per_len

    def _limits(self, x_min: Optional[float], x_max: Optional[float]) -> Tuple[float, float]:
        return (self.x_min if x_min is None else x_min,
                self.x_max if x_max is None else x_max)

    @staticmethod
    def _from_left(fx: Callable[[float], float], x_max: float) -> Callable[[float], float]:
        """``fx`` with the upper limit sampled just inside, where plies ending there are active."""
        end = x_max - POSITION_EPS
        return lambda x: fx(min(x, end))

    def get_volume(self, x_min: Optional[float] = None, x_max: Optional[float] = None,
                   n: int = 101) -> float:
        """Wall volume between the limits [m³], defaults to the whole profile."""
        x_min, x_max = self._limits(x_min, x_max)
        return integrate(self._from_left(self.get_area, x_max), x_min, x_max, n)

    def get_weight(self, x_min: Optional[float] = None, x_max: Optional[float] = None,
                   n: int = 101) -> float:
        """Mass between the limits [kg]."""
        x_min, x_max = self._limits(x_min, x_max)
        return integrate(self._from_left(self.get_wt_per_len, x_max), x_min, x_max, n)

    def get_cog(self, x_min: Optional[float] = None, x_max: Optional[float] = None,
                n: int = 101) -> float:
        """Axial position of the center of gravity [m]."""
        x_min, x_max = self._limits(x_min, x_max)
        wt_per_len = self._from_left(self.get_wt_per_len, x_max)
        first_moment = integrate(lambda x: x * wt_per_len(x), x_min, x_max, n)
        return first_moment / self.get_weight(x_min, x_max, n)

    def get_moi(self, x_min: Optional[float] = None, x_max: Optional[float] = None,
                n: int = 101) -> float:
        """Mass moment of inertia about the center of gravity [kg·m²]."""
        x_min, x_max = self._limits(x_min, x_max)
        mass = self.get_weight(x_min, x_max, n)
        cog = self.get_cog(x_min, x_max, n)
        wt_per_len = self._from_left(self.get_wt_per_len, x_max)
        second_moment = integrate(lambda x: x * x * wt_per_len(x), x_min, x_max, n)
        return second_moment - mass * cog * cog

    def get_section_table(self, positions: Optional[List[float]] = None) -> np.ndarray:
        """
        Section properties sampled at ``positions`` (default ``get_positions``).

        Returns
        -------
        np.ndarray
            One row per position: x, OD, thickness, wt_per_len, ExI,
            barrel_compression
        """
        if positions is None:
            positions = [x for x in self.get_positions() if self.x_min <= x <= self.x_max]
        rows = []
        for x in positions:
            s = self.get_section_properties(x)
            rows.append([s.x, s.OD, s.thickness, s.wt_per_len, s.ExI, s.barrel_compression])
        return np.array(rows)
