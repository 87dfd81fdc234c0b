from dataclasses import dataclass
from typing import ClassVar, Optional, Tuple

from lpt_tube.core.errors import (
    ProfileRangeError,
    ValidationError,
    check_number,
    check_positive,
)
from lpt_tube.core.helpers import interpolate_x, interpolate_y


@dataclass(frozen=True)
class Profile:
    """
    Outside diameter of a part along its length.

    Parameters
    ----------
    x_positions : tuple of float
        Strictly increasing axial positions [m]
    diameters : tuple of float
        Outside diameter at each position [m]
    """

    type_tag: ClassVar[str] = "Profile"

    x_positions: Tuple[float, ...]
    diameters: Tuple[float, ...]

    def __post_init__(self):
        xs = tuple(check_number(x, "x_positions") for x in self.x_positions)
        ods = tuple(check_positive(d, "diameters") for d in self.diameters)
        if len(xs) != len(ods):
            raise ValidationError("diameters", "different number of values in x and diameter arrays.")
        if len(xs) < 2:
            raise ValidationError("x_positions", "need at least two points to define a profile.")
        for i in range(1, len(xs)):
            if xs[i] <= xs[i - 1]:
                raise ValidationError("x_positions", "positions must be strictly increasing.")
        object.__setattr__(self, "x_positions", xs)
        object.__setattr__(self, "diameters", ods)

    @property
    def x_min(self) -> float:
        return self.x_positions[0]

    @property
    def x_max(self) -> float:
        return self.x_positions[-1]

    def get_od(self, x: float, extrapolate: bool = False) -> float:
        """
        Outside diameter at ``x``.

        Raises
        ------
        ProfileRangeError
            If ``x`` is outside the profile and ``extrapolate`` is False.
        """
        if not extrapolate and (x < self.x_min or x > self.x_max):
            raise ProfileRangeError(x, self.x_min, self.x_max)
        return interpolate_y(x, self.x_positions, self.diameters)

    def get_pos_for_od(self, od: float, x_min: Optional[float] = None,
                       x_max: Optional[float] = None) -> float:
        """
        First position where the profile reaches ``od``.

        Only the profile points inside [x_min, x_max] are searched.
        """
        points = [
            (x, d) for x, d in zip(self.x_positions, self.diameters)
            if (x_min is None or x_min <= x) and (x_max is None or x <= x_max)
        ]
        if len(points) < 2:
            raise ValueError("Need at least two points to define a profile")
        xs, ods = zip(*points)
        x = interpolate_x(od, xs, ods)
        if x is None:
            raise ValueError(f"Can't determine position for diameter = {od}")
        return x
