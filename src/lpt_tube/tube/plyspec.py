import logging
from dataclasses import dataclass
from typing import ClassVar, Optional

from lpt_tube.core.errors import (
    ValidationError,
    check_non_negative,
    check_number,
    check_positive,
)
from lpt_tube.core.laminate import Orientation
from lpt_tube.core.layup import Layer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlySpec:
    """
    Placement of a layer along a tube.

    The width of the cut piece is constant at ``width_at_start`` up to
    ``taper_start``, changes linearly to ``width_at_end`` at ``taper_end``
    and stays constant to ``end``.

    Parameters
    ----------
    layer : Layer
        What is laid up
    start, end : float
        Axial extent [m], start < end
    width_at_start, width_at_end : float
        Width of one piece at either end [m]
    taper_start, taper_end : float, optional
        Extent of the width taper, default start and end
    angle : float
        Winding angle [degrees]
    orientation : Orientation
        Upright or flipped
    num_pieces : float
        Number of identical pieces around the circumference
    clocking : float
        Angular start position of the first piece [degrees]
    """

    type_tag: ClassVar[str] = "PlySpec"

    layer: Layer
    start: float = 0.0
    end: float = 1.0
    width_at_start: float = 1.0
    width_at_end: float = 1.0
    taper_start: Optional[float] = None
    taper_end: Optional[float] = None
    angle: float = 0.0
    orientation: Orientation = Orientation.UPRIGHT
    num_pieces: float = 1.0
    clocking: float = 0.0

    def __post_init__(self):
        if not isinstance(self.layer, Layer):
            raise ValidationError("layer", "a layer must be provided for the ply specification.")
        start = check_number(self.start, "start")
        end = check_number(self.end, "end")
        if end <= start:
            raise ValidationError("end", "end position must be greater than start position.")
        check_non_negative(self.width_at_start, "width_at_start")
        check_non_negative(self.width_at_end, "width_at_end")
        check_number(self.angle, "angle")
        check_number(self.clocking, "clocking")
        check_positive(self.num_pieces, "num_pieces")

        taper_start = start if self.taper_start is None else check_number(self.taper_start, "taper_start")
        taper_end = end if self.taper_end is None else check_number(self.taper_end, "taper_end")
        if taper_start < start:
            logger.warning("Taper start %g less than start position %g", taper_start, start)
            taper_start = start
        if taper_end < taper_start:
            logger.warning("Taper end %g less than taper start %g", taper_end, taper_start)
            taper_end = end
        if taper_end > end:
            logger.warning("Taper end %g greater than end position %g", taper_end, end)
            taper_end = end
        object.__setattr__(self, "taper_start", taper_start)
        object.__setattr__(self, "taper_end", taper_end)
        object.__setattr__(self, "orientation", Orientation(self.orientation))

    def is_active(self, x: float) -> bool:
        return self.start <= x < self.end

    def get_width_at_pos(self, pos: float) -> float:
        """Total width of all pieces at ``pos``."""
        if pos <= self.taper_start:
            width = self.width_at_start
        elif pos >= self.taper_end:
            width = self.width_at_end
        else:
            slope = (self.width_at_end - self.width_at_start) / (self.taper_end - self.taper_start)
            width = self.width_at_start + (pos - self.taper_start) * slope
        return self.num_pieces * width

    def get_area(self) -> float:
        """Total area of all pieces, summed over the three width zones."""
        a = (self.taper_start - self.start) * self.width_at_start
        b = (self.taper_end - self.taper_start) * (self.width_at_start + self.width_at_end) / 2.0
        c = (self.end - self.taper_end) * self.width_at_end
        return self.num_pieces * (a + b + c)
