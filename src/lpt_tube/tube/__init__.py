"""
Tube module for lpt-tube.

Provides profiles, ply specifications, molded tubes and bat barrel
calculations.
"""

from .bat_calcs import calculate_barrel_compression, calculate_wall_compression
from .molded_tube import MoldedTube, SectionProperties
from .plyspec import PlySpec
from .profile import Profile

__all__ = [
    "calculate_barrel_compression",
    "calculate_wall_compression",
    "MoldedTube",
    "SectionProperties",
    "PlySpec",
    "Profile",
]
