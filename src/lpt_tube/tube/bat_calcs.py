"""
Bat barrel calculations.

Barrel compression is the force needed to squeeze a bat barrel by 0.050"
between two flat platens. It is estimated wall by wall with an empirical
power law fit to measured bats (best fit values as of 1 March, 2021) and
reported in lbf per 0.050".
"""

import math
from typing import Sequence

from lpt_tube.core.laminate import Laminate, LaminateProperties

N_TO_LBF = 0.22480894
M_TO_INCH = 1 / 0.0254

COMPRESSION_K = (0.755, 0.6, 0.162, 0.0, 0.0, 0.596)
COMPRESSION_N = (0.858, 1.401, 1.051, 0.0, 0.978, 0.298)


def calculate_wall_compression(od: float, props: LaminateProperties) -> float:
    """
    Barrel compression of one wall.

    Parameters
    ----------
    od : float
        Outside diameter of the wall [m]
    props : LaminateProperties
        Properties of the wall laminate

    Returns
    -------
    float
        Barrel compression [lbf per 0.050"]
    """
    k = COMPRESSION_K
    n = COMPRESSION_N
    S = props.stiffness_matrix

    # N·m to lbf·in
    Dxx = S[3][3] * N_TO_LBF * M_TO_INCH
    Dxy = S[3][4] * N_TO_LBF * M_TO_INCH
    Dyy = S[4][4] * N_TO_LBF * M_TO_INCH
    Dss = S[5][5] * N_TO_LBF * M_TO_INCH

    t = props.thickness
    R = od / 2.0 - t + props.NAy
    t = t * M_TO_INCH
    R = R * M_TO_INCH

    ret = 1.0
    ret = ret + k[2] * math.pow(Dxx / Dyy, n[2])
    ret = ret + k[3] * math.pow(Dss / Dyy, n[3])
    ret = ret + k[4] * math.pow(Dxy / Dyy, n[4])
    ret = ret + k[5] * math.pow((R * Dss) / (t * Dyy), n[5])
    ret = ret * ((k[0] * math.pow(Dyy, n[0])) / (k[1] * math.pow(R, n[1])))
    return ret


def calculate_barrel_compression(od: float, laminates: Sequence[Laminate]) -> float:
    """
    Barrel compression of a multi-wall barrel.

    Parameters
    ----------
    od : float
        Outside diameter of the barrel [m]
    laminates : sequence of Laminate
        Wall laminates, outermost first

    Returns
    -------
    float
        Sum of the wall compressions [lbf per 0.050"]
    """
    ret = 0.0
    diameter = od
    for laminate in laminates:
        props = laminate.properties
        ret += calculate_wall_compression(diameter, props)
        diameter -= 2.0 * props.thickness
    return ret
