"""
Reference materials and layups for composite bat barrels.

The wall layups are named by their number of ±30° carbon pairs:
"4" is four pairs, "5" five pairs. Suffixes mark variations:
L uses a light 75 gsm pair at the inside, f alternates ±30° and ±45°
pairs, z adds a centre 0° carbon ply and gz a centre 0° glass ply.
"""

from typing import Dict

from lpt_tube.core.layup import FabricLayer, FiberLayer, Layer, WeaveType
from lpt_tube.core.material import IsotropicMaterial, PlanarIso23Material

MSI_TO_PA = 6894.7573e6

epoxy_resin = IsotropicMaterial(
    name="Epoxy Resin",
    description="Generic epoxy resin.",
    density=1170.0,
    E1=3.1e9,
    PR12=0.3,
)

e_glass_fiber = IsotropicMaterial(
    name="E-Glass Fiber",
    description="Generic E-glass fiber.",
    density=2540.0,
    E1=10.5 * MSI_TO_PA,
    PR12=0.22,
)

carbon_fiber = PlanarIso23Material(
    name="Carbon Fiber",
    description="Generic standard modulus carbon fiber.",
    density=1800.0,
    E1=207.5e9,
    E2=18.7e9,
    G12=8e9,
    PR12=0.25,
    PR23=0.2,
)

glass_uni = FiberLayer(fiber=e_glass_fiber, faw=0.14, vf=0.59, name="Glass 140 gsm")
carbon_uni = FiberLayer(fiber=carbon_fiber, faw=0.15, vf=0.59, name="Carbon 150 gsm")
carbon_75 = FiberLayer(fiber=carbon_fiber, faw=0.075, vf=0.59, name="Carbon 75 gsm")


def angle_pair(layer: Layer, angle: float, name: str, description: str = "") -> FabricLayer:
    """Two plies of ``layer`` at +angle and -angle."""
    return FabricLayer(
        layers=(layer, layer),
        angles=(angle, -angle),
        weave_type=WeaveType.NONE,
        name=name,
        description=description,
    )


def stack(layers, name: str, description: str = "") -> FabricLayer:
    """Layers stacked at zero degrees, inside first."""
    return FabricLayer(layers=tuple(layers), weave_type=WeaveType.NONE,
                       name=name, description=description)


c30 = angle_pair(carbon_uni, 30.0, "C 150 @ +/-30", "2 layers of carbon at +/- 30 degrees")
c30L = angle_pair(carbon_75, 30.0, "C 75 @ +/-30", "2 layers of 75 gsm carbon at +/- 30 degrees")
c45 = angle_pair(carbon_uni, 45.0, "C 150 @ +/-45", "2 layers of carbon at +/- 45 degrees")

lam_4 = stack([c30] * 4, "4", "4 layers of carbon +/- 30 degrees")
lam_4L = stack([c30L, c30, c30, c30], "4L", "4 layers of carbon +/- 30 degrees, light inside pair")
lam_4f = stack([c30, c45, c45, c30], "4f", "4 layers of carbon at +/- 30/45/45/30")
lam_4z = stack([c30, c30, carbon_75, c30, c30], "4z",
               "4 layers of carbon +/- 30, plus CL layer of 75 gsm zero")
lam_4gz = stack([c30, c30, glass_uni, c30, c30], "4gz",
                "4 layers of 150 gsm carbon +/- 30, plus CL layer of 140 gsm glass zero")
lam_5 = stack([c30] * 5, "5", "5 layers of carbon +/- 30 degrees")
lam_5L = stack([c30L, c30, c30, c30, c30], "5L", "5 layers of carbon +/- 30 degrees, light inside pair")
lam_5f = stack([c30, c45, c30, c45, c30], "5f", "5 layers of carbon +/- 30/45/30/45/30 degrees")

BAT_LAYERS: Dict[str, Layer] = {
    "glass_uni": glass_uni,
    "carbon_uni": carbon_uni,
    "carbon_75": carbon_75,
    "c30": c30,
    "c30L": c30L,
    "c45": c45,
    "lam_4": lam_4,
    "lam_4L": lam_4L,
    "lam_4f": lam_4f,
    "lam_4z": lam_4z,
    "lam_4gz": lam_4gz,
    "lam_5": lam_5,
    "lam_5L": lam_5L,
    "lam_5f": lam_5f,
}

BAT_MATERIALS = {
    "epoxy_resin": epoxy_resin,
    "e_glass_fiber": e_glass_fiber,
    "carbon_fiber": carbon_fiber,
}
