"""Genetics utilities: trait crossover and mutation, hue compatibility and mixing.

Colours are carried as ``hsl(H, 70%, 50%)`` strings. Only the integer part of the
hue is significant when a colour is read back, so a mixed hue of 123.5 compares
as 123.
"""

import random
import re
from typing import Optional, Union

from ..agents.components import Genes

COMPATIBLE_HUE_DIFFERENCE = 30.0
GENE_JITTER = 0.1 # Symmetric multiplicative jitter, +-10%
HUE_JITTER = 20.0 # Degrees

_HUE_PATTERN = re.compile(r"hsl\((\d+)")
_DEFAULT_RNG = random.Random()

Color = Union[str, int, float]

def _source(rng: Optional[random.Random]) -> random.Random:
    return rng if rng is not None else _DEFAULT_RNG

def parse_hue(color: Color) -> float:
    """Returns the hue of a colour, or 0 when it cannot be read."""
    if isinstance(color, (int, float)) and not isinstance(color, bool):
        return float(color)
    if not isinstance(color, str):
        return 0.0
    match = _HUE_PATTERN.match(color.strip())
    if match is None:
        return 0.0
    return float(match.group(1))

def hsl_color(hue: float) -> str:
    return f"hsl({hue:.2f}, 70%, 50%)"

def random_color(rng: Optional[random.Random] = None) -> str:
    return hsl_color(_source(rng).uniform(0.0, 360.0))

def random_genes(rng: Optional[random.Random] = None) -> Genes:
    """Draws genes for a freshly seeded organism."""
    rng = _source(rng)
    return Genes(
        speed=1.0 + rng.random() * 1.5,
        vision=20.0 + rng.random() * 40.0,
        randomness=0.3 + rng.random() * 0.7,
    )

def _jitter(value: float, rng: random.Random) -> float:
    return value * (1.0 + rng.uniform(-GENE_JITTER, GENE_JITTER))

def crossover(g1: Genes, g2: Genes, rng: Optional[random.Random] = None) -> Genes:
    """Averages two parents trait by trait, then jitters each trait by +-10%.

    Consumes exactly one uniform draw per trait, in the order speed, vision,
    randomness. The Genes constructor re-applies the floors.
    """
    rng = _source(rng)
    return Genes(
        speed=_jitter((g1.speed + g2.speed) / 2.0, rng),
        vision=_jitter((g1.vision + g2.vision) / 2.0, rng),
        randomness=_jitter((g1.randomness + g2.randomness) / 2.0, rng),
    )

def mutate_genes(genes: Genes, rng: Optional[random.Random] = None) -> Genes:
    """Copies a single parent's genes with a +-10% jitter per trait."""
    rng = _source(rng)
    return Genes(
        speed=_jitter(genes.speed, rng),
        vision=_jitter(genes.vision, rng),
        randomness=_jitter(genes.randomness, rng),
    )

def is_compatible(color1: Color, color2: Color) -> bool:
    """Two colours may mate when their hues are within 30 degrees on the wheel."""
    hue_diff = abs(parse_hue(color1) - parse_hue(color2))
    return hue_diff < COMPATIBLE_HUE_DIFFERENCE or hue_diff > 360.0 - COMPATIBLE_HUE_DIFFERENCE

def mix_colors(color1: Color, color2: Color) -> str:
    """Plain average of the two hues.

    This is not the circular mean: hues 350 and 10 mix to 180.
    """
    mid_hue = (parse_hue(color1) + parse_hue(color2)) / 2.0 % 360.0
    return hsl_color(mid_hue)

def mutate_color(color: Color, rng: Optional[random.Random] = None) -> str:
    hue = parse_hue(color)
    new_hue = (hue + _source(rng).uniform(-HUE_JITTER, HUE_JITTER) + 360.0) % 360.0
    return hsl_color(new_hue)
