from dataclasses import dataclass
from typing import Dict

# Gene floors; zero or negative genes would freeze the movement math.
MIN_SPEED = 0.5
MIN_VISION = 10.0
MIN_RANDOMNESS = 0.1

@dataclass(frozen=True)
class Genes:
    """The heritable trait set of an organism.

    Args:
        speed: Distance covered per tick before the hunger multiplier.
        vision: Radius within which plants are noticed.
        randomness: Half-width of the wander perturbation, in radians / 2.
    """
    speed: float
    vision: float
    randomness: float

    def __post_init__(self) -> None:
        # Clamp on assignment so no Genes value can ever sit below a floor.
        object.__setattr__(self, "speed", max(MIN_SPEED, float(self.speed)))
        object.__setattr__(self, "vision", max(MIN_VISION, float(self.vision)))
        object.__setattr__(self, "randomness", max(MIN_RANDOMNESS, float(self.randomness)))

    def to_dict(self) -> Dict[str, float]:
        return {"speed": self.speed, "vision": self.vision, "randomness": self.randomness}

@dataclass
class MovementState:
    """Transient steering state carried by an organism between ticks."""
    last_direction: float = 0.0 # Radians
    stuck_counter: int = 0
    last_x: float = 0.0
    last_y: float = 0.0
    direction_change_timer: int = 0
