import math
import random
import uuid
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union, TYPE_CHECKING

from ..agents.components import Genes, MovementState
from ..core.genetics import (
    crossover,
    hsl_color,
    is_compatible,
    mix_colors,
    mutate_color,
    mutate_genes,
    parse_hue,
    random_genes,
)
from ..core.steering import Behaviour, Surroundings, decide_direction

if TYPE_CHECKING:
    from ..world.plant import Plant
    from ..world.trails import TrailField

MAX_ENERGY = 100.0
DEFAULT_ENERGY = 50.0
HUNGER_THRESHOLD = 50.0 # Below this an organism is hungry
ORGANISM_SIZE = 5.0

METABOLIC_COST = 0.1 # Energy lost every tick
FOOD_ENERGY_GAIN = 20.0
HUNGRY_VISION_MULTIPLIER = 1.5
HUNGRY_SPEED_MULTIPLIER = 1.3

CROWD_RADIUS = 30.0
CROWD_NEIGHBOUR_LIMIT = 3 # Crowded when strictly more neighbours than this
STUCK_DISTANCE = 0.5
HARD_STUCK_THRESHOLD = 100
MIN_VELOCITY_COMPONENT = 0.01
BOUNDARY_MARGIN = 10.0
REFLECTION_JITTER = 0.25

# Sexual reproduction
MATING_DISTANCE = 20.0
MATING_ENERGY_THRESHOLD = 60.0
MATING_COST = 30.0
SEXUAL_CHILD_ENERGY = 50.0
SEXUAL_CHILD_SPREAD = 5.0

# Asexual reproduction
SPLIT_ENERGY_THRESHOLD = 100.0
ASEXUAL_CHILD_SPREAD = 10.0

def normalize_angle(angle: float) -> float:
    """Wraps an angle into (-pi, pi]."""
    return math.atan2(math.sin(angle), math.cos(angle))

class Organism:
    """A mobile agent that forages, leaves trails and reproduces.

    All randomness goes through ``rng`` so a World (or a test) can inject one seeded
    or scripted source shared by every organism it owns.
    """
    def __init__(
        self,
        x: float,
        y: float,
        energy: float = DEFAULT_ENERGY,
        color: Optional[str] = None,
        genes: Optional[Union[Genes, Mapping[str, float]]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.rng: random.Random = rng if rng is not None else random.Random()
        self.id: uuid.UUID = uuid.uuid4()
        self.x: float = float(x)
        self.y: float = float(y)
        self.energy: float = float(energy)
        self.color: str = color if color is not None else hsl_color(self.rng.uniform(0.0, 360.0))
        self.size: float = ORGANISM_SIZE
        self.age: int = 0

        self.movement: MovementState = MovementState(
            last_direction=self.rng.uniform(0.0, 2.0 * math.pi),
            last_x=self.x,
            last_y=self.y,
        )
        self.genes = genes if genes is not None else random_genes(self.rng)
        self.current_behaviour: Optional[Behaviour] = None

    @property
    def genes(self) -> Genes:
        return self._genes

    @genes.setter
    def genes(self, value: Union[Genes, Mapping[str, float]]) -> None:
        # Rebuilding through Genes re-applies the floors on every assignment.
        if isinstance(value, Genes):
            self._genes = Genes(value.speed, value.vision, value.randomness)
        else:
            self._genes = Genes(**value)

    @property
    def hue(self) -> float:
        return parse_hue(self.color)

    @property
    def is_hungry(self) -> bool:
        return self.energy < HUNGER_THRESHOLD

    def find_closest_plant(self, plants: Sequence['Plant']) -> Optional['Plant']:
        """Nearest plant strictly inside vision range; ties keep the first found."""
        vision = self.genes.vision * (HUNGRY_VISION_MULTIPLIER if self.is_hungry else 1.0)
        closest: Optional['Plant'] = None
        closest_dist = vision
        for plant in plants:
            dist = math.hypot(self.x - plant.x, self.y - plant.y)
            if dist < closest_dist:
                closest = plant
                closest_dist = dist
        return closest

    def is_crowded(self, organisms: Sequence['Organism']) -> bool:
        neighbours = 0
        for other in organisms:
            if other is self:
                continue
            if math.hypot(self.x - other.x, self.y - other.y) < CROWD_RADIUS:
                neighbours += 1
        return neighbours > CROWD_NEIGHBOUR_LIMIT

    def move(
        self,
        plants: Sequence['Plant'],
        trail_field: Optional['TrailField'],
        organisms: Sequence['Organism'],
        world_width: float,
        world_height: float,
        follow_trails: bool = False,
    ) -> Behaviour:
        """Advances this organism by one tick: steer, move, pay upkeep, mark the trail.

        Args:
            plants: Plants currently in the world (read only).
            trail_field: The world's trail field, lent for this call only.
            organisms: Every live organism, including this one (read only).
            world_width: Width of the world.
            world_height: Height of the world.
            follow_trails: Whether the trail-following rule may fire.

        Returns:
            The steering behaviour that picked this tick's heading.
        """
        movement = self.movement
        self.age += 1

        dist_moved = math.hypot(self.x - movement.last_x, self.y - movement.last_y)
        if dist_moved < STUCK_DISTANCE:
            movement.stuck_counter += 1
        else:
            movement.stuck_counter = 0
        movement.last_x = self.x
        movement.last_y = self.y
        movement.direction_change_timer += 1

        surroundings = Surroundings(
            self, plants, organisms, trail_field, world_width, world_height, follow_trails=follow_trails
        )
        is_hungry = surroundings.is_hungry
        choice = decide_direction(self, surroundings)
        self.current_behaviour = choice.behaviour

        speed = self.genes.speed * (HUNGRY_SPEED_MULTIPLIER if is_hungry else 1.0)
        dx = math.cos(choice.angle) * speed
        dy = math.sin(choice.angle) * speed
        if abs(dx) < MIN_VELOCITY_COMPONENT and abs(dy) < MIN_VELOCITY_COMPONENT:
            fresh_angle = self.rng.uniform(0.0, 2.0 * math.pi)
            dx = math.cos(fresh_angle) * speed
            dy = math.sin(fresh_angle) * speed
            movement.last_direction = fresh_angle

        self._apply_movement(dx, dy, world_width, world_height)

        self.energy -= METABOLIC_COST

        if movement.stuck_counter > HARD_STUCK_THRESHOLD:
            movement.last_direction = self.rng.uniform(0.0, 2.0 * math.pi)
            movement.stuck_counter = 0
            print(f"[Organism] {str(self.id)[:8]} forced unstuck at ({self.x:.1f},{self.y:.1f})")

        if not is_hungry and trail_field is not None:
            trail_field.deposit(self.x, self.y, self.hue)

        return choice.behaviour

    def _apply_movement(self, dx: float, dy: float, world_width: float, world_height: float) -> None:
        """Moves by (dx, dy), clamping to the margin and reflecting the heading off walls."""
        movement = self.movement
        new_x = self.x + dx
        new_y = self.y + dy

        if new_x < BOUNDARY_MARGIN or new_x > world_width - BOUNDARY_MARGIN:
            new_x = min(max(new_x, BOUNDARY_MARGIN), world_width - BOUNDARY_MARGIN)
            movement.last_direction = normalize_angle(
                math.pi - movement.last_direction + self.rng.uniform(-REFLECTION_JITTER, REFLECTION_JITTER)
            )

        if new_y < BOUNDARY_MARGIN or new_y > world_height - BOUNDARY_MARGIN:
            new_y = min(max(new_y, BOUNDARY_MARGIN), world_height - BOUNDARY_MARGIN)
            movement.last_direction = normalize_angle(
                -movement.last_direction + self.rng.uniform(-REFLECTION_JITTER, REFLECTION_JITTER)
            )

        self.x = new_x
        self.y = new_y

    def try_to_eat(self, plants: List['Plant']) -> Optional['Plant']:
        """Eats at most one touching plant, scanning from the end of the list.

        The eaten plant is removed from ``plants`` in place and returned.
        """
        for i in range(len(plants) - 1, -1, -1):
            plant = plants[i]
            if math.hypot(self.x - plant.x, self.y - plant.y) < self.size + plant.size:
                self.energy = min(MAX_ENERGY, self.energy + FOOD_ENERGY_GAIN)
                return plants.pop(i)
        return None

    def is_dead(self) -> bool:
        return self.energy <= 0

    def is_compatible_with(self, other: 'Organism') -> bool:
        return is_compatible(self.color, other.color)

    def try_to_reproduce_with(self, partner: 'Organism') -> Optional['Organism']:
        """Mates with a nearby, well-fed, similarly coloured partner.

        Both parents pay MATING_COST. Returns the child, unclamped, or None.
        """
        if partner is self:
            return None
        dist = math.hypot(self.x - partner.x, self.y - partner.y)
        if not (
            dist < MATING_DISTANCE
            and self.energy >= MATING_ENERGY_THRESHOLD
            and partner.energy >= MATING_ENERGY_THRESHOLD
            and self.energy >= HUNGER_THRESHOLD
            and partner.energy >= HUNGER_THRESHOLD
            and self.is_compatible_with(partner)
        ):
            return None

        self.energy -= MATING_COST
        partner.energy -= MATING_COST

        child_genes = crossover(self.genes, partner.genes, self.rng)
        child_color = mix_colors(self.color, partner.color)
        child_x = (self.x + partner.x) / 2 + self.rng.uniform(-SEXUAL_CHILD_SPREAD, SEXUAL_CHILD_SPREAD)
        child_y = (self.y + partner.y) / 2 + self.rng.uniform(-SEXUAL_CHILD_SPREAD, SEXUAL_CHILD_SPREAD)
        return Organism(child_x, child_y, SEXUAL_CHILD_ENERGY, child_color, child_genes, rng=self.rng)

    def maybe_reproduce(self) -> Optional['Organism']:
        """Splits in two once energy reaches SPLIT_ENERGY_THRESHOLD.

        The parent keeps half its energy and the child starts with the same half.
        """
        if self.energy < SPLIT_ENERGY_THRESHOLD:
            return None
        self.energy /= 2

        child_genes = mutate_genes(self.genes, self.rng)
        child_x = self.x + self.rng.uniform(-ASEXUAL_CHILD_SPREAD, ASEXUAL_CHILD_SPREAD)
        child_y = self.y + self.rng.uniform(-ASEXUAL_CHILD_SPREAD, ASEXUAL_CHILD_SPREAD)
        child_color = mutate_color(self.color, self.rng)
        return Organism(child_x, child_y, self.energy, child_color, child_genes, rng=self.rng)

    def to_data(self) -> Dict[str, Any]:
        """Returns a serialisable snapshot for renderers and event listeners."""
        return {
            "id": str(self.id),
            "x": self.x,
            "y": self.y,
            "energy": self.energy,
            "color": self.color,
            "size": self.size,
            "genes": self.genes.to_dict(),
            "last_direction": self.movement.last_direction,
            "age": self.age,
        }

    def __repr__(self) -> str:
        return (f"Organism(id={str(self.id)[:8]}, pos=({self.x:.1f},{self.y:.1f}), "
                f"energy={self.energy:.1f}, hue={self.hue:.0f}, age={self.age}, "
                f"behaviour={self.current_behaviour.name if self.current_behaviour else None})")
