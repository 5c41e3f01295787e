"""Ordered steering rules that pick an organism's heading each tick.

Each rule pairs a predicate with a chooser; ``decide_direction`` walks
``STEERING_RULES`` top to bottom and the first rule whose predicate holds picks the
angle. Rules never touch the world; the only state they change is the organism's
own ``MovementState`` (timer and stuck counter resets, remembered heading).

Headings are in radians in screen coordinates: +x to the right, +y downward.
"""

import math
from dataclasses import dataclass
from enum import Enum, auto
from functools import cached_property
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple, TYPE_CHECKING

from .genetics import is_compatible

if TYPE_CHECKING:
    from .organism import Organism
    from ..world.plant import Plant
    from ..world.trails import TrailField

TWO_PI = 2.0 * math.pi

EDGE_ZONE = 80.0 # Distance from a wall that counts as "near the edge"
REDIRECT_INTERVAL = 120 # Ticks without a redirect before a forced new heading
STUCK_THRESHOLD = 30
CROWD_CENTER_RADIUS = 50.0
HUNGRY_ESCAPE_JITTER = math.pi / 3
EDGE_WANDER_SPREAD = 1.5
LONG_HEADING_TICKS = 60
LONG_HEADING_BOOST = 1.5

# Trail following
TRAIL_EDGE_CLEARANCE = 50.0
TRAIL_MAX_RADIUS_CELLS = 8
TRAIL_MIN_INTENSITY = 0.3
TRAIL_FOLLOW_INTENSITY = 0.5

class Behaviour(Enum):
    """The steering behaviours, in priority order."""
    PERIODIC_REDIRECT = auto()
    STUCK_RECOVERY = auto()
    CROWD_DISPERSAL = auto()
    FOOD_SEEKING = auto()
    HUNGRY_SEARCH = auto()
    TRAIL_FOLLOWING = auto()
    WANDER = auto()

class DirectionChoice(NamedTuple):
    behaviour: Behaviour
    angle: float

@dataclass(frozen=True)
class EdgeZones:
    """Which of the four wall zones a position falls into."""
    left: bool = False
    right: bool = False
    top: bool = False
    bottom: bool = False

    @property
    def any(self) -> bool:
        return self.left or self.right or self.top or self.bottom

    @classmethod
    def around(cls, x: float, y: float, world_width: float, world_height: float, zone: float = EDGE_ZONE) -> "EdgeZones":
        return cls(
            left=x < zone,
            right=x > world_width - zone,
            top=y < zone,
            bottom=y > world_height - zone,
        )

class Surroundings:
    """Read-only view of what one organism perceives on this tick.

    Built fresh for every ``Organism.move`` call and dropped afterwards, so no
    organism keeps a reference to the plant list or the trail field across ticks.
    """
    def __init__(
        self,
        organism: 'Organism',
        plants: Sequence['Plant'],
        organisms: Sequence['Organism'],
        trail_field: Optional['TrailField'],
        world_width: float,
        world_height: float,
        follow_trails: bool = False,
    ) -> None:
        self.organism = organism
        self.organisms = organisms
        self.trail_field = trail_field
        self.world_width = world_width
        self.world_height = world_height
        self.follow_trails = follow_trails

        self.target_plant: Optional['Plant'] = organism.find_closest_plant(plants)
        self.is_hungry: bool = organism.is_hungry
        self.is_crowded: bool = organism.is_crowded(organisms)
        self.edges: EdgeZones = EdgeZones.around(organism.x, organism.y, world_width, world_height)

    @cached_property
    def crowd_center(self) -> Optional[Tuple[float, float]]:
        """Centroid of the other organisms within CROWD_CENTER_RADIUS, if any."""
        me = self.organism
        sum_x = sum_y = 0.0
        count = 0
        for other in self.organisms:
            if other is me:
                continue
            if math.hypot(me.x - other.x, me.y - other.y) < CROWD_CENTER_RADIUS:
                sum_x += other.x
                sum_y += other.y
                count += 1
        if count == 0:
            return None
        return sum_x / count, sum_y / count

    @cached_property
    def trail_direction(self) -> Optional[float]:
        """Heading towards the strongest same-kind trail cell nearby, if one is strong enough."""
        field = self.trail_field
        me = self.organism
        if field is None:
            return None
        if (me.x < TRAIL_EDGE_CLEARANCE or me.x > self.world_width - TRAIL_EDGE_CLEARANCE or
                me.y < TRAIL_EDGE_CLEARANCE or me.y > self.world_height - TRAIL_EDGE_CLEARANCE):
            return None

        radius = max(1, min(TRAIL_MAX_RADIUS_CELLS, int(me.genes.vision // field.cell_size)))
        step = max(1, radius // 3)
        own_col, own_row = field.cell_of(me.x, me.y)
        own_hue = me.hue

        best: Optional[Tuple[int, int]] = None
        best_strength = 0.0
        for d_col in range(-radius, radius + 1, step):
            for d_row in range(-radius, radius + 1, step):
                if d_col == 0 and d_row == 0:
                    continue
                col, row = own_col + d_col, own_row + d_row
                cell = field.cell(col, row)
                if cell is None:
                    continue
                if cell.intensity <= TRAIL_MIN_INTENSITY or cell.intensity <= best_strength:
                    continue
                if is_compatible(own_hue, cell.hue):
                    best = (col, row)
                    best_strength = cell.intensity

        if best is None or best_strength <= TRAIL_FOLLOW_INTENSITY:
            return None
        target_x, target_y = field.cell_center(*best)
        return math.atan2(target_y - me.y, target_x - me.x)

class SteeringRule(NamedTuple):
    behaviour: Behaviour
    applies: Callable[['Organism', Surroundings], bool]
    choose: Callable[['Organism', Surroundings], float]
    remembers_direction: bool = True
    on_chosen: Optional[Callable[['Organism'], None]] = None

# --- Predicates ---

def _redirect_due(organism: 'Organism', s: Surroundings) -> bool:
    return organism.movement.direction_change_timer > REDIRECT_INTERVAL and s.target_plant is None

def _is_stuck(organism: 'Organism', s: Surroundings) -> bool:
    return organism.movement.stuck_counter > STUCK_THRESHOLD

def _crowded_without_food(organism: 'Organism', s: Surroundings) -> bool:
    return s.is_crowded and s.target_plant is None

def _sees_food(organism: 'Organism', s: Surroundings) -> bool:
    return s.target_plant is not None

def _is_hungry(organism: 'Organism', s: Surroundings) -> bool:
    return s.is_hungry

def _trail_nearby(organism: 'Organism', s: Surroundings) -> bool:
    return s.follow_trails and not s.is_hungry and s.trail_direction is not None

def _always(organism: 'Organism', s: Surroundings) -> bool:
    return True

# --- Choosers ---

def random_heading(organism: 'Organism', s: Optional[Surroundings] = None) -> float:
    return organism.rng.uniform(0.0, TWO_PI)

def edge_escape_angle(organism: 'Organism', s: Surroundings) -> float:
    """A random heading within the quarter circle pointing away from the nearest wall."""
    edges = s.edges
    rng = organism.rng
    if edges.left:
        return rng.uniform(-math.pi / 4, math.pi / 4)
    if edges.right:
        return rng.uniform(3 * math.pi / 4, 5 * math.pi / 4)
    if edges.top:
        return rng.uniform(math.pi / 4, 3 * math.pi / 4)
    if edges.bottom:
        return rng.uniform(5 * math.pi / 4, 7 * math.pi / 4)
    return rng.uniform(0.0, TWO_PI)

def away_from_crowd(organism: 'Organism', s: Surroundings) -> float:
    center = s.crowd_center
    if center is None:
        return random_heading(organism)
    return math.atan2(organism.y - center[1], organism.x - center[0])

def towards_food(organism: 'Organism', s: Surroundings) -> float:
    plant = s.target_plant
    return math.atan2(plant.y - organism.y, plant.x - organism.x)

def hungry_escape_base(edges: EdgeZones) -> float:
    """Base heading away from the walls; corners point along the opposite diagonal."""
    if edges.left and edges.top:
        return math.pi / 4
    if edges.right and edges.top:
        return 3 * math.pi / 4
    if edges.left and edges.bottom:
        return -math.pi / 4
    if edges.right and edges.bottom:
        return -3 * math.pi / 4
    if edges.left:
        return 0.0
    if edges.right:
        return math.pi
    if edges.top:
        return math.pi / 2
    if edges.bottom:
        return -math.pi / 2
    return 0.0

def hungry_search(organism: 'Organism', s: Surroundings) -> float:
    rng = organism.rng
    if s.edges.any:
        return hungry_escape_base(s.edges) + rng.uniform(-HUNGRY_ESCAPE_JITTER, HUNGRY_ESCAPE_JITTER)
    return organism.movement.last_direction + rng.uniform(-math.pi, math.pi)

def towards_trail(organism: 'Organism', s: Surroundings) -> float:
    return s.trail_direction

def wander(organism: 'Organism', s: Surroundings) -> float:
    spread = EDGE_WANDER_SPREAD if s.edges.any else organism.genes.randomness * 2.0
    if organism.movement.direction_change_timer > LONG_HEADING_TICKS:
        spread *= LONG_HEADING_BOOST
    return organism.movement.last_direction + organism.rng.uniform(-spread, spread)

def _reset_redirect_timer(organism: 'Organism') -> None:
    organism.movement.direction_change_timer = 0

def _reset_stuck_counter(organism: 'Organism') -> None:
    organism.movement.stuck_counter = 0

# Food seeking sits below stuck recovery, but periodic redirect and crowd dispersal step aside
# on their own whenever a plant is visible.
STEERING_RULES: List[SteeringRule] = [
    SteeringRule(Behaviour.PERIODIC_REDIRECT, _redirect_due, random_heading, on_chosen=_reset_redirect_timer),
    SteeringRule(Behaviour.STUCK_RECOVERY, _is_stuck, edge_escape_angle, remembers_direction=False, on_chosen=_reset_stuck_counter),
    SteeringRule(Behaviour.CROWD_DISPERSAL, _crowded_without_food, away_from_crowd),
    SteeringRule(Behaviour.FOOD_SEEKING, _sees_food, towards_food),
    SteeringRule(Behaviour.HUNGRY_SEARCH, _is_hungry, hungry_search),
    SteeringRule(Behaviour.TRAIL_FOLLOWING, _trail_nearby, towards_trail),
    SteeringRule(Behaviour.WANDER, _always, wander),
]

def decide_direction(
    organism: 'Organism',
    surroundings: Surroundings,
    rules: Sequence[SteeringRule] = STEERING_RULES,
) -> DirectionChoice:
    """Evaluates the rules in order and applies the winner's state changes.

    Raises:
        ValueError: If no rule applies (only possible with a custom rule list).
    """
    for rule in rules:
        if not rule.applies(organism, surroundings):
            continue
        angle = rule.choose(organism, surroundings)
        if rule.on_chosen is not None:
            rule.on_chosen(organism)
        if rule.remembers_direction:
            organism.movement.last_direction = angle
        return DirectionChoice(rule.behaviour, angle)
    raise ValueError("No steering rule applied; the rule list needs a catch-all entry.")
