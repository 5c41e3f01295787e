import random
from typing import Any, Dict, List, Optional
from pyglet.event import EventDispatcher

from ..config import SimulationConfig
from ..core.organism import (
    BOUNDARY_MARGIN,
    DEFAULT_ENERGY,
    MATING_ENERGY_THRESHOLD,
    Organism,
)
from .plant import Plant
from .stats import SimulationStats, StatsHistory, compute_stats
from .trails import TrailField

SPAWN_MARGIN = 50.0 # Seeded organisms keep this far from the walls
PLANT_MARGIN = 30.0
PLANT_CLEARANCE = 20.0 # New plants avoid organisms closer than this on both axes

def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))

class World(EventDispatcher):
    """Owns the organisms, plants and trail field and advances them one tick at a time.

    Observers subscribe with pyglet's handler API, e.g.
    ``world.push_handlers(on_organism_born=callback)``. Events fire synchronously
    inside ``step()``:

    - ``on_stats_update(stats)``: a SimulationStats, every ``stats_interval`` frames.
    - ``on_organism_born(organism_data)``: a child or host-added organism.
    - ``on_organism_died(organism_id)``: an organism removed after starving.
    - ``on_plant_eaten(plant_id)``: a plant consumed by an organism.
    - ``on_plant_grown(plant_data)``: a plant spawned during the run or added by the host.

    Args:
        width: Width of the world in world units.
        height: Height of the world in world units.
        config: Tunables; defaults to SimulationConfig().
        rng: Random source shared with every organism; a fresh unseeded one if None.
    """
    def __init__(
        self,
        width: float,
        height: float,
        config: Optional[SimulationConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.width: float = width
        self.height: float = height
        self.config: SimulationConfig = config if config is not None else SimulationConfig()
        self.rng: random.Random = rng if rng is not None else random.Random()

        self.organisms: List[Organism] = []
        self.plants: List[Plant] = []
        self.trail_field: TrailField = TrailField(
            width,
            height,
            cell_size=self.config.trail_cell_size,
            decay_factor=self.config.trail_decay_factor,
            snap_threshold=self.config.trail_snap_threshold,
        )
        self.stats_history: StatsHistory = StatsHistory(self.config.stats_history_length)

        self.frame_count: int = 0
        self.frame_interval: float = 1.0 / self.config.target_fps # Seconds
        self.last_time: Optional[float] = None

        self.initialize()

    def initialize(self) -> None:
        """Seeds the starting population and plants."""
        for _ in range(self.config.initial_organisms):
            x = self.rng.uniform(SPAWN_MARGIN, self.width - SPAWN_MARGIN)
            y = self.rng.uniform(SPAWN_MARGIN, self.height - SPAWN_MARGIN)
            self.organisms.append(Organism(x, y, rng=self.rng))

        for _ in range(self.config.initial_plants):
            self._add_random_plant()

    def reset(self) -> None:
        """Discards all owned state and reseeds the world."""
        self.organisms = []
        self.plants = []
        self.frame_count = 0
        self.trail_field.clear()
        self.stats_history.clear()
        self.initialize()

    def update(self, current_time: float) -> bool:
        """Runs one tick if at least one frame interval has passed since the last one.

        Args:
            current_time: Host timestamp in seconds (e.g. time.perf_counter()).

        Returns:
            True if a tick ran, False if it was skipped by the frame limiter.
        """
        if self.last_time is not None and current_time - self.last_time < self.frame_interval:
            return False
        self.last_time = current_time
        self.step()
        return True

    def step(self) -> None:
        """Advances the world by exactly one tick."""
        self.frame_count += 1

        self.trail_field.decay()
        self._update_organisms()
        self._remove_dead()

        # Checked before spawning so no plant is announced and then discarded by the reset.
        if not self.organisms:
            print("[World tick] Population extinct, restarting...")
            self.reset()

        self._handle_reproduction()
        self._update_plants()

        self._emit_stats()

        if self.config.verbose_logging and self.frame_count % self.config.log_interval_frames == 0:
            print(f"[World tick] --- frame {self.frame_count}: organisms={len(self.organisms)}, "
                  f"plants={len(self.plants)}, trail cells={self.trail_field.active_cell_count()} ---")

    def _update_organisms(self) -> None:
        for organism in list(self.organisms):
            organism.move(
                self.plants,
                self.trail_field,
                self.organisms,
                self.width,
                self.height,
                follow_trails=self.config.follow_trails,
            )
            eaten_plant = organism.try_to_eat(self.plants)
            if eaten_plant is not None:
                self.dispatch_event('on_plant_eaten', str(eaten_plant.id))

    def _remove_dead(self) -> None:
        survivors: List[Organism] = []
        for organism in self.organisms:
            if organism.is_dead():
                self.dispatch_event('on_organism_died', str(organism.id))
            else:
                survivors.append(organism)
        self.organisms = survivors

    def _handle_reproduction(self) -> None:
        children: List[Organism] = []

        for i, organism in enumerate(self.organisms):
            if organism.energy < MATING_ENERGY_THRESHOLD:
                continue
            for partner in self.organisms[i + 1:]:
                if partner.energy < MATING_ENERGY_THRESHOLD:
                    continue
                child = organism.try_to_reproduce_with(partner)
                if child is not None:
                    self._place_child(child, children)
                    break # One mate per organism per tick

        if self.config.asexual_reproduction:
            for organism in self.organisms:
                child = organism.maybe_reproduce()
                if child is not None:
                    self._place_child(child, children)

        # Children join only after the whole pass, so they never mate on their first tick.
        self.organisms.extend(children)

    def _place_child(self, child: Organism, children: List[Organism]) -> None:
        child.x = clamp(child.x, BOUNDARY_MARGIN, self.width - BOUNDARY_MARGIN)
        child.y = clamp(child.y, BOUNDARY_MARGIN, self.height - BOUNDARY_MARGIN)
        child.movement.last_x = child.x
        child.movement.last_y = child.y
        children.append(child)
        self.dispatch_event('on_organism_born', child.to_data())

    def _update_plants(self) -> None:
        if len(self.plants) < self.config.max_plants and self.rng.random() < self.config.plant_spawn_probability:
            new_plant = self._add_random_plant()
            if new_plant is not None:
                self.dispatch_event('on_plant_grown', new_plant.to_data())

    def _add_random_plant(self) -> Optional[Plant]:
        """Places a plant at a random spot clear of organisms, or gives up after a few tries."""
        for _ in range(self.config.plant_spawn_attempts):
            x = self.rng.uniform(PLANT_MARGIN, self.width - PLANT_MARGIN)
            y = self.rng.uniform(PLANT_MARGIN, self.height - PLANT_MARGIN)
            too_close = any(
                abs(o.x - x) < PLANT_CLEARANCE and abs(o.y - y) < PLANT_CLEARANCE
                for o in self.organisms
            )
            if not too_close:
                plant = Plant(x, y)
                self.plants.append(plant)
                return plant
        return None

    def _emit_stats(self) -> None:
        if self.frame_count % self.config.stats_interval != 0:
            return
        stats = self.compute_stats()
        self.stats_history.record(stats)
        self.dispatch_event('on_stats_update', stats)

    def compute_stats(self) -> SimulationStats:
        return compute_stats(self.frame_count, self.organisms, len(self.plants))

    # --- Host-facing entry points ---

    def add_organism(self, x: float, y: float, energy: Optional[float] = None) -> Organism:
        """Adds an organism at (x, y), clamped inside the wall margin."""
        organism = Organism(
            clamp(x, BOUNDARY_MARGIN, self.width - BOUNDARY_MARGIN),
            clamp(y, BOUNDARY_MARGIN, self.height - BOUNDARY_MARGIN),
            energy if energy is not None else DEFAULT_ENERGY,
            rng=self.rng,
        )
        self.organisms.append(organism)
        self.dispatch_event('on_organism_born', organism.to_data())
        return organism

    def add_plant(self, x: float, y: float) -> Plant:
        """Adds a plant at (x, y), clamped inside the wall margin."""
        plant = Plant(
            clamp(x, BOUNDARY_MARGIN, self.width - BOUNDARY_MARGIN),
            clamp(y, BOUNDARY_MARGIN, self.height - BOUNDARY_MARGIN),
        )
        self.plants.append(plant)
        self.dispatch_event('on_plant_grown', plant.to_data())
        return plant

    def get_state(self) -> Dict[str, Any]:
        """Full serialisable snapshot of the world."""
        return {
            "frame_count": self.frame_count,
            "organisms": [o.to_data() for o in self.organisms],
            "plants": [p.to_data() for p in self.plants],
            "stats": self.compute_stats().to_dict(),
        }

    def get_performance_metrics(self) -> Dict[str, Any]:
        return {
            "fps": 1.0 / self.frame_interval,
            "frame_count": self.frame_count,
            "organism_count": len(self.organisms),
            "plant_count": len(self.plants),
        }

World.register_event_type('on_stats_update')
World.register_event_type('on_organism_born')
World.register_event_type('on_organism_died')
World.register_event_type('on_plant_eaten')
World.register_event_type('on_plant_grown')
