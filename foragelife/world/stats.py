from collections import deque
from dataclasses import asdict, dataclass
from typing import Any, Deque, Dict, Sequence, TYPE_CHECKING
import numpy as np

if TYPE_CHECKING:
    from ..core.organism import Organism

DEFAULT_HISTORY_LENGTH = 200

@dataclass(frozen=True)
class SimulationStats:
    """Aggregate population figures, emitted with the stats_update event."""
    frame_count: int
    organism_count: int
    plant_count: int
    avg_energy: float
    avg_speed: float
    avg_vision: float
    avg_randomness: float
    max_age: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

def compute_stats(frame_count: int, organisms: Sequence['Organism'], plant_count: int) -> SimulationStats:
    """Averages energy and genes over the population; all zeros when it is empty."""
    if not organisms:
        return SimulationStats(frame_count, 0, plant_count, 0.0, 0.0, 0.0, 0.0, 0)

    traits = np.array(
        [(o.energy, o.genes.speed, o.genes.vision, o.genes.randomness) for o in organisms],
        dtype=np.float64,
    )
    means = traits.mean(axis=0)
    return SimulationStats(
        frame_count=frame_count,
        organism_count=len(organisms),
        plant_count=plant_count,
        avg_energy=float(means[0]),
        avg_speed=float(means[1]),
        avg_vision=float(means[2]),
        avg_randomness=float(means[3]),
        max_age=max(0, max(o.age for o in organisms)),
    )

class StatsHistory:
    """Rolling record of the mean gene values, newest last."""

    def __init__(self, max_length: int = DEFAULT_HISTORY_LENGTH) -> None:
        self.samples: Deque[SimulationStats] = deque(maxlen=max_length)

    def record(self, stats: SimulationStats) -> None:
        # An empty population carries no gene information worth charting.
        if stats.organism_count == 0:
            return
        self.samples.append(stats)

    def clear(self) -> None:
        self.samples.clear()

    def __len__(self) -> int:
        return len(self.samples)

    def series(self) -> Dict[str, np.ndarray]:
        """Returns one array per gene trait, aligned sample by sample."""
        return {
            "speed": np.array([s.avg_speed for s in self.samples], dtype=np.float64),
            "vision": np.array([s.avg_vision for s in self.samples], dtype=np.float64),
            "randomness": np.array([s.avg_randomness for s in self.samples], dtype=np.float64),
        }
