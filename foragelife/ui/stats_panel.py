from typing import Dict, List, Tuple, TYPE_CHECKING
import numpy as np

if TYPE_CHECKING:
    from ..world.stats import SimulationStats
    from ..world.world import World

CHART_COLORS: Dict[str, Tuple[int, int, int]] = {
    "speed": (220, 40, 40),
    "vision": (40, 70, 220),
    "randomness": (30, 150, 60),
}

def chart_polyline(values: np.ndarray, x: float, y: float, width: float, height: float) -> List[Tuple[float, float]]:
    """Lays a series out left to right inside the box, scaled to its own min/max.

    A flat series is drawn through the middle of the box. Fewer than two samples
    give no line.
    """
    if len(values) < 2:
        return []
    low, high = float(np.min(values)), float(np.max(values))
    xs = x + np.linspace(0.0, width, len(values))
    if high - low > 0.0:
        ys = y + (values - low) / (high - low) * height
    else:
        ys = np.full(len(values), y + height / 2)
    return [(float(px), float(py)) for px, py in zip(xs, ys)]

def format_stats_label(stats: 'SimulationStats', paused: bool = False) -> str:
    text = (
        f"Pop: {stats.organism_count}  Plants: {stats.plant_count}  "
        f"E: {stats.avg_energy:.1f}  Spd: {stats.avg_speed:.2f}  Vis: {stats.avg_vision:.1f}  "
        f"Rnd: {stats.avg_randomness:.2f}  MaxAge: {stats.max_age}  Frame: {stats.frame_count}"
    )
    if paused:
        text += "  [PAUSED]"
    return text

class StatsPanel:
    """Keeps the latest stats_update event and lays out the gene-mean history chart.

    Holds no pyglet graphics, so the RenderSystem owns the drawing and this stays
    usable without a window.
    """
    def __init__(self, world: 'World') -> None:
        self.world = world
        self.latest: 'SimulationStats' = world.compute_stats()
        self.updates_received: int = 0
        world.push_handlers(on_stats_update=self.on_stats_update)

    def on_stats_update(self, stats: 'SimulationStats') -> None:
        self.latest = stats
        self.updates_received += 1

    def label_text(self, paused: bool = False) -> str:
        return format_stats_label(self.latest, paused)

    def chart_lines(self, x: float, y: float, width: float, height: float) -> Dict[str, List[Tuple[float, float]]]:
        """Returns one polyline per gene trait from the world's stats history."""
        series = self.world.stats_history.series()
        return {name: chart_polyline(values, x, y, width, height) for name, values in series.items()}

    def detach(self) -> None:
        self.world.remove_handlers(on_stats_update=self.on_stats_update)
