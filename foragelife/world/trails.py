from typing import NamedTuple, Optional, Tuple
import numpy as np

DEFAULT_CELL_SIZE = 10
DEFAULT_DECAY_FACTOR = 0.95
DEFAULT_SNAP_THRESHOLD = 0.01

class TrailCell(NamedTuple):
    hue: float
    intensity: float

class TrailField:
    """A downsampled grid of fading hue markers left by organisms.

    Arrays are indexed ``[row, col]``, i.e. ``[y, x]`` in cell coordinates.

    Args:
        world_width: Width of the world in world units.
        world_height: Height of the world in world units.
        cell_size: World units covered by one cell along each axis.
        decay_factor: Multiplier applied to every cell on each decay() call.
        snap_threshold: Intensities below this are set to exactly 0 after decaying.
    """
    def __init__(
        self,
        world_width: float,
        world_height: float,
        cell_size: int = DEFAULT_CELL_SIZE,
        decay_factor: float = DEFAULT_DECAY_FACTOR,
        snap_threshold: float = DEFAULT_SNAP_THRESHOLD,
    ) -> None:
        if cell_size <= 0:
            raise ValueError(f"cell_size must be positive, got {cell_size}")
        self.cell_size: int = cell_size
        self.decay_factor: float = decay_factor
        self.snap_threshold: float = snap_threshold
        self.grid_width: int = max(1, int(world_width // cell_size))
        self.grid_height: int = max(1, int(world_height // cell_size))
        self.hue: np.ndarray = np.zeros((self.grid_height, self.grid_width), dtype=np.float64)
        self.intensity: np.ndarray = np.zeros((self.grid_height, self.grid_width), dtype=np.float64)

    def cell_of(self, x: float, y: float) -> Tuple[int, int]:
        """Maps a world position to (col, row) cell coordinates (floored)."""
        return int(np.floor(x / self.cell_size)), int(np.floor(y / self.cell_size))

    def in_bounds(self, col: int, row: int) -> bool:
        return 0 <= col < self.grid_width and 0 <= row < self.grid_height

    def cell_center(self, col: int, row: int) -> Tuple[float, float]:
        return (col + 0.5) * self.cell_size, (row + 0.5) * self.cell_size

    def deposit(self, x: float, y: float, hue: float) -> bool:
        """Marks the cell under (x, y) with full intensity.

        Returns:
            True if the position maps into the grid, False if it was ignored.
        """
        col, row = self.cell_of(x, y)
        if not self.in_bounds(col, row):
            return False
        self.hue[row, col] = hue
        self.intensity[row, col] = 1.0
        return True

    def cell(self, col: int, row: int) -> Optional[TrailCell]:
        if not self.in_bounds(col, row):
            return None
        return TrailCell(float(self.hue[row, col]), float(self.intensity[row, col]))

    def decay(self) -> None:
        """Fades every cell once and snaps faint cells to zero."""
        self.intensity *= self.decay_factor
        self.intensity[self.intensity < self.snap_threshold] = 0.0

    def clear(self) -> None:
        self.hue.fill(0.0)
        self.intensity.fill(0.0)

    def active_cell_count(self) -> int:
        return int(np.count_nonzero(self.intensity))
