from dataclasses import dataclass

@dataclass
class SimulationConfig:
    """Configuration settings for the foragelife world and its host engine."""
    world_width: int = 800
    world_height: int = 600

    initial_organisms: int = 20
    initial_plants: int = 30
    max_plants: int = 50
    plant_spawn_probability: float = 0.1 # Per tick
    plant_spawn_attempts: int = 10

    trail_cell_size: int = 10 # World units per trail cell
    trail_decay_factor: float = 0.95 # Multiplied into every cell each tick
    trail_snap_threshold: float = 0.01

    stats_interval: int = 30 # Frames between stats_update events
    stats_history_length: int = 200

    asexual_reproduction: bool = True
    follow_trails: bool = False

    target_fps: float = 60.0

    window_width: int = 800
    window_height: int = 600
    headless_mode: bool = False
    pyglet_debug_gl: bool = False # Set to True for Pyglet OpenGL debugging
    max_ticks: int = 0 # Headless only; 0 runs until stopped

    camera_pan_speed: float = 300.0 # Pixels per second

    verbose_logging: bool = False
    log_interval_frames: int = 120

    def __post_init__(self) -> None:
        if self.world_width <= 0 or self.world_height <= 0:
            raise ValueError(f"World size must be positive, got {self.world_width}x{self.world_height}")
        if self.target_fps <= 0:
            raise ValueError(f"target_fps must be positive, got {self.target_fps}")
        if self.trail_cell_size <= 0:
            raise ValueError(f"trail_cell_size must be positive, got {self.trail_cell_size}")
        if not 0.0 < self.trail_decay_factor < 1.0:
            raise ValueError(f"trail_decay_factor must be in (0, 1), got {self.trail_decay_factor}")
        if self.stats_interval <= 0:
            raise ValueError(f"stats_interval must be positive, got {self.stats_interval}")
