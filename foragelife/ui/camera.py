import pyglet
from typing import Tuple
from pyglet import math # Import pyglet.math

DEFAULT_ZOOM_LEVELS = [0.5, 0.75, 1.0, 1.5, 2.0, 3.0]
DEFAULT_PAN_SPEED = 300.0  # Pixels per second at zoom 1.0

class Camera:
    """Manages the view's position (pan) and zoom level over the simulation area."""

    def __init__(
        self,
        window: 'pyglet.window.Window',
        x: float = 0.0,
        y: float = 0.0,
        pan_speed: float = DEFAULT_PAN_SPEED,
        zoom_levels: Tuple[float, ...] = tuple(DEFAULT_ZOOM_LEVELS),
        default_zoom_index: int = 2, # 1.0
    ) -> None:
        """Initializes the camera.

        Args:
            window: The pyglet window this camera is associated with.
            x: Initial x-coordinate of the view center, in scene units.
            y: Initial y-coordinate of the view center, in scene units.
            pan_speed: Pan speed in scene units per second.
            zoom_levels: Available zoom levels.
            default_zoom_index: The initial index into zoom_levels.
        """
        self.window = window
        self.x = x
        self.y = y
        self.pan_speed = pan_speed
        self.zoom_levels = sorted(zoom_levels) or [1.0]
        if not (0 <= default_zoom_index < len(self.zoom_levels)):
            default_zoom_index = len(self.zoom_levels) // 2
        self._current_zoom_index = default_zoom_index
        self.zoom = self.zoom_levels[self._current_zoom_index]

    def pan(self, dx: float, dy: float, dt: float) -> None:
        """Pans by a direction (-1, 0 or 1 per axis), frame-rate independent."""
        self.x += dx * self.pan_speed * dt
        self.y += dy * self.pan_speed * dt

    def zoom_in(self) -> None:
        if self._current_zoom_index < len(self.zoom_levels) - 1:
            self._current_zoom_index += 1
            self.zoom = self.zoom_levels[self._current_zoom_index]

    def zoom_out(self) -> None:
        if self._current_zoom_index > 0:
            self._current_zoom_index -= 1
            self.zoom = self.zoom_levels[self._current_zoom_index]

    def get_view_matrix(self) -> 'pyglet.math.Mat4':
        """View matrix: move the camera to the origin, scale, then center on screen."""
        translate_to_center = math.Mat4.from_translation(math.Vec3(self.window.width / 2, self.window.height / 2, 0))
        scale_transform = math.Mat4.from_scale(math.Vec3(self.zoom, self.zoom, 1))
        translate_camera_to_origin = math.Mat4.from_translation(math.Vec3(-self.x, -self.y, 0))
        return translate_to_center @ scale_transform @ translate_camera_to_origin

    def screen_to_world(self, screen_x: float, screen_y: float) -> Tuple[float, float]:
        """Converts window pixel coordinates to scene coordinates."""
        view_x = screen_x - self.window.width / 2
        view_y = screen_y - self.window.height / 2
        return view_x / self.zoom + self.x, view_y / self.zoom + self.y

    def world_to_screen(self, world_x: float, world_y: float) -> Tuple[float, float]:
        screen_x = (world_x - self.x) * self.zoom + self.window.width / 2
        screen_y = (world_y - self.y) * self.zoom + self.window.height / 2
        return screen_x, screen_y
