import colorsys
import esper
import pyglet
from typing import List, Tuple, TYPE_CHECKING

from ..core.genetics import parse_hue
from ..ui.stats_panel import CHART_COLORS, StatsPanel

if TYPE_CHECKING:
    from ..ui.camera import Camera
    from ..world.world import World

TRAIL_DRAW_THRESHOLD = 0.1
TRAIL_MAX_ALPHA = 0.3
BACKGROUND_COLOR = (240, 248, 255, 255)
PLANT_RGB = (34, 139, 34)
HUNGRY_RING_RGB = (220, 30, 30)
CHART_BOX = (10.0, 10.0, 200.0, 60.0) # x, y, width, height in screen pixels
CHART_BACKGROUND = (255, 255, 255, 200)

def hue_to_rgb(hue: float, saturation: float = 0.7, lightness: float = 0.5) -> Tuple[int, int, int]:
    """Converts an HSL hue (degrees) to an 8-bit RGB tuple."""
    r, g, b = colorsys.hls_to_rgb((hue % 360.0) / 360.0, lightness, saturation)
    return int(r * 255), int(g * 255), int(b * 255)

class System(esper.Processor):
    """Base class for all systems run by the engine through esper.

    The esper module functions (e.g., esper.process) drive every registered
    processor once per engine update.
    """
    def __init__(self) -> None:
        super().__init__()

class SimulationSystem(System):
    """Advances the world by one tick per engine frame.

    The engine's clock already paces frames at the target rate, so the world's own
    frame limiter is bypassed here.
    """
    def __init__(self, world: 'World') -> None:
        super().__init__()
        self.world = world
        self.paused: bool = False
        self.ticks_run: int = 0

    def process(self, dt: float) -> None:
        if self.paused:
            return
        self.world.step()
        self.ticks_run += 1

    def toggle_pause(self) -> None:
        self.paused = not self.paused
        print(f"[SimulationSystem] {'Paused' if self.paused else 'Resumed'} at frame {self.world.frame_count}.")

    def reset(self) -> None:
        self.world.reset()
        print("[SimulationSystem] World reset.")

class InputSystem(System):
    """Camera controls plus the host interactions: pause, reset and click-to-place."""
    def __init__(self, window: 'pyglet.window.Window', camera: 'Camera', simulation: SimulationSystem) -> None:
        super().__init__()
        self.window = window
        self.camera = camera
        self.simulation = simulation
        self.keys = pyglet.window.key.KeyStateHandler()
        self.window.push_handlers(self.keys)
        self.window.push_handlers(
            on_key_press=self.on_key_press,
            on_mouse_press=self.on_mouse_press,
            on_mouse_scroll=self.on_mouse_scroll,
        )

    def process(self, dt: float) -> None:
        key = pyglet.window.key
        dx, dy = 0.0, 0.0
        if self.keys[key.LEFT] or self.keys[key.A]:
            dx -= 1.0
        if self.keys[key.RIGHT] or self.keys[key.D]:
            dx += 1.0
        if self.keys[key.UP] or self.keys[key.W]:
            dy += 1.0
        if self.keys[key.DOWN] or self.keys[key.S]:
            dy -= 1.0
        if dx != 0.0 or dy != 0.0:
            self.camera.pan(dx, dy, dt)

    def on_key_press(self, symbol: int, modifiers: int) -> None:
        if symbol == pyglet.window.key.SPACE:
            self.simulation.toggle_pause()
        elif symbol == pyglet.window.key.R:
            self.simulation.reset()

    def on_mouse_press(self, x: int, y: int, button: int, modifiers: int) -> None:
        world = self.simulation.world
        scene_x, scene_y = self.camera.screen_to_world(x, y)
        # The simulation's y axis points down; the scene's points up.
        sim_x, sim_y = scene_x, world.height - scene_y
        if button == pyglet.window.mouse.LEFT:
            world.add_organism(sim_x, sim_y)
        elif button == pyglet.window.mouse.RIGHT:
            world.add_plant(sim_x, sim_y)

    def on_mouse_scroll(self, x: int, y: int, scroll_x: float, scroll_y: float) -> None:
        if scroll_y > 0:
            self.camera.zoom_in()
        elif scroll_y < 0:
            self.camera.zoom_out()

class RenderSystem(System):
    """Draws trails, plants and organisms, rebuilding the shape batch every frame.

    The stats label and the gene-history chart come from the world's stats_update
    events through a StatsPanel, not from recomputing stats per frame.
    """
    def __init__(self, window: 'pyglet.window.Window', camera: 'Camera', world: 'World') -> None:
        super().__init__()
        self.window = window
        self.camera = camera
        self.world = world
        self.stats_panel = StatsPanel(world)
        self.trail_group = pyglet.graphics.Group(order=0)
        self.plant_group = pyglet.graphics.Group(order=1)
        self.ring_group = pyglet.graphics.Group(order=2)
        self.organism_group = pyglet.graphics.Group(order=3)
        self.chart_background_group = pyglet.graphics.Group(order=0)
        self.chart_line_group = pyglet.graphics.Group(order=1)

        self.fps_label = pyglet.text.Label(
            'FPS: 0',
            font_name='Arial', font_size=12,
            x=10, y=self.window.height - 10, anchor_x='left', anchor_y='top',
            color=(0, 0, 0, 255),
        )
        self.stats_label = pyglet.text.Label(
            '',
            font_name='Arial', font_size=11,
            x=10, y=self.window.height - 30, anchor_x='left', anchor_y='top',
            color=(0, 0, 0, 255),
        )

    def _to_scene(self, x: float, y: float) -> Tuple[float, float]:
        return x, self.world.height - y

    def _build_shapes(self, batch: 'pyglet.graphics.Batch') -> List['pyglet.shapes.ShapeBase']:
        shapes: List['pyglet.shapes.ShapeBase'] = []
        field = self.world.trail_field
        size = field.cell_size
        rows, cols = field.intensity.nonzero()
        for row, col in zip(rows, cols):
            intensity = field.intensity[row, col]
            if intensity <= TRAIL_DRAW_THRESHOLD:
                continue
            r, g, b = hue_to_rgb(field.hue[row, col], lightness=0.6)
            alpha = int(intensity * TRAIL_MAX_ALPHA * 255)
            x, y = self._to_scene(col * size, (row + 1) * size)
            shapes.append(pyglet.shapes.Rectangle(
                x, y, size, size, color=(r, g, b, alpha), batch=batch, group=self.trail_group
            ))

        for plant in self.world.plants:
            x, y = self._to_scene(plant.x, plant.y)
            shapes.append(pyglet.shapes.Circle(
                x, y, plant.size, color=PLANT_RGB, batch=batch, group=self.plant_group
            ))

        for organism in self.world.organisms:
            x, y = self._to_scene(organism.x, organism.y)
            if organism.is_hungry:
                shapes.append(pyglet.shapes.Circle(
                    x, y, organism.size + 2, color=HUNGRY_RING_RGB, batch=batch, group=self.ring_group
                ))
            shapes.append(pyglet.shapes.Circle(
                x, y, organism.size, color=hue_to_rgb(parse_hue(organism.color)),
                batch=batch, group=self.organism_group
            ))
        return shapes

    def _build_chart(self, batch: 'pyglet.graphics.Batch') -> List['pyglet.shapes.ShapeBase']:
        x, y, width, height = CHART_BOX
        shapes: List['pyglet.shapes.ShapeBase'] = [
            pyglet.shapes.Rectangle(x, y, width, height, color=CHART_BACKGROUND, batch=batch,
                                   group=self.chart_background_group)
        ]
        for name, points in self.stats_panel.chart_lines(x, y, width, height).items():
            color = CHART_COLORS[name]
            for (x1, y1), (x2, y2) in zip(points, points[1:]):
                shapes.append(pyglet.shapes.Line(x1, y1, x2, y2, color=color, batch=batch, group=self.chart_line_group))
        return shapes

    def update_fps_display(self, fps: float) -> None:
        self.fps_label.text = f"FPS: {fps:.1f}"

    def process_main_render_loop(self, dt: float, paused: bool = False) -> None:
        self.window.clear()
        self.window.view = self.camera.get_view_matrix()

        background = pyglet.shapes.Rectangle(0, 0, self.world.width, self.world.height, color=BACKGROUND_COLOR)
        background.draw()

        batch = pyglet.graphics.Batch()
        shapes = self._build_shapes(batch) # Keep references alive until drawn
        batch.draw()
        del shapes

        # UI is drawn in screen space.
        self.window.view = pyglet.math.Mat4()
        ui_batch = pyglet.graphics.Batch()
        chart = self._build_chart(ui_batch)
        ui_batch.draw()
        del chart

        self.stats_label.text = self.stats_panel.label_text(paused)
        self.fps_label.y = self.window.height - 10
        self.stats_label.y = self.window.height - 30
        self.fps_label.draw()
        self.stats_label.draw()
