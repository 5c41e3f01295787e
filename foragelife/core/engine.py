import esper
import pyglet
import random
import time
from typing import Optional

from ..config import SimulationConfig
from ..core.systems import InputSystem, RenderSystem, SimulationSystem
from ..ui.camera import Camera
from ..world.world import World

class Engine:
    """Manages the window, the esper processors and the main loop around a World.

    Args:
        config: Simulation and host settings.
        rng: Random source handed to the World; unseeded if None.
    """

    def __init__(self, config: SimulationConfig, rng: Optional[random.Random] = None) -> None:
        self.config = config
        self.window: Optional['pyglet.window.Window'] = None
        self.camera: Optional[Camera] = None
        self.stop_requested = False

        self.world: World = World(config.world_width, config.world_height, config, rng=rng)

        self.simulation_system: Optional[SimulationSystem] = None
        self.input_system: Optional[InputSystem] = None
        self.render_system: Optional[RenderSystem] = None

        self.frame_count = 0
        self.fps_update_interval = 1.0  # Update FPS display every N seconds
        self.time_since_last_fps_update = 0.0
        self.current_fps = 0.0

        self._initialize_pyglet()
        self.initialize_systems()

        if self.window:
            pyglet.clock.schedule_interval(self.update, 1 / self.config.target_fps)

    def _initialize_pyglet(self) -> None:
        if self.config.headless_mode:
            print("[Engine] Headless mode: Pyglet window not initialized.")
            return
        try:
            pyglet.options['debug_gl'] = self.config.pyglet_debug_gl
            self.window = pyglet.window.Window(
                width=self.config.window_width,
                height=self.config.window_height,
                caption="foragelife",
                resizable=True,
            )
            self.camera = Camera(
                self.window,
                x=self.config.world_width / 2,
                y=self.config.world_height / 2,
                pan_speed=self.config.camera_pan_speed,
            )

            @self.window.event
            def on_draw(dt: float = 0.0) -> None:
                if self.render_system:
                    paused = self.simulation_system.paused if self.simulation_system else False
                    self.render_system.process_main_render_loop(dt, paused=paused)

            @self.window.event
            def on_close() -> None:
                print("[Engine] Window closed, exiting engine...")
                self.stop_requested = True
        except Exception as e:
            print(f"[Engine] Failed to initialize Pyglet window: {e}")
            self.window = None
            self.camera = None

    def initialize_systems(self) -> None:
        self.simulation_system = SimulationSystem(self.world)
        esper.add_processor(self.simulation_system, priority=10)
        print("[Engine] Added system: SimulationSystem with priority 10")

        if self.window and self.camera:
            self.input_system = InputSystem(self.window, self.camera, self.simulation_system)
            esper.add_processor(self.input_system, priority=20) # Higher priority runs first
            print("[Engine] Added system: InputSystem with priority 20")

            # Drawn from on_draw, not through esper.process.
            self.render_system = RenderSystem(self.window, self.camera, self.world)

    def update(self, dt: float) -> None:
        if self.stop_requested:
            if self.window:
                pyglet.app.exit()
            return

        esper.process(dt)

        self.frame_count += 1
        self.time_since_last_fps_update += dt
        if self.time_since_last_fps_update >= self.fps_update_interval:
            self.current_fps = self.frame_count / self.time_since_last_fps_update
            self.frame_count = 0
            self.time_since_last_fps_update = 0.0
            if self.render_system:
                self.render_system.update_fps_display(self.current_fps)

    def run(self) -> None:
        print("[Engine] Starting engine loop...")
        if self.window:
            pyglet.app.run()
        else:
            print("[Engine] Running without a window...")
            last_time = time.perf_counter()
            while not self.stop_requested:
                current_time = time.perf_counter()
                dt = current_time - last_time
                last_time = current_time
                self.update(dt)

                if self.config.max_ticks and self.simulation_system.ticks_run >= self.config.max_ticks:
                    self.stop_requested = True

                # Approximate sleep to hold target_fps
                time_to_sleep = (1.0 / self.config.target_fps) - (time.perf_counter() - current_time)
                if time_to_sleep > 0:
                    time.sleep(time_to_sleep)
        print("[Engine] Engine loop stopped.")

    def shutdown(self) -> None:
        print("[Engine] Shutting down foragelife Engine...")
        self.stop_requested = True
        if self.window:
            pyglet.clock.unschedule(self.update)
        if self.render_system:
            self.render_system.stats_panel.detach()
        for system_type in (SimulationSystem, InputSystem):
            esper.remove_processor(system_type)
        print("[Engine] foragelife Engine finished.")
