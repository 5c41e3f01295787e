"""Main entry point for foragelife.

This script initializes and runs the foraging simulation in a pyglet window.
"""

from foragelife.core.engine import Engine
from foragelife.config import SimulationConfig

def main() -> None:
    """Initializes and runs the foragelife simulation."""
    print("Initializing foragelife Engine...")
    config = SimulationConfig()
    engine = Engine(config)
    print("Starting foragelife Engine...")
    try:
        engine.run()
    finally:
        engine.shutdown()

if __name__ == "__main__":
    main()
