import uuid
from typing import Any, Dict

PLANT_SIZE = 3.0
PLANT_COLOR = "green"

class Plant:
    """A stationary food item. Consumed whole by the first organism that touches it."""

    def __init__(self, x: float, y: float) -> None:
        self.id: uuid.UUID = uuid.uuid4()
        self.x: float = float(x)
        self.y: float = float(y)
        self.size: float = PLANT_SIZE
        self.color: str = PLANT_COLOR

    def to_data(self) -> Dict[str, Any]:
        """Returns a serialisable snapshot for renderers and event listeners."""
        return {
            "id": str(self.id),
            "x": self.x,
            "y": self.y,
            "size": self.size,
            "color": self.color,
        }

    def __repr__(self) -> str:
        return f"Plant(id={str(self.id)[:8]}, pos=({self.x:.1f},{self.y:.1f}))"
