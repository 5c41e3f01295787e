import random
from typing import Callable, Iterable, List

import pyglet
import pytest

# No display is needed by any test; keep pyglet from probing for one.
pyglet.options['headless'] = True

class ScriptedRandom(random.Random):
    """Replays a fixed list of random() draws, then settles on a default.

    ``uniform(a, b)`` is ``a + (b - a) * random()``, so scripting random() also
    scripts every uniform draw.
    """
    def __init__(self, values: Iterable[float], default: float = 0.5) -> None:
        super().__init__(0)
        self.values: List[float] = list(values)
        self.default = default
        self.draws = 0

    def random(self) -> float:
        self.draws += 1
        if self.values:
            return self.values.pop(0)
        return self.default

@pytest.fixture
def scripted_rng() -> Callable[..., ScriptedRandom]:
    return ScriptedRandom

@pytest.fixture
def seeded_rng() -> random.Random:
    return random.Random(1234)
