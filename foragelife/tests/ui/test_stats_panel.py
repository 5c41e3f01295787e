import random

import numpy as np
import pytest

from foragelife.ui.stats_panel import StatsPanel, chart_polyline, format_stats_label
from foragelife.world.world import World

@pytest.mark.host
def test_panel_follows_stats_events() -> None:
    world = World(800, 600, rng=random.Random(31))
    panel = StatsPanel(world)
    assert panel.latest.frame_count == 0

    for _ in range(29):
        world.step()
    assert panel.updates_received == 0

    world.step()
    assert panel.updates_received == 1
    assert panel.latest.frame_count == 30
    assert "Frame: 30" in panel.label_text()
    assert panel.label_text(paused=True).endswith("[PAUSED]")

    panel.detach()
    for _ in range(30):
        world.step()
    assert panel.updates_received == 1

@pytest.mark.host
def test_panel_charts_the_gene_history() -> None:
    world = World(800, 600, rng=random.Random(32))
    panel = StatsPanel(world)
    for _ in range(90):
        world.step()

    lines = panel.chart_lines(10.0, 10.0, 200.0, 60.0)
    assert set(lines) == {"speed", "vision", "randomness"}
    for points in lines.values():
        assert len(points) == 3
        assert points[0][0] == pytest.approx(10.0)
        assert points[-1][0] == pytest.approx(210.0)
        assert all(10.0 <= py <= 70.0 for _, py in points)

@pytest.mark.host
def test_chart_polyline_scaling() -> None:
    points = chart_polyline(np.array([1.0, 2.0, 3.0]), 0.0, 0.0, 100.0, 10.0)
    assert points == [(0.0, 0.0), (50.0, 5.0), (100.0, 10.0)]

    flat = chart_polyline(np.array([4.0, 4.0]), 0.0, 0.0, 100.0, 10.0)
    assert [py for _, py in flat] == [5.0, 5.0]

    assert chart_polyline(np.array([1.0]), 0.0, 0.0, 100.0, 10.0) == []

@pytest.mark.host
def test_format_stats_label() -> None:
    world = World(800, 600, rng=random.Random(33))
    text = format_stats_label(world.compute_stats())
    assert text.startswith("Pop: 20  Plants: 30")
    assert "[PAUSED]" not in text
