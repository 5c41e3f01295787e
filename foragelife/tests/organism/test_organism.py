import math
import random

import pytest

from foragelife.agents.components import Genes, MIN_SPEED
from foragelife.core.genetics import hsl_color
from foragelife.core.organism import (
    BOUNDARY_MARGIN,
    MATING_COST,
    MAX_ENERGY,
    Organism,
    normalize_angle,
)
from foragelife.core.steering import Behaviour
from foragelife.world.plant import Plant
from foragelife.world.trails import TrailField

WORLD_W = 800.0
WORLD_H = 600.0

def make_organism(x: float = 400.0, y: float = 300.0, energy: float = 80.0, hue: float = 100.0,
                  seed: int = 7) -> Organism:
    return Organism(x, y, energy, hsl_color(hue), Genes(1.0, 50.0, 0.5), rng=random.Random(seed))

@pytest.mark.organism
def test_energy_drops_by_metabolic_cost_each_tick() -> None:
    org = make_organism(energy=80.0)
    for _ in range(10):
        org.move([], None, [org], WORLD_W, WORLD_H)
    assert org.energy == pytest.approx(79.0)
    assert org.age == 10

@pytest.mark.organism
def test_genes_setter_reapplies_floors() -> None:
    org = make_organism()
    org.genes = {"speed": 0.0, "vision": 30.0, "randomness": 0.5}
    assert org.genes.speed == MIN_SPEED
    assert isinstance(org.genes, Genes)

@pytest.mark.organism
def test_eats_touching_plant_and_caps_energy() -> None:
    org = make_organism(x=100.0, y=100.0, energy=95.0)
    near = Plant(105.0, 100.0)
    plants = [near]
    eaten = org.try_to_eat(plants)
    assert eaten is near
    assert plants == []
    assert org.energy == MAX_ENERGY

@pytest.mark.organism
def test_plant_at_exact_contact_distance_is_not_eaten() -> None:
    org = make_organism(x=100.0, y=100.0, energy=40.0)
    plants = [Plant(108.0, 100.0)] # size 5 + 3
    assert org.try_to_eat(plants) is None
    assert len(plants) == 1
    assert org.energy == 40.0

@pytest.mark.organism
def test_eats_at_most_one_plant_scanning_from_the_end() -> None:
    org = make_organism(x=100.0, y=100.0, energy=40.0)
    first, last = Plant(101.0, 100.0), Plant(99.0, 100.0)
    plants = [first, last]
    assert org.try_to_eat(plants) is last
    assert plants == [first]
    assert org.energy == pytest.approx(60.0)

@pytest.mark.organism
@pytest.mark.parametrize("energy,expect_child", [(59.0, False), (60.0, True)])
def test_sexual_reproduction_energy_gate(energy: float, expect_child: bool) -> None:
    a = make_organism(x=100.0, y=100.0, energy=energy, seed=1)
    b = make_organism(x=119.0, y=100.0, energy=energy, seed=2)
    child = a.try_to_reproduce_with(b)
    if expect_child:
        assert child is not None
        assert a.energy == pytest.approx(energy - MATING_COST)
        assert b.energy == pytest.approx(energy - MATING_COST)
        assert child.energy == 50.0
        assert abs(child.x - 109.5) <= 5.0
        assert abs(child.y - 100.0) <= 5.0
        assert child.hue == 100.0
    else:
        assert child is None
        assert a.energy == energy and b.energy == energy

@pytest.mark.organism
def test_no_mating_at_distance_or_with_incompatible_colour() -> None:
    a = make_organism(x=100.0, y=100.0, energy=90.0, hue=100.0)
    far = make_organism(x=120.0, y=100.0, energy=90.0, hue=100.0)
    other_kind = make_organism(x=105.0, y=100.0, energy=90.0, hue=200.0)
    assert a.try_to_reproduce_with(far) is None
    assert a.try_to_reproduce_with(other_kind) is None
    assert a.try_to_reproduce_with(a) is None
    assert a.energy == 90.0

@pytest.mark.organism
def test_asexual_split_halves_energy() -> None:
    parent = make_organism(x=200.0, y=200.0, energy=100.0)
    child = parent.maybe_reproduce()
    assert child is not None
    assert parent.energy == 50.0
    assert child.energy == 50.0
    assert abs(child.x - 200.0) <= 10.0 and abs(child.y - 200.0) <= 10.0
    assert abs(child.hue - parent.hue) <= 20.0

    assert make_organism(energy=99.9).maybe_reproduce() is None

@pytest.mark.organism
def test_food_overrides_periodic_redirect() -> None:
    org = make_organism(x=100.0, y=100.0)
    org.movement.direction_change_timer = 200
    plant = Plant(130.0, 100.0)
    behaviour = org.move([plant], None, [org], WORLD_W, WORLD_H)
    assert behaviour is Behaviour.FOOD_SEEKING
    assert org.movement.direction_change_timer == 201, "Redirect must not fire while food is visible."
    assert org.movement.last_direction == pytest.approx(0.0)
    assert org.x > 100.0

@pytest.mark.organism
def test_periodic_redirect_without_food_resets_timer() -> None:
    org = make_organism()
    org.movement.direction_change_timer = 150
    assert org.move([], None, [org], WORLD_W, WORLD_H) is Behaviour.PERIODIC_REDIRECT
    assert org.movement.direction_change_timer == 0

@pytest.mark.organism
def test_stuck_recovery_does_not_remember_heading() -> None:
    org = make_organism()
    org.movement.stuck_counter = 40
    org.movement.last_direction = 1.0
    behaviour = org.move([], None, [org], WORLD_W, WORLD_H)
    assert behaviour is Behaviour.STUCK_RECOVERY
    assert org.movement.stuck_counter == 0
    assert org.movement.last_direction == 1.0

@pytest.mark.organism
def test_stuck_recovery_near_left_wall_heads_inward() -> None:
    org = make_organism(x=40.0, y=300.0)
    org.movement.stuck_counter = 40
    x_before = org.x
    assert org.move([], None, [org], WORLD_W, WORLD_H) is Behaviour.STUCK_RECOVERY
    assert org.x > x_before

@pytest.mark.organism
def test_hard_stuck_failsafe(capsys) -> None:
    org = make_organism()
    org.movement.stuck_counter = 150
    org.movement.direction_change_timer = 200 # redirect outranks stuck recovery
    assert org.move([], None, [org], WORLD_W, WORLD_H) is Behaviour.PERIODIC_REDIRECT
    assert org.movement.stuck_counter == 0
    assert "forced unstuck" in capsys.readouterr().out

@pytest.mark.organism
def test_crowded_organism_heads_away_from_neighbours() -> None:
    org = make_organism()
    neighbours = [make_organism(x=410.0, y=300.0 + dy, seed=i) for i, dy in enumerate((-5.0, 0.0, 5.0, 2.0))]
    everyone = [org] + neighbours
    assert org.is_crowded(everyone)
    assert org.move([], None, everyone, WORLD_W, WORLD_H) is Behaviour.CROWD_DISPERSAL
    assert math.cos(org.movement.last_direction) < 0
    assert org.x < 400.0

@pytest.mark.organism
def test_hungry_search_near_left_edge_points_inward() -> None:
    org = make_organism(x=20.0, y=300.0, energy=30.0)
    assert org.move([], None, [org], WORLD_W, WORLD_H) is Behaviour.HUNGRY_SEARCH
    assert -math.pi / 3 - 1e-9 <= org.movement.last_direction <= math.pi / 3 + 1e-9

@pytest.mark.organism
def test_hungry_organism_sees_further() -> None:
    org = make_organism(energy=80.0) # vision 50
    plant = Plant(460.0, 300.0)
    assert org.find_closest_plant([plant]) is None
    org.energy = 40.0 # vision 75 while hungry
    assert org.find_closest_plant([plant]) is plant

@pytest.mark.organism
def test_positions_stay_inside_the_margin() -> None:
    rng = random.Random(99)
    organisms = [
        Organism(rng.uniform(10, 90), rng.uniform(10, 90), 80.0, rng=rng) for _ in range(5)
    ]
    for _ in range(500):
        for org in organisms:
            org.move([], None, organisms, 100.0, 100.0)
            assert BOUNDARY_MARGIN <= org.x <= 100.0 - BOUNDARY_MARGIN
            assert BOUNDARY_MARGIN <= org.y <= 100.0 - BOUNDARY_MARGIN

@pytest.mark.organism
def test_trail_is_deposited_only_when_fed() -> None:
    field = TrailField(WORLD_W, WORLD_H)
    fed = make_organism(energy=80.0)
    fed.move([], field, [fed], WORLD_W, WORLD_H)
    cell = field.cell(*field.cell_of(fed.x, fed.y))
    assert cell is not None
    assert cell.intensity == 1.0
    assert cell.hue == fed.hue

    field.clear()
    hungry = make_organism(energy=30.0)
    hungry.move([], field, [hungry], WORLD_W, WORLD_H)
    assert field.active_cell_count() == 0

@pytest.mark.organism
def test_normalize_angle() -> None:
    assert normalize_angle(3 * math.pi) == pytest.approx(math.pi)
    assert normalize_angle(-math.pi / 2) == pytest.approx(-math.pi / 2)
    assert normalize_angle(2 * math.pi + 0.5) == pytest.approx(0.5)

@pytest.mark.organism
def test_to_data_snapshot() -> None:
    org = make_organism()
    data = org.to_data()
    assert data["id"] == str(org.id)
    assert set(data) == {"id", "x", "y", "energy", "color", "size", "genes", "last_direction", "age"}
    assert data["genes"] == {"speed": 1.0, "vision": 50.0, "randomness": 0.5}

def wall_organism(x: float, y: float, heading: float, scripted_rng, jitter_draws) -> Organism:
    org = make_organism(x=x, y=y)
    org.movement.last_direction = heading
    org.rng = scripted_rng(jitter_draws)
    return org

@pytest.mark.organism
def test_left_wall_reflects_heading_horizontally(scripted_rng) -> None:
    org = wall_organism(15.0, 300.0, 3.0, scripted_rng, [0.5]) # zero jitter
    org._apply_movement(-10.0, 0.0, WORLD_W, WORLD_H)
    assert org.x == BOUNDARY_MARGIN
    assert org.y == 300.0
    assert org.movement.last_direction == pytest.approx(math.pi - 3.0)

@pytest.mark.organism
def test_reflection_jitter_bounds(scripted_rng) -> None:
    low = wall_organism(15.0, 300.0, 3.0, scripted_rng, [0.0])
    low._apply_movement(-10.0, 0.0, WORLD_W, WORLD_H)
    assert low.movement.last_direction == pytest.approx(math.pi - 3.0 - 0.25)

    # pi + 3.0 + 0.25 wraps back into (-pi, pi]
    wrapped = wall_organism(785.0, 300.0, -3.0, scripted_rng, [1.0])
    wrapped._apply_movement(10.0, 0.0, WORLD_W, WORLD_H)
    assert wrapped.x == WORLD_W - BOUNDARY_MARGIN
    assert wrapped.movement.last_direction == pytest.approx(math.pi + 3.0 + 0.25 - 2 * math.pi)

@pytest.mark.organism
def test_top_wall_negates_heading(scripted_rng) -> None:
    org = wall_organism(400.0, 12.0, -2.0, scripted_rng, [0.5])
    org._apply_movement(0.0, -5.0, WORLD_W, WORLD_H)
    assert org.y == BOUNDARY_MARGIN
    assert org.movement.last_direction == pytest.approx(2.0)

@pytest.mark.organism
def test_corner_reflects_on_both_axes(scripted_rng) -> None:
    org = wall_organism(12.0, 12.0, -2.5, scripted_rng, [0.5, 0.5])
    org._apply_movement(-10.0, -10.0, WORLD_W, WORLD_H)
    assert (org.x, org.y) == (BOUNDARY_MARGIN, BOUNDARY_MARGIN)
    # x reflection: pi + 2.5 wraps to 2.5 - pi; y reflection negates it.
    assert org.movement.last_direction == pytest.approx(math.pi - 2.5)

@pytest.mark.organism
def test_no_reflection_inside_the_margin(scripted_rng) -> None:
    org = wall_organism(400.0, 300.0, 1.0, scripted_rng, [])
    org._apply_movement(3.0, -3.0, WORLD_W, WORLD_H)
    assert (org.x, org.y) == (403.0, 297.0)
    assert org.movement.last_direction == 1.0
    assert org.rng.draws == 0
