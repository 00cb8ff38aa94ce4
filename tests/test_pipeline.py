import logging
import random

import pytest

from dispatch import (
    Direction,
    ElevatorState,
    PickupRequest,
    Pipeline,
    SameFloorError,
    SystemState,
    get_pipeline,
    initialize,
    tick,
)


def test_initialize_builds_idle_fleet_on_ground_floor():
    state = initialize(10)
    assert state.pending == ()
    assert [e.elevator_id for e in state.elevators] == list(range(10))
    assert all(e.floor == 0 and e.riding == () and e.fetch_target is None for e in state.status)


def test_initialize_rejects_negative_fleet():
    with pytest.raises(ValueError):
        initialize(-1)


def test_fetch_when_idle_and_request_elsewhere():
    end = tick(initialize(1), [PickupRequest(3, Direction.UP, 4)])
    assert end.elevators[0].fetch_target == 3
    assert end.elevators[0].floor == 1
    assert len(end.pending) == 1


def test_fetch_from_floor_one_targets_request_origin():
    state = SystemState(pending=(PickupRequest(3, Direction.UP, 4),), elevators=(ElevatorState(0, 1),))
    assert tick(state).elevators[0].fetch_target == 3


def test_idle_elevator_parks_then_clears_fetch_on_ground():
    state = SystemState(elevators=(ElevatorState(0, 1),))
    first = tick(state)
    assert first.elevators[0].fetch_target == 0
    assert first.elevators[0].floor == 0

    second = tick(first)
    assert second.elevators[0].fetch_target is None
    assert second.elevators[0].is_idle


def test_riding_elevator_moves_toward_head_destination():
    request = PickupRequest(2, Direction.UP, 3)
    end = tick(SystemState(elevators=(ElevatorState(0, 1, (request,)),)))
    assert end.elevators[0].floor == 2
    assert end.elevators[0].riding == (request,)


def test_load_when_on_request_floor():
    state = SystemState(elevators=(ElevatorState(0, 1),))
    end = tick(state, [PickupRequest(1, Direction.UP, 3)])
    assert len(end.elevators[0].riding) == 1
    assert end.pending == ()


def test_unload_when_destination_reached():
    state = SystemState(elevators=(ElevatorState(0, 1, (PickupRequest(2, Direction.UP, 3),)),))
    end = tick(tick(state))
    assert end.elevators[0].floor == 3
    assert end.elevators[0].riding == ()


def test_full_ride_from_fetch_to_drop_off():
    state = tick(initialize(1), [PickupRequest(2, Direction.UP, 4)])
    floors = [state.elevators[0].floor]
    for _ in range(5):
        state = tick(state)
        floors.append(state.elevators[0].floor)
    # 0 -> 2 fetching, board on 2, ride to 4, then head back to park.
    assert floors == [1, 2, 3, 4, 3, 2]
    assert state.request_count == 0


def test_inconsistent_snapshot_raises_same_floor():
    broken = ElevatorState(0, floor=3, riding=(PickupRequest(1, Direction.UP, 3),))
    with pytest.raises(SameFloorError):
        tick(SystemState(elevators=(broken,)))


def test_nearest_first_reprioritizes_ascending():
    requests = (PickupRequest(3, Direction.UP, 4), PickupRequest(2, Direction.UP, 3))
    end = get_pipeline("nearest_first").tick(SystemState(elevators=(ElevatorState(0, 1, requests),)))
    assert end.elevators[0].riding[0].origin == 2


def test_nearest_first_reprioritizes_descending():
    requests = (PickupRequest(3, Direction.DOWN, 2), PickupRequest(2, Direction.DOWN, 1))
    end = get_pipeline("nearest_first").tick(SystemState(elevators=(ElevatorState(0, 5, requests),)))
    assert end.elevators[0].riding_direction() == Direction.DOWN
    assert end.elevators[0].riding[0].origin == 3


def test_default_pipeline_keeps_load_order():
    requests = (PickupRequest(3, Direction.UP, 4), PickupRequest(2, Direction.UP, 3))
    end = tick(SystemState(elevators=(ElevatorState(0, 1, requests),)))
    assert end.elevators[0].riding == requests


def test_get_pipeline_registry():
    assert get_pipeline("FCFS").name == "fcfs"
    assert "reprioritize_stage" in repr(get_pipeline("nearest_first"))
    with pytest.raises(ValueError, match="Unknown pipeline"):
        get_pipeline("scan")


def test_custom_pipeline_runs_stages_in_order():
    seen = []

    def record(label):
        def stage(state):
            seen.append(label)
            return state

        return stage

    pipeline = Pipeline("custom", [record("a"), record("b")])
    state = initialize(1)
    assert pipeline(state) is state
    assert seen == ["a", "b"]


def test_tick_logs_elevator_transitions(caplog):
    with caplog.at_level(logging.DEBUG, logger="dispatch.pipeline"):
        tick(initialize(1), [PickupRequest(3, Direction.UP, 4)])
    assert "Elevator 0 on 0" in caplog.text


def _random_request(rng, floors=8):
    origin, destination = rng.sample(range(floors), 2)
    return PickupRequest.between(origin, destination)


def test_requests_are_conserved_and_never_double_loaded():
    rng = random.Random(11)
    state = initialize(3)
    for _ in range(200):
        new = [_random_request(rng) for _ in range(rng.randint(0, 2))]
        held_before = {id(r) for r in state.pending + tuple(new)}
        held_before |= {id(r) for e in state.elevators for r in e.riding}

        state = tick(state, new)

        held = list(state.pending) + [r for e in state.elevators for r in e.riding]
        held_after = {id(r) for r in held}
        assert len(held_after) == len(held)
        assert held_after <= held_before
        assert state.request_count == len(held)


def test_snapshots_are_not_mutated_by_ticks():
    state = tick(initialize(2), [PickupRequest(0, Direction.UP, 3), PickupRequest(5, Direction.DOWN, 0)])
    frozen = state.snapshot()
    for _ in range(4):
        tick(state)
    assert state.snapshot() == frozen
