"""CLI for running offline dispatch scenarios defined in JSON configs."""
from __future__ import annotations

import argparse
import json
import logging
from collections import defaultdict
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Optional

from dispatch import PickupRequest
from simulation import Simulation, SimulationConfig

logger = logging.getLogger("run_scenario")


def build_simulation(config: Dict) -> Simulation:
    building_cfg = config.get("building", {})
    arrivals_cfg = config.get("arrivals", {})
    sim_config = SimulationConfig(
        num_floors=building_cfg.get("num_floors", 10),
        elevator_count=building_cfg.get("elevator_count", 2),
        ground_arrival_probability=arrivals_cfg.get("ground", 0.25),
        other_arrival_probability=arrivals_cfg.get("other", 0.1),
        random_seed=config.get("random_seed"),
        pipeline=config.get("pipeline", "fcfs"),
        metrics_hook_interval=config.get("metrics_hook_interval", 10),
    )
    return Simulation(sim_config)


def scripted_requests(config: Dict) -> Dict[int, List[PickupRequest]]:
    """Group the scenario's fixed requests by the tick they arrive on."""
    by_time: Dict[int, List[PickupRequest]] = defaultdict(list)
    for entry in config.get("requests", []):
        request = PickupRequest.between(entry["origin"], entry["destination"])
        by_time[entry.get("time", 0)].append(request)
    return by_time


def run_simulation(simulation: Simulation, config: Dict, duration: int) -> List[Dict]:
    scripted = scripted_requests(config)
    snapshots: List[Dict] = []

    for _ in range(duration):
        simulation.step(scripted.get(simulation.current_time, []))
        if simulation.current_time % simulation.metrics_hook_interval == 0:
            snapshots.append(asdict(simulation.metrics.snapshot(simulation.current_time)))
    return snapshots


def save_results(output_path: Optional[Path], data: Dict) -> None:
    if not output_path:
        return
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(data, indent=2))


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("config", type=Path, help="Path to a JSON scenario configuration file")
    parser.add_argument(
        "--output",
        type=Path,
        help="Optional file path to write metrics snapshots as JSON",
    )
    parser.add_argument("--ticks", type=int, help="Override the scenario duration")
    parser.add_argument("--verbose", action="store_true", help="Log every elevator transition")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    config = json.loads(args.config.read_text())
    duration = args.ticks if args.ticks is not None else config.get("duration", 300)
    simulation = build_simulation(config)
    snapshots = run_simulation(simulation, config, duration)

    final_metrics = asdict(simulation.metrics.snapshot(simulation.current_time))
    results = {
        "scenario": config.get("name", args.config.stem),
        "description": config.get("description"),
        "duration": duration,
        "pipeline": simulation.pipeline.name,
        "final_metrics": final_metrics,
        "metrics_over_time": snapshots,
        "final_state": simulation.state.snapshot(),
    }

    save_results(args.output, results)

    print(f"Scenario: {results['scenario']}")
    if results["description"]:
        print(results["description"])
    print(f"Pipeline: {results['pipeline']}")
    print(f"Duration: {results['duration']} ticks")
    print("Final metrics:")
    for key, value in final_metrics.items():
        print(f"  {key}: {value}")
    print(simulation.state)
    if args.output:
        logger.info("saved metrics to %s", args.output)


if __name__ == "__main__":
    main()
