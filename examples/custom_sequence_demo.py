"""
Custom Flyby Sequence Example
-----------------------------
This script searches a Kerbin - Eve - Kerbin - Jool trajectory entered as text,
prints the progress while the search runs on the planner's worker thread,
and cancels it when the wall-clock budget is exhausted.
"""

import logging
import time

import numpy as np

from flyby_planner import FlybySequence, PlannerConfig, TrajectoryConstraints, TrajectoryPlanner
from flyby_planner.system.kerbol import kerbol_system

WALL_CLOCK_BUDGET = 20.0  # seconds


def custom_sequence_demo():
    system = kerbol_system()
    config = PlannerConfig().with_solver(population_size=20, max_generations=1000, seed=7)
    calendar = config.calendar

    sequence = FlybySequence.from_string("Kerbin-Eve-Kerbin-Jool", system)
    constraints = TrajectoryConstraints.from_days(0, 2 * 426, 100.0, 500.0, max_duration_days=6 * 426,
                                                  calendar=calendar)
    print(f"Searching {sequence} ({sequence.to_string()})")

    with TrajectoryPlanner(system, config) as planner:
        handle = planner.search_optimal_trajectory(sequence, constraints)

        t_start = time.perf_counter()
        while not handle.done():
            time.sleep(1.0)
            snapshot = handle.progress
            best = planner.current_best_delta_v()
            if snapshot is not None:
                best_text = "none yet" if best is None else f"{best:.4f} km/s"
                print(f"Generation {snapshot.evaluated}/{snapshot.total}, best: {best_text}")
            if time.perf_counter() - t_start > WALL_CLOCK_BUDGET:
                print("Wall-clock budget exhausted, cancelling.")
                planner.cancel_trajectory_search()
                break

        outcome = handle.outcome()

    if outcome.is_cancelled:
        best = planner.current_best_delta_v()
        print(f"Search cancelled, no trajectory returned (best seen: {best})")
        return
    if outcome.is_failed:
        print(f"Search failed: {outcome.error}")
        return

    trajectory = outcome.value
    print(f"\nTotal Delta-V: {trajectory.total_delta_v:.4f} km/s")
    print(f"Duration: {calendar.seconds_to_days(trajectory.duration):.1f} days")
    for flyby in trajectory.flybys:
        name = system.body(flyby.body_id).name
        print(f"{name} flyby on day {calendar.seconds_to_days(flyby.periapsis_date):.1f}: "
              f"altitude {flyby.periapsis_altitude:.1f} km, "
              f"inclination {np.degrees(flyby.inclination):.1f} deg, "
              f"SOI from day {calendar.seconds_to_days(flyby.soi_enter_date):.1f} "
              f"to {calendar.seconds_to_days(flyby.soi_exit_date):.1f}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    custom_sequence_demo()
