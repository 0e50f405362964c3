"""
Kerbin to Duna Transfer Example
-------------------------------
This script optimizes a direct Kerbin to Duna transfer in the stock Kerbol system
(80 km parking orbits, departure during the first Kerbin year) and compares
it with the analytic Hohmann transfer between circular orbits.
The evolution of the best delta-v during the search is plotted.
"""

import logging

import numpy as np
import matplotlib.pyplot as plt

from flyby_planner import FlybySequence, PlannerConfig, TrajectoryConstraints, TrajectoryPlanner
from flyby_planner.system.kerbol import DUNA, KERBIN, kerbol_system
from flyby_planner.trajectory.maneuver import hyperbolic_burn


def kerbin_duna_demo():
    system = kerbol_system()
    config = PlannerConfig().with_solver(population_size=15, max_generations=300, seed=42)
    calendar = config.calendar

    kerbin, duna = system.body(KERBIN), system.body(DUNA)
    mu = system.central.mu

    # 1. Analytic Hohmann Transfer (Circular Approx)
    r1, r2 = kerbin.elements.sma, duna.elements.sma
    v_inf_dep = np.sqrt(mu / r1) * (np.sqrt(2 * r2 / (r1 + r2)) - 1)
    v_inf_arr = np.sqrt(mu / r2) * (1 - np.sqrt(2 * r1 / (r1 + r2)))
    dv_dep = hyperbolic_burn(v_inf_dep, kerbin.mu, kerbin.radius + 80.0)
    dv_arr = hyperbolic_burn(v_inf_arr, duna.mu, duna.radius + 80.0)

    print("--- Analytic Hohmann Transfer (Circular Approximation) ---")
    print(f"Ejection Delta-V: {dv_dep:.4f} km/s")
    print(f"Capture Delta-V: {dv_arr:.4f} km/s")
    print(f"Total Hohmann Delta-V: {dv_dep + dv_arr:.4f} km/s")
    print(f"Time of Flight: {calendar.seconds_to_days(system.hohmann_time(KERBIN, DUNA)):.1f} days")

    # 2. Optimized transfer
    sequence = FlybySequence.from_string("Kerbin-Duna", system)
    constraints = TrajectoryConstraints.from_days(0, 426, 80.0, 80.0, calendar=calendar)

    history = []
    with TrajectoryPlanner(system, config) as planner:
        handle = planner.search_optimal_trajectory(sequence, constraints, on_progress=history.append)
        trajectory = handle.result()

    print("\n--- Optimized Transfer ---")
    print(f"Departure: day {calendar.seconds_to_days(trajectory.departure_date):.1f}")
    print(f"Arrival: day {calendar.seconds_to_days(trajectory.arrival_date):.1f}")
    print(f"Duration: {calendar.seconds_to_days(trajectory.duration):.1f} days")
    for maneuver in trajectory.maneuvers:
        prograde, normal, radial = maneuver.components
        print(f"{maneuver.kind.value:<10} {maneuver.magnitude:.4f} km/s "
              f"(prograde {prograde:.4f}, normal {normal:.4f}, radial {radial:.4f})")
    ejection = trajectory.maneuvers[0].ejection_angle
    print(f"Ejection angle: {np.degrees(ejection):.1f} deg from Kerbin's prograde")
    print(f"Total Delta-V: {trajectory.total_delta_v:.4f} km/s")

    # 3. Visualization
    generations = [s.evaluated for s in history if s.best_delta_v is not None]
    best = [s.best_delta_v for s in history if s.best_delta_v is not None]

    plt.figure(figsize=(8, 5))
    plt.plot(generations, best, 'b.-', label='Best delta-v')
    plt.axhline(dv_dep + dv_arr, color='r', linestyle='--', label='Hohmann')
    plt.xlabel('Generation')
    plt.ylabel('Delta-V [km/s]')
    plt.title('Kerbin - Duna Transfer Optimization')
    plt.legend()
    plt.grid(True)
    plt.show()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    kerbin_duna_demo()
