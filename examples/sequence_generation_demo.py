"""
Flyby Sequence Generation Example
---------------------------------
This script enumerates the gravity assist sequences from Kerbin to Jool
in the stock Kerbol system, with at most two swing-bys, one resonant
return and one back leg, and prints them with their metadata.
"""

import logging
from collections import Counter

from flyby_planner import SearchParameters, TrajectoryPlanner
from flyby_planner.system.kerbol import JOOL, KERBIN, kerbol_system


def sequence_generation_demo():
    system = kerbol_system()
    params = SearchParameters(
        departure_id=KERBIN,
        destination_id=JOOL,
        max_swing_bys=2,
        max_resonant_swing_bys=1,
        max_back_legs=1,
        max_back_spacing=1,
    )

    def show_progress(snapshot):
        print(f"\rSequences: {snapshot.evaluated}/{snapshot.total} ({snapshot.percent:5.1f}%)", end="")

    with TrajectoryPlanner(system) as planner:
        handle = planner.generate_sequences(params, on_progress=show_progress)
        sequences = handle.result()
    print()

    print(f"\n--- {len(sequences)} sequences from Kerbin to Jool ---")
    for sequence in sequences:
        print(f"{sequence.to_string():<12} {str(sequence):<32} "
              f"swing-bys: {sequence.swing_bys}  resonant: {sequence.resonant_swing_bys}  "
              f"back legs: {len(sequence.back_legs)}")

    by_length = Counter(s.swing_bys for s in sequences)
    print("\nSequences per number of swing-bys:")
    for swing_bys in sorted(by_length):
        print(f"  {swing_bys}: {by_length[swing_bys]}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    sequence_generation_demo()
