"""Diagnostic script to check wheel odds and landing accuracy."""

from __future__ import annotations

import argparse
import random
from collections import Counter
from pathlib import Path
from typing import Sequence

from wheel_overlay.layout import compute_layout
from wheel_overlay.overlay_app import CONFIG_PATH, load_config
from wheel_overlay.planner import plan_spin, pointer_alignment_error
from wheel_overlay.segments import Segment, WheelDefinition, select_winning_index
from wheel_overlay.store import InMemoryWheelStore, wheels_from_config


TOLERANCE_PERCENT = 2.0
ALIGNMENT_EPSILON = 1e-6


def _expected_percentages(segments: Sequence[Segment]) -> list[float]:
    total_weight = sum(segment.weight for segment in segments)
    if total_weight <= 0:
        raise ValueError("Total segment weight must be positive.")
    return [segment.weight / total_weight * 100 for segment in segments]


def simulate_spins(wheel: WheelDefinition, spins: int, seed: int | None) -> bool:
    rng = random.Random(seed) if seed is not None else random.Random()
    counts: Counter[int] = Counter()
    layout = compute_layout(wheel.segments)
    rotation = 0.0
    worst_alignment = 0.0

    for _ in range(spins):
        index = select_winning_index(wheel.segments, rng)
        counts[index] += 1
        plan = plan_spin(rotation, wheel.segments, index)
        rotation = plan.target_rotation
        worst_alignment = max(
            worst_alignment, pointer_alignment_error(rotation, layout.center_of(index))
        )

    expected = _expected_percentages(wheel.segments)
    print(f"Wheel: {wheel.name or wheel.id}")
    print(f"Simulated {spins} spins{' with seed ' + str(seed) if seed is not None else ''}.")
    print(f"Tolerance: ±{TOLERANCE_PERCENT:.1f}%")
    print()
    header = f"{'Segment':<20} {'Actual %':>10} {'Expected %':>12} {'Δ%':>8} Status"
    print(header)
    print("-" * len(header))

    within_tolerance = True
    for index, segment in enumerate(wheel.segments):
        actual_pct = counts[index] / spins * 100 if spins else 0.0
        delta = actual_pct - expected[index]
        status = "OK" if abs(delta) <= TOLERANCE_PERCENT else "WARN"
        if status != "OK":
            within_tolerance = False
        print(
            f"{segment.label:<20} {actual_pct:>10.2f} {expected[index]:>12.2f} {delta:>8.2f} {status}"
        )

    print()
    print(f"Worst pointer alignment error: {worst_alignment:.2e} rad")
    aligned = worst_alignment <= ALIGNMENT_EPSILON
    if within_tolerance and aligned:
        print("All segment odds within tolerance and every spin landed on its winner.")
    else:
        print("One or more checks failed.")
    return within_tolerance and aligned


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--config", type=Path, default=CONFIG_PATH, help="Path to config.yaml")
    parser.add_argument("--wheel", type=str, default=None, help="Wheel id (defaults to the active wheel).")
    parser.add_argument(
        "--spins",
        type=int,
        default=100_000,
        help="Number of simulated spins to run (default: 100000).",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Optional RNG seed for reproducibility.",
    )
    args = parser.parse_args(argv)

    config = load_config(args.config)
    store = InMemoryWheelStore()
    wheels_from_config(store, config.session_id, list(config.wheels))
    if args.wheel is not None:
        wheel = store.get_wheel(args.wheel)
    else:
        wheel = store.get_active_wheel(config.session_id) or store.list_wheels(config.session_id)[0]
    ok = simulate_spins(wheel, args.spins, args.seed)
    raise SystemExit(0 if ok else 1)


if __name__ == "__main__":
    main()
