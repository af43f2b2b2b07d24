#!/usr/bin/env python
"""Example: compare generation costs across grid sizes.

Prints the number of generation calls and the estimated USD cost for every
odd grid size up to a limit, using the price from an optional config file.

Usage:
    python scripts/estimate_costs.py
    python scripts/estimate_costs.py 15 configs/my_setup.yaml
"""

from __future__ import annotations

import sys

from facegrid import estimate_cost, load_config
from facegrid.errors import ConfigError


def main() -> None:
    limit = int(sys.argv[1]) if len(sys.argv) > 1 else 11
    config_path = sys.argv[2] if len(sys.argv) > 2 else None

    try:
        setup = load_config(config_path)
    except ConfigError as exc:
        print(f"Error: {exc}")
        sys.exit(1)

    print(f"Price per call: ${setup.price_per_call}")
    print(f"{'grid':>7}  {'calls':>6}  {'cost':>8}")
    for size in range(1, limit + 1, 2):
        estimate = estimate_cost(size, setup.price_per_call)
        print(f"{size:>3}x{size:<3}  {estimate.calls:>6}  {estimate.formatted:>8}")


if __name__ == "__main__":
    main()
