"""
Example: Building and solving an LP with lpbridge

Problem:
    maximize     3*x + 4*y
    subject to   x + 2*y <= 14
                3*x -   y >= 0
                 x -   y <= 2
                 x, y >= 0
"""

import logging
import sys

import lpbridge


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print()
    print("=" * 70)
    print("lpbridge Example: Production LP - Python")
    print("=" * 70)
    print()

    model = lpbridge.Model(name="production")
    x = model.num_var(name='x')
    y = model.num_var(name='y')

    model.add_le(x + 2*y, 14)
    model.add_ge(3*x - y, 0)
    model.add_le(x - y, 2)
    model.add_maximize(3*x + 4*y)

    print("LP text sent to the solver:")
    print(model.to_lp_string())

    strategy = sys.argv[1] if len(sys.argv) > 1 else 'native'
    status = model.solve(strategy)

    print("=" * 70)
    print("Solution Summary")
    print("=" * 70)
    print(f"Status: {status.value}")
    if status == lpbridge.Status.OPTIMAL:
        print(f"x = {model.get_value(x):.4f}")
        print(f"y = {model.get_value(y):.4f}")
        print(f"Objective: {model.objective_value:.4f}")
    print()
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except lpbridge.LPBridgeError as e:
        print(f"Error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(130)
