"""
Example: Exporting a MIP to an LP file and importing a HiGHS solution

Writes the model to the path given on the command line (default:
knapsack.lp). If a solution file path is given as second argument, it is
read back into the model.

    highs --model_file knapsack.lp --solution_file knapsack.sol
    python example_export_lp.py knapsack.lp knapsack.sol
"""

import sys
from pathlib import Path

import lpbridge


def build_knapsack():
    weights = [12, 2, 1, 1, 4]
    values = [4, 2, 1, 2, 10]

    model = lpbridge.Model(name="knapsack")
    take = [model.bool_var(name=f"take{i}") for i in range(len(weights))]
    model.add_le(model.sum(*[model.prod(w, t) for w, t in zip(weights, take)]), 15,
                 name="capacity")
    model.add_maximize(model.sum(*[model.prod(v, t) for v, t in zip(values, take)]))
    return model, take


def main():
    lp_path = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("knapsack.lp")
    model, take = build_knapsack()

    model.export_model(lp_path)
    print(f"Model written to {lp_path.absolute()}")

    if len(sys.argv) > 2:
        status = model.import_solution(sys.argv[2])
        print(f"Status: {status.value}")
        if status == lpbridge.Status.OPTIMAL:
            chosen = [var.name for var in take if model.get_value(var) == 1]
            print(f"Chosen items: {', '.join(chosen)}")
            print(f"Objective: {model.objective_value}")
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except lpbridge.LPBridgeError as e:
        print(f"Error: {e}")
        sys.exit(1)
