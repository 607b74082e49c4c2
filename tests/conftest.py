"""
Shared fixtures for the lpbridge tests
"""
import os
import sys

import pytest

from lpbridge import Counters, Model


@pytest.fixture
def model():
    """Empty model with its own naming counters"""
    return Model(name="test", counters=Counters())


@pytest.fixture
def production_model(model):
    """maximize 3x + 4y s.t. x + 2y <= 14, 3x - y >= 0, x - y <= 2 (optimum x=6, y=4)"""
    x = model.num_var(name='x')
    y = model.num_var(name='y')
    model.add_le(x + 2*y, 14)
    model.add_ge(3*x - y, 0)
    model.add_le(x - y, 2)
    model.add_maximize(3*x + 4*y)
    return model, x, y


OPTIMAL_SOLUTION = """Model status
Optimal

# Primal solution values
Feasible
Objective 34
# of columns 2
x 6
y 4
# of rows 3
Constraint_0 14
Constraint_1 14
Constraint_2 2

# Dual solution values
Feasible
# of columns 2
x 0
y 0
# of rows 3
Constraint_0 0.2
Constraint_1 0
Constraint_2 2.6
"""

INFEASIBLE_SOLUTION = """Model status
Infeasible

# Primal solution values
None
"""

_FAKE_SOLVER = """#!{python}
import sys

args = sys.argv[1:]
options = dict(zip(args[::2], args[1::2]))
with open(options['--model_file']) as f:
    model_text = f.read()
with open({capture!r}, 'w') as f:
    f.write(model_text)
with open(options['--solution_file'], 'w') as f:
    f.write({solution!r})
print('fake solver read', len(model_text.splitlines()), 'lines')
print('fake solver warning', file=sys.stderr)
sys.exit({exit_code})
"""


@pytest.fixture
def fake_solver(tmp_path):
    """
    Factory writing an executable that imitates the highs command line.

    It copies the model file it receives to ``<tmp_path>/captured.lp``,
    writes the given solution text and exits with the given code.
    """
    def make(solution=OPTIMAL_SOLUTION, exit_code=0):
        script = tmp_path / "fake_highs.py"
        script.write_text(_FAKE_SOLVER.format(
            python=sys.executable,
            capture=str(tmp_path / "captured.lp"),
            solution=solution,
            exit_code=exit_code,
        ))
        os.chmod(script, 0o755)
        return str(script)
    return make


@pytest.fixture
def work_dir(tmp_path):
    path = tmp_path / "work"
    path.mkdir()
    return path
