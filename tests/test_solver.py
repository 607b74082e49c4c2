"""
Tests for the native and external solve strategies
"""
import logging
from pathlib import Path

import numpy as np
import pytest

from lpbridge import (
    ConstraintType, ExternalSolver, NativeProblem, Parameters, ResourceError,
    SerializationError, SolveError, Status, ValidationError, get_solver, solve,
)
from lpbridge.native import constraint_range

from .conftest import INFEASIBLE_SOLUTION


@pytest.fixture
def external_param(fake_solver, work_dir):
    def make(**kwargs):
        param = Parameters()
        param.executable = fake_solver(**kwargs)
        param.work_dir = str(work_dir)
        return param
    return make


class TestNativeSolver:
    """Solving with the embedded HiGHS engine"""

    def test_production_round_trip(self, production_model):
        model, x, y = production_model
        assert model.solve() == Status.OPTIMAL
        assert model.get_value(x) == pytest.approx(6.0, abs=0.01)
        assert model.get_value(y) == pytest.approx(4.0, abs=0.01)
        assert model.objective_value == pytest.approx(34.0, abs=0.01)
        assert x.value == pytest.approx(6.0, abs=0.01)

    def test_minimize(self, model):
        x = model.num_var(name='x')
        y = model.num_var(name='y')
        model.add_le(x + 2*y, 14)
        model.add_ge(3*x - y, 0)
        model.add_le(x - y, 2)
        model.add_minimize(-3*x - 4*y)
        assert model.solve() == Status.OPTIMAL
        assert model.objective_value == pytest.approx(-34.0, abs=0.01)

    def test_expression_value(self, production_model):
        model, x, y = production_model
        model.solve()
        assert model.get_value(3*x + 4*y) == pytest.approx(34.0, abs=0.01)

    def test_objective_constant(self, model):
        x = model.num_var(lower_bound=2, name='x')
        model.add_minimize(x + 5)
        assert model.solve() == Status.OPTIMAL
        assert model.objective_value == pytest.approx(7.0)

    def test_infeasible_is_a_status(self, model):
        x = model.num_var(name='x')
        model.add_ge(x, 10)
        model.add_le(x, 5)
        model.add_minimize(x)
        assert model.solve() == Status.INFEASIBLE
        assert model.solution.values == {}
        with pytest.raises(RuntimeError):
            model.get_value(x)
        with pytest.raises(RuntimeError):
            model.objective_value

    def test_unbounded_is_a_status(self, model):
        x = model.num_var(name='x')
        y = model.num_var(name='y')
        model.add_ge(x - y, 1)
        model.add_maximize(x)
        assert model.solve() in (Status.UNBOUNDED, Status.INFEASIBLE_OR_UNBOUNDED)
        assert model.solution.values == {}

    def test_knapsack(self, model):
        weights = [12, 2, 1, 1, 4]
        values = [4, 2, 1, 2, 10]
        take = model.new_variables(5, 'binary', name_prefix='take')
        model.add_le(model.sum([model.prod(w, t) for w, t in zip(weights, take)]), 15)
        model.add_maximize(model.sum([model.prod(v, t) for v, t in zip(values, take)]))

        assert model.solve() == Status.OPTIMAL
        assert model.objective_value == pytest.approx(15.0)
        chosen = [model.get_value(t) for t in take]
        assert chosen == [0, 1, 1, 1, 1]
        assert all(isinstance(v, int) for v in chosen)

    def test_general_integer(self, model):
        n = model.int_var(name='n')
        x = model.num_var(name='x')
        model.add_le(2*n + x, 7.5)
        model.add_le(x, 0.5)
        model.add_maximize(n)
        assert model.solve() == Status.OPTIMAL
        assert model.get_value(n) == 3

    def test_new_solve_clears_previous_values(self, production_model):
        model, x, _ = production_model
        model.solve()
        model.add_ge(x, 100)
        model.solve()
        assert x.value is None
        with pytest.raises(RuntimeError):
            model.get_value(x)

    def test_empty_model_ends_in_error(self, model):
        model.add_minimize(5)
        with pytest.raises(ValidationError):
            model.solve()
        assert model.status == Status.ERROR

    def test_solve_function(self, production_model):
        model, _, _ = production_model
        assert solve(model) == Status.OPTIMAL

    def test_time_limit_is_accepted(self, production_model):
        model, _, _ = production_model
        param = Parameters()
        param.time_limit = 30
        assert model.solve('native', param) == Status.OPTIMAL


class TestNativeProblem:
    """Direct use of the native problem boundary"""

    def test_add_and_solve(self):
        problem = NativeProblem()
        x = problem.add_variable(0.0, np.inf)
        y = problem.add_variable(0.0, np.inf)
        problem.add_constraint([1.0, 2.0], [x, y], -np.inf, 14.0)
        problem.add_constraint([3.0, -1.0], [x, y], 0.0, np.inf)
        problem.add_constraint([1.0, -1.0], [x, y], -np.inf, 2.0)
        problem.set_objective([3.0, 4.0], [x, y], minimize=False)

        assert problem.solve() == Status.OPTIMAL
        values, objective = problem.get_solution()
        np.testing.assert_allclose(values, [6.0, 4.0], atol=1e-6)
        assert objective == pytest.approx(34.0)

    def test_from_model(self, production_model):
        model, _, _ = production_model
        problem = NativeProblem.from_model(model)
        assert problem.num_cols == 2
        assert problem.num_rows == 3

    @pytest.mark.parametrize("type, expected", [
        (ConstraintType.EQ, (4.0, 4.0)),
        (ConstraintType.LE, (-np.inf, 4.0)),
        (ConstraintType.GE, (4.0, np.inf)),
    ])
    def test_constraint_range(self, type, expected):
        assert constraint_range(type, 4.0) == expected

    def test_mismatched_row(self):
        problem = NativeProblem()
        problem.add_variable(0.0, 1.0)
        with pytest.raises(ValidationError):
            problem.add_constraint([1.0, 2.0], [0], 0.0, 1.0)

    def test_unknown_column(self):
        problem = NativeProblem()
        problem.add_variable(0.0, 1.0)
        with pytest.raises(ValidationError):
            problem.add_constraint([1.0], [3], 0.0, 1.0)

    def test_no_solution_before_solve(self):
        problem = NativeProblem()
        with pytest.raises(SolveError):
            problem.get_solution()


class TestExternalSolver:
    """Solving through an external process"""

    def test_round_trip(self, production_model, external_param, work_dir):
        model, x, y = production_model
        status = model.solve('external', external_param())
        assert status == Status.OPTIMAL
        assert model.get_value(x) == 6.0
        assert model.get_value(y) == 4.0
        assert model.objective_value == 34.0
        assert list(work_dir.iterdir()) == []

    def test_solver_receives_exported_model(self, production_model, external_param, tmp_path):
        model, _, _ = production_model
        model.solve('external', external_param())
        assert (tmp_path / "captured.lp").read_text() == model.to_lp_string()

    def test_output_is_logged(self, production_model, external_param, caplog):
        model, _, _ = production_model
        caplog.set_level(logging.INFO, logger='lpbridge.solver')
        model.solve('external', external_param())

        stdout = [r for r in caplog.records if r.getMessage().startswith('[STDOUT]')]
        stderr = [r for r in caplog.records if r.getMessage().startswith('[STDERR]')]
        assert stdout[0].getMessage() == '[STDOUT] fake solver read 10 lines'
        assert stdout[0].levelno == logging.INFO
        assert stderr[0].getMessage() == '[STDERR] fake solver warning'
        assert stderr[0].levelno == logging.ERROR

    def test_output_files(self, production_model, external_param, tmp_path):
        model, _, _ = production_model
        param = external_param()
        param.stdout_file = str(tmp_path / "highs.out")
        param.stderr_file = str(tmp_path / "highs.err")
        model.solve('external', param)
        assert (tmp_path / "highs.out").read_text().startswith('fake solver read')
        assert (tmp_path / "highs.err").read_text() == 'fake solver warning\n'

    def test_infeasible(self, production_model, external_param, work_dir):
        model, x, _ = production_model
        status = model.solve('external', external_param(solution=INFEASIBLE_SOLUTION))
        assert status == Status.INFEASIBLE
        assert model.solution.values == {}
        assert list(work_dir.iterdir()) == []

    def test_nonzero_exit(self, production_model, external_param, work_dir):
        model, _, _ = production_model
        with pytest.raises(SolveError):
            model.solve('external', external_param(exit_code=3))
        assert model.status == Status.ERROR
        assert list(work_dir.iterdir()) == []

    def test_missing_executable(self, production_model, work_dir, tmp_path):
        model, _, _ = production_model
        param = Parameters()
        param.executable = str(tmp_path / "no-such-highs")
        param.work_dir = str(work_dir)
        with pytest.raises(SolveError):
            model.solve('external', param)
        assert model.status == Status.ERROR
        assert list(work_dir.iterdir()) == []

    def test_cleanup_failure(self, production_model, external_param, monkeypatch):
        model, _, _ = production_model
        param = external_param()

        def fail(self, *args, **kwargs):
            raise OSError("busy")

        monkeypatch.setattr(Path, 'unlink', fail)
        with pytest.raises(ResourceError):
            model.solve('external', param)
        assert model.status == Status.ERROR

    def test_malformed_solution_file(self, production_model, external_param, work_dir):
        model, x, _ = production_model
        param = external_param(solution="# Primal solution values\nObjective abc\n")
        with pytest.raises(SerializationError):
            model.solve('external', param)
        assert model.status == Status.ERROR
        assert x.value is None
        assert list(work_dir.iterdir()) == []

    def test_build_command(self, external_param):
        solver = ExternalSolver(external_param())
        command = solver.build_command(Path('a.lp'), Path('a.sol'))
        assert command[1:] == ['--model_file', 'a.lp', '--solution_file', 'a.sol']

    def test_command_line_options(self, external_param):
        param = external_param()
        param.time_limit = 10
        param.presolve = False
        command = ExternalSolver(param).build_command(Path('a.lp'), Path('a.sol'))
        assert command[-4:] == ['--time_limit', '10.0', '--presolve', 'off']


class TestStrategySelection:

    def test_known_strategies(self):
        assert get_solver('native').name == 'native'
        assert get_solver('external').name == 'external'

    def test_unknown_strategy(self, production_model):
        model, _, _ = production_model
        with pytest.raises(ValidationError):
            model.solve('gurobi')
        assert model.status == Status.UNKNOWN
