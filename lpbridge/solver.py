"""
Solve strategies for lpbridge

Two interchangeable strategies produce a ``Solution`` for a model:

``NativeSolver``
    Builds sparse arrays and calls the HiGHS engine embedded in SciPy.
``ExternalSolver``
    Writes the model as LP text to a uniquely named temporary file, runs
    the ``highs`` executable on it and parses the solution file it writes.

``Model.solve`` picks one of them by name; the helpers here can also be
used directly.
"""
import logging
import subprocess
import uuid
from pathlib import Path
from typing import List, Optional, Union

from .errors import ResourceError, SolveError, ValidationError
from .lp_format import read_solution, write_model
from .native import NativeProblem
from .parameters import Parameters
from .results import Solution, Status

logger = logging.getLogger(__name__)


class NativeSolver:
    """
    Solve a model in-process with the embedded HiGHS engine.

    Parameters
    ----------
    param : Parameters, optional
        Solver parameters. If None, default parameters are used.
    """

    name = 'native'

    def __init__(self, param: Optional[Parameters] = None):
        self.param = param if param is not None else Parameters()

    def solve(self, model) -> Solution:
        """
        Solve a model.

        Returns
        -------
        Solution
            Values are keyed by variable index, in model order

        Raises
        ------
        SolveError
            If the engine reports an error
        """
        problem = NativeProblem.from_model(model)
        status = problem.solve(self.param)
        solution = Solution(status=status)
        if status in (Status.OPTIMAL, Status.FEASIBLE):
            values, objective_value = problem.get_solution()
            for var, value in zip(model.variables, values):
                solution.values[var.index] = float(value)
            solution.objective_value = objective_value
        logger.info("Native solve finished: %s", status.value)
        return solution


class ExternalSolver:
    """
    Solve a model by running an external HiGHS process.

    The solver is invoked as
    ``<executable> --model_file <file>.lp --solution_file <file>.sol``.
    Both files live in ``param.work_dir`` and carry a fresh UUID in their
    name, so concurrent solves never share files. They are always deleted
    afterwards; failing to delete one raises ``ResourceError``.

    Parameters
    ----------
    param : Parameters, optional
        Solver parameters. If None, default parameters are used.
    """

    name = 'external'

    def __init__(self, param: Optional[Parameters] = None):
        self.param = param if param is not None else Parameters()

    def build_command(self, model_path: Path, solution_path: Path) -> List[str]:
        """Command line used to run the external solver"""
        return ([self.param.executable,
                 '--model_file', str(model_path),
                 '--solution_file', str(solution_path)]
                + self.param.to_command_line())

    def solve(self, model) -> Solution:
        """
        Solve a model.

        Returns
        -------
        Solution
            Parsed content of the solution file

        Raises
        ------
        SerializationError
            If the model cannot be written or the solution cannot be parsed
        SolveError
            If the process cannot be started or exits with a nonzero code
        ResourceError
            If a temporary file cannot be deleted
        """
        unique_id = uuid.uuid4().hex
        work_dir = Path(self.param.resolved_work_dir())
        model_path = work_dir / f"out-{unique_id}.lp"
        solution_path = work_dir / f"out-{unique_id}.sol"

        try:
            write_model(model, model_path)
            command = self.build_command(model_path, solution_path)
            logger.info("Running external solver: %s", ' '.join(command))
            try:
                completed = subprocess.run(command, capture_output=True, text=True)
            except OSError as err:
                raise SolveError(
                    f"Cannot start external solver {self.param.executable!r}: {err}") from err

            self._record_output(completed.stdout, completed.stderr)
            logger.info("External solver exited with code: %d", completed.returncode)
            if completed.returncode != 0:
                raise SolveError(
                    f"External solver failed with exit code: {completed.returncode}")

            solution = read_solution(solution_path, model.variables)
        finally:
            _remove_file(model_path)
            _remove_file(solution_path)

        logger.info("External solve finished: %s", solution.status.value)
        return solution

    def _record_output(self, stdout: str, stderr: str):
        for line in stdout.splitlines():
            logger.info("[STDOUT] %s", line)
        for line in stderr.splitlines():
            logger.error("[STDERR] %s", line)
        if self.param.stdout_file:
            _write_capture(self.param.stdout_file, stdout)
        if self.param.stderr_file:
            _write_capture(self.param.stderr_file, stderr)


def _write_capture(path: Union[str, Path], text: str):
    try:
        Path(path).write_text(text, encoding='utf-8')
    except OSError as err:
        raise ResourceError(f"Cannot write solver output to {path}") from err


def _remove_file(path: Path):
    if not path.exists():
        return
    try:
        path.unlink()
    except OSError as err:
        raise ResourceError(f"Failed to delete the file: {path}") from err


_STRATEGIES = {
    NativeSolver.name: NativeSolver,
    ExternalSolver.name: ExternalSolver,
}


def get_solver(strategy: str = 'native', param: Optional[Parameters] = None):
    """
    Create a solve strategy by name ('native' or 'external').

    Raises
    ------
    ValidationError
        If the strategy name is unknown
    """
    try:
        solver_class = _STRATEGIES[strategy]
    except KeyError:
        raise ValidationError(
            f"Unknown solve strategy {strategy!r}, expected one of {sorted(_STRATEGIES)}") from None
    return solver_class(param)


def solve(model, strategy: str = 'native', param: Optional[Parameters] = None) -> Status:
    """
    Convenience function to solve a model without creating a solver object.

    Equivalent to ``model.solve(strategy, param)``.

    Examples
    --------
    >>> from lpbridge import Model, solve
    >>> model = Model()
    >>> x = model.num_var(name='x', upper_bound=4)
    >>> model.add_maximize(x)
    >>> solve(model)
    <Status.OPTIMAL: 'OPTIMAL'>
    """
    return model.solve(strategy, param)
