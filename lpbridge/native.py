"""
In-process solver boundary for lpbridge

``NativeProblem`` collects columns, rows and the objective as dense bound
arrays and sparse (coefficient, column index) rows, then hands them to
the HiGHS engine embedded in SciPy (``scipy.optimize.milp``).

The problem represented is:

    minimize / maximize   c'*x + constant
    subject to            AL <= A*x <= AU
                          l <= x <= u
                          x[j] integer for integer columns
"""
import logging
import numpy as np
from scipy import sparse
from scipy.optimize import Bounds, LinearConstraint, milp
from typing import List, Optional, Sequence, Tuple

from .canonical import flatten, rebalance
from .errors import SolveError, ValidationError
from .modeling import ConstraintType, ObjectiveSense, VarKind
from .parameters import Parameters
from .results import Status

logger = logging.getLogger(__name__)

# scipy.optimize.milp status codes
_MILP_OPTIMAL = 0
_MILP_LIMIT_REACHED = 1
_MILP_INFEASIBLE = 2
_MILP_UNBOUNDED = 3


def _ensure_contiguous_int32(arr):
    """Ensure array is contiguous int32"""
    if not isinstance(arr, np.ndarray):
        arr = np.array(arr, dtype=np.int32)
    if arr.dtype != np.int32:
        arr = arr.astype(np.int32)
    return np.ascontiguousarray(arr)


def _ensure_contiguous_float64(arr):
    """Ensure array is contiguous float64"""
    if not isinstance(arr, np.ndarray):
        arr = np.array(arr, dtype=np.float64)
    if arr.dtype != np.float64:
        arr = arr.astype(np.float64)
    return np.ascontiguousarray(arr)


def constraint_range(type: ConstraintType, rhs: float) -> Tuple[float, float]:
    """Row bounds (lower, upper) of ``lhs <type> rhs``"""
    if type == ConstraintType.EQ:
        return rhs, rhs
    if type == ConstraintType.LE:
        return -np.inf, rhs
    if type == ConstraintType.GE:
        return rhs, np.inf
    raise ValidationError(f"Invalid constraint type: {type!r}")


class NativeProblem:
    """
    Problem data passed to the embedded solver.

    Columns and rows are added one at a time and identified by their
    position. After ``solve`` the primal values and the objective value are
    available through ``get_solution``.

    Examples
    --------
    >>> problem = NativeProblem()
    >>> x = problem.add_variable(0.0, np.inf)
    >>> y = problem.add_variable(0.0, np.inf)
    >>> problem.add_constraint([1.0, 2.0], [x, y], -np.inf, 14.0)
    >>> problem.set_objective([3.0, 4.0], [x, y], minimize=False)
    >>> problem.solve()
    <Status.OPTIMAL: 'OPTIMAL'>
    >>> values, objective = problem.get_solution()
    """

    def __init__(self):
        self._lower: List[float] = []
        self._upper: List[float] = []
        self._integrality: List[int] = []
        self._rows: List[Tuple[np.ndarray, np.ndarray]] = []
        self._row_lower: List[float] = []
        self._row_upper: List[float] = []
        self._objective = (np.zeros(0), np.zeros(0, dtype=np.int32))
        self._minimize = True
        self._offset = 0.0
        self._values: Optional[np.ndarray] = None
        self._objective_value: Optional[float] = None

    @property
    def num_cols(self) -> int:
        """Number of variables"""
        return len(self._lower)

    @property
    def num_rows(self) -> int:
        """Number of constraints"""
        return len(self._rows)

    def add_variable(self, lower_bound: float, upper_bound: float) -> int:
        """Add a continuous column and return its index"""
        self._lower.append(float(lower_bound))
        self._upper.append(float(upper_bound))
        self._integrality.append(0)
        return len(self._lower) - 1

    def set_integrality(self, index: int, kind: VarKind):
        """Mark a column as continuous or integer (binary columns are integer)"""
        self._check_column(index)
        self._integrality[index] = 1 if kind.is_integer else 0

    def add_constraint(self, coefficients: Sequence[float], indices: Sequence[int],
                       lower_bound: float, upper_bound: float) -> int:
        """Add the row ``lower_bound <= sum(coefficients * x[indices]) <= upper_bound``"""
        coefficients = _ensure_contiguous_float64(coefficients)
        indices = _ensure_contiguous_int32(indices)
        if len(coefficients) != len(indices):
            raise ValidationError("coefficients and indices must have the same length")
        for index in indices:
            self._check_column(int(index))
        self._rows.append((coefficients, indices))
        self._row_lower.append(float(lower_bound))
        self._row_upper.append(float(upper_bound))
        return len(self._rows) - 1

    def set_objective(self, coefficients: Sequence[float], indices: Sequence[int],
                      minimize: bool = True, constant: float = 0.0):
        """Set the sparse objective row, its sense and its constant offset"""
        coefficients = _ensure_contiguous_float64(coefficients)
        indices = _ensure_contiguous_int32(indices)
        if len(coefficients) != len(indices):
            raise ValidationError("coefficients and indices must have the same length")
        for index in indices:
            self._check_column(int(index))
        self._objective = (coefficients, indices)
        self._minimize = bool(minimize)
        self._offset = float(constant)

    def _check_column(self, index: int):
        if not 0 <= index < self.num_cols:
            raise ValidationError(f"Column index {index} out of range (0..{self.num_cols - 1})")

    def _build_arrays(self):
        n = self.num_cols
        m = self.num_rows

        c = np.zeros(n)
        obj_coefs, obj_indices = self._objective
        c[obj_indices] = obj_coefs
        # milp always minimizes
        if not self._minimize:
            c = -c

        rows = []
        cols = []
        data = []
        for i, (coefficients, indices) in enumerate(self._rows):
            rows.extend([i] * len(indices))
            cols.extend(indices.tolist())
            data.extend(coefficients.tolist())
        A = sparse.coo_matrix((data, (rows, cols)), shape=(m, n)).tocsr()

        return (c, A, _ensure_contiguous_float64(self._row_lower),
                _ensure_contiguous_float64(self._row_upper),
                _ensure_contiguous_float64(self._lower),
                _ensure_contiguous_float64(self._upper),
                np.array(self._integrality, dtype=np.int32))

    def solve(self, parameters: Optional[Parameters] = None) -> Status:
        """
        Run the embedded solver.

        Returns
        -------
        Status
            OPTIMAL, FEASIBLE (limit reached with a solution), UNKNOWN
            (limit reached without one), INFEASIBLE or UNBOUNDED

        Raises
        ------
        SolveError
            If the engine rejects the problem or reports an error
        """
        if parameters is None:
            parameters = Parameters()
        if self.num_cols == 0:
            raise ValidationError("Model has no variables")

        self._values = None
        self._objective_value = None

        c, A, AL, AU, l, u, integrality = self._build_arrays()
        constraints = LinearConstraint(A, AL, AU) if self.num_rows else None

        logger.info("Solving %d variables, %d constraints with embedded HiGHS",
                    self.num_cols, self.num_rows)
        try:
            result = milp(c, integrality=integrality, bounds=Bounds(l, u),
                          constraints=constraints,
                          options=parameters.to_native_options())
        except ValueError as err:
            raise SolveError(f"Embedded solver rejected the model: {err}") from err

        logger.debug("Embedded solver finished with status %d: %s",
                     result.status, result.message)

        if result.status == _MILP_INFEASIBLE:
            return Status.INFEASIBLE
        if result.status == _MILP_UNBOUNDED:
            return Status.UNBOUNDED
        if 'unbounded or infeasible' in str(result.message).lower():
            return Status.INFEASIBLE_OR_UNBOUNDED
        if result.status not in (_MILP_OPTIMAL, _MILP_LIMIT_REACHED):
            raise SolveError(f"An error occurred while solving the model: {result.message}")
        if result.x is None:
            return Status.UNKNOWN

        self._values = np.array(result.x, dtype=np.float64)
        objective = float(result.fun)
        if not self._minimize:
            objective = -objective
        self._objective_value = objective + self._offset

        if result.status == _MILP_OPTIMAL:
            return Status.OPTIMAL
        return Status.FEASIBLE

    def get_solution(self) -> Tuple[np.ndarray, float]:
        """Return (variable values in column order, objective value)"""
        if self._values is None:
            raise SolveError("No solution available")
        return self._values.copy(), self._objective_value

    @staticmethod
    def from_model(model) -> 'NativeProblem':
        """
        Build the native problem of a model.

        Columns follow the model's variable order, each constraint is
        rebalanced and becomes one sparse row.

        Parameters
        ----------
        model : Model
            Model to convert

        Returns
        -------
        NativeProblem
            Problem ready to be solved
        """
        problem = NativeProblem()
        for var in model.variables:
            index = problem.add_variable(var.lower_bound, var.upper_bound)
            if var.is_integer:
                problem.set_integrality(index, var.kind)

        for constraint in model.constraints:
            balanced = rebalance(constraint)
            indices = sorted(balanced.lhs.coefficients)
            coefficients = [balanced.lhs.coefficients[i] for i in indices]
            lower, upper = constraint_range(balanced.type, float(balanced.rhs.constant))
            problem.add_constraint(coefficients, indices, lower, upper)

        if model.objective is not None:
            expr = flatten(model.objective.expr)
            indices = sorted(expr.coefficients)
            coefficients = [expr.coefficients[i] for i in indices]
            problem.set_objective(coefficients, indices,
                                  minimize=model.objective.sense == ObjectiveSense.MINIMIZE,
                                  constant=float(expr.constant))
        return problem
