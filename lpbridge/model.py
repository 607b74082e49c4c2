"""
Model class for lpbridge
"""
import logging
import numpy as np
from pathlib import Path
from typing import Union, Optional, List

from .canonical import flatten, rebalance
from .counters import Counters, GLOBAL_COUNTERS
from .errors import ExpressionTypeError, LPBridgeError, ValidationError
from .modeling import (
    Constant, Constraint, ConstraintType, Expression, Objective, ObjectiveSense,
    Product, Sum, Variable, VarKind, is_scalar,
)
from .results import Solution, Status

logger = logging.getLogger(__name__)

_DEFAULT_BOUNDS = {
    VarKind.CONTINUOUS: (0.0, np.inf),
    VarKind.INTEGER: (0, np.inf),
    VarKind.BINARY: (0, 1),
}


class Model:
    """
    Linear / mixed-integer model.

    The model owns its variables (in creation order), its constraints and
    at most one objective. It can be exported as LP text, solved in-process
    or solved by an external HiGHS executable.

    Parameters
    ----------
    name : str, optional
        Name of the model
    counters : Counters, optional
        Allocator for default names. Defaults to the process-wide
        ``GLOBAL_COUNTERS`` so that default names are unique across models.

    Attributes
    ----------
    variables : list of Variable
        Variables in creation order; position equals ``Variable.index``
    constraints : list of Constraint
        Constraints in insertion order
    objective : Objective or None
        Current objective
    solution : Solution
        Result of the last solve attempt

    Examples
    --------
    >>> model = Model()
    >>> x = model.num_var(name='x')
    >>> y = model.num_var(name='y')
    >>> model.add_le(x + 2*y, 14)
    >>> model.add_ge(3*x - y, 0)
    >>> model.add_le(x - y, 2)
    >>> model.add_maximize(3*x + 4*y)
    >>> model.solve()
    <Status.OPTIMAL: 'OPTIMAL'>
    >>> model.get_value(x), model.get_value(y), model.objective_value
    (6.0, 4.0, 34.0)
    """

    def __init__(self, name: Optional[str] = None, counters: Optional[Counters] = None):
        self.name = name or "Model"
        self.counters = counters if counters is not None else GLOBAL_COUNTERS

        self.variables: List[Variable] = []
        self.constraints: List[Constraint] = []
        self.objective: Optional[Objective] = None
        self.solution = Solution()

    # Variables
    def new_variable(self, kind: Union[VarKind, str] = VarKind.CONTINUOUS,
                     lower_bound: Optional[float] = None,
                     upper_bound: Optional[float] = None,
                     name: Optional[str] = None) -> Variable:
        """
        Add a decision variable to the model.

        Parameters
        ----------
        kind : VarKind or str, optional
            'continuous' (default), 'integer' or 'binary'
        lower_bound : float, optional
            Lower bound (default: 0)
        upper_bound : float, optional
            Upper bound (default: inf, or 1 for binary variables)
        name : str, optional
            Name of the variable (default: ``<Kind>Var_<counter>``)

        Returns
        -------
        Variable
            The created variable object

        Raises
        ------
        ValidationError
            If the lower bound exceeds the upper bound
        """
        kind = VarKind(kind)
        default_lower, default_upper = _DEFAULT_BOUNDS[kind]
        if lower_bound is None:
            lower_bound = default_lower
        if upper_bound is None:
            upper_bound = default_upper
        if name is None:
            name = f"{kind.name_prefix}Var_{self.counters.next_variable()}"

        var = Variable(len(self.variables), name, kind, lower_bound, upper_bound)
        self.variables.append(var)
        return var

    def num_var(self, lower_bound: float = 0.0, upper_bound: float = np.inf,
                name: Optional[str] = None) -> Variable:
        """Add a continuous variable"""
        return self.new_variable(VarKind.CONTINUOUS, lower_bound, upper_bound, name)

    def int_var(self, lower_bound: int = 0, upper_bound: float = np.inf,
                name: Optional[str] = None) -> Variable:
        """Add a general integer variable"""
        return self.new_variable(VarKind.INTEGER, lower_bound, upper_bound, name)

    def bool_var(self, name: Optional[str] = None) -> Variable:
        """Add a binary variable"""
        return self.new_variable(VarKind.BINARY, name=name)

    def new_variables(self, n: int, kind: Union[VarKind, str] = VarKind.CONTINUOUS,
                      lower_bound: Optional[float] = None,
                      upper_bound: Optional[float] = None,
                      name_prefix: Optional[str] = None) -> List[Variable]:
        """
        Add multiple variables at once.

        Examples
        --------
        >>> x = model.new_variables(5, name_prefix='x')  # Creates x0, x1, x2, x3, x4
        """
        return [self.new_variable(kind, lower_bound, upper_bound,
                                  f"{name_prefix}{i}" if name_prefix else None)
                for i in range(n)]

    def get_variable(self, name: str) -> Variable:
        """Return the first variable with the given name"""
        for var in self.variables:
            if var.name == name:
                return var
        raise KeyError(name)

    def set_lower_bound(self, var: Variable, value: float):
        """Set the lower bound of a variable; fails if it exceeds the upper bound"""
        self._check_owned(var)
        var.lower_bound = value

    def set_upper_bound(self, var: Variable, value: float):
        """Set the upper bound of a variable; fails if it is below the lower bound"""
        self._check_owned(var)
        var.upper_bound = value

    def _check_owned(self, var: Variable):
        if not isinstance(var, Variable):
            raise ValidationError(f"Expected a Variable, got {type(var).__name__}")
        if var.index >= len(self.variables) or self.variables[var.index] is not var:
            raise ValidationError(f"Variable {var.name} does not belong to model {self.name}")

    # Expressions
    @staticmethod
    def constant(value: Union[int, float]) -> Constant:
        """Create a constant expression"""
        return Constant(value)

    @staticmethod
    def sum(*terms) -> Sum:
        """
        Create the (deferred) sum of expressions and scalars.

        Examples
        --------
        >>> model.sum(x, y, 3)
        >>> model.sum(*[c * v for c, v in zip(costs, xs)])
        """
        if len(terms) == 1 and isinstance(terms[0], (list, tuple)):
            terms = tuple(terms[0])
        return Sum(terms)

    @staticmethod
    def prod(scalar: Union[int, float], expr) -> Product:
        """Create the (deferred) product ``scalar * expr``"""
        if not is_scalar(scalar):
            raise ExpressionTypeError("prod() expects a scalar as first argument")
        return Product([Constant(scalar), expr])

    # Constraints
    def _add(self, lhs, rhs, type: ConstraintType, name: Optional[str]) -> Constraint:
        if name is None:
            name = f"Constraint_{self.counters.next_constraint()}"
        constraint = Constraint(lhs, rhs, type, name=name)
        self.constraints.append(constraint)
        return constraint

    def add_eq(self, lhs, rhs, name: Optional[str] = None) -> Constraint:
        """Add the constraint ``lhs == rhs``"""
        return self._add(lhs, rhs, ConstraintType.EQ, name)

    def add_le(self, lhs, rhs, name: Optional[str] = None) -> Constraint:
        """Add the constraint ``lhs <= rhs``"""
        return self._add(lhs, rhs, ConstraintType.LE, name)

    def add_ge(self, lhs, rhs, name: Optional[str] = None) -> Constraint:
        """Add the constraint ``lhs >= rhs``"""
        return self._add(lhs, rhs, ConstraintType.GE, name)

    def add_constraint(self, constraint: Constraint,
                       name: Optional[str] = None) -> Constraint:
        """
        Add a constraint built with ``<=``, ``>=`` or ``==``.

        Parameters
        ----------
        constraint : Constraint
            Constraint object (created using <=, >=, or == operators)
        name : str, optional
            Name for the constraint

        Returns
        -------
        Constraint
            The added constraint

        Examples
        --------
        >>> c1 = model.add_constraint(x + 2*y <= 10, name='capacity')
        >>> c2 = model.add_constraint(3*x + y <= 12)
        """
        if not isinstance(constraint, Constraint):
            raise ExpressionTypeError("Must provide a Constraint object (use <=, >=, or ==)")

        if name:
            constraint.name = name
        elif constraint.name is None:
            constraint.name = f"Constraint_{self.counters.next_constraint()}"

        self.constraints.append(constraint)
        return constraint

    @staticmethod
    def rebalance(constraint: Constraint) -> Constraint:
        """Return the constraint with all variable terms on the left-hand side"""
        return rebalance(constraint)

    # Objective
    def add_objective(self, sense: Union[ObjectiveSense, str], expr,
                      name: Optional[str] = None) -> Objective:
        """
        Set the objective function, replacing any previous one.

        Parameters
        ----------
        sense : ObjectiveSense or str
            'minimize' or 'maximize'
        expr : Expression or scalar
            Objective expression
        name : str, optional
            Name of the objective (default: ``Objective_<counter>``)
        """
        if isinstance(sense, str):
            sense = ObjectiveSense(sense.lower())
        if name is None:
            name = f"Objective_{self.counters.next_objective()}"
        self.objective = Objective(expr, sense, name)
        return self.objective

    def add_minimize(self, expr, name: Optional[str] = None) -> Objective:
        """Minimize ``expr``"""
        return self.add_objective(ObjectiveSense.MINIMIZE, expr, name)

    def add_maximize(self, expr, name: Optional[str] = None) -> Objective:
        """Maximize ``expr``"""
        return self.add_objective(ObjectiveSense.MAXIMIZE, expr, name)

    # Export / import
    def to_lp_string(self) -> str:
        """Return the model as LP text"""
        from .lp_format import export_model
        return export_model(self)

    def export_model(self, path: Union[str, Path]) -> Path:
        """Write the model as LP text to ``path``"""
        from .lp_format import write_model
        return write_model(self, path)

    def import_solution(self, path: Union[str, Path]) -> Status:
        """
        Load a HiGHS solution file into the model.

        Returns
        -------
        Status
            Status found in the file (UNKNOWN if it contains none)
        """
        from .lp_format import read_solution
        self._reset_solution()
        self._apply_solution(read_solution(path, self.variables))
        return self.status

    # Solve
    def solve(self, strategy: str = 'native', param=None) -> Status:
        """
        Solve the model.

        Parameters
        ----------
        strategy : str, optional
            'native' (default) to use the embedded HiGHS engine,
            'external' to run the ``highs`` executable
        param : Parameters, optional
            Solver parameters. If None, default parameters are used.

        Returns
        -------
        Status
            Status of this attempt. Infeasible and unbounded models are
            reported here, not raised.

        Raises
        ------
        LPBridgeError
            If the attempt fails (solver error, unreadable solution file,
            undeletable temporary file, unsolvable model); ``status`` is
            then ERROR
        """
        from .solver import get_solver

        solver = get_solver(strategy, param)
        self._reset_solution()
        logger.info("Solving model %s (%d variables, %d constraints) with %s strategy",
                    self.name, len(self.variables), len(self.constraints), strategy)
        try:
            solution = solver.solve(self)
        except LPBridgeError:
            self.solution = Solution(status=Status.ERROR)
            raise
        self._apply_solution(solution)
        return self.status

    def _reset_solution(self):
        self.solution = Solution()
        for var in self.variables:
            var.value = None

    def _apply_solution(self, solution: Solution):
        self.solution = solution
        for index, value in solution.values.items():
            self.variables[index].value = value

    # Results
    @property
    def status(self) -> Status:
        """Status of the last solve attempt"""
        return self.solution.status

    @property
    def objective_value(self) -> float:
        """
        Get the objective value after solving.

        Raises
        ------
        RuntimeError
            If no objective value is available
        """
        if self.solution.objective_value is None:
            raise RuntimeError("Model has not been solved yet")
        return self.solution.objective_value

    def get_value(self, item: Union[Variable, Expression]) -> Union[int, float]:
        """
        Get the solution value of a variable or expression.

        Integer and binary variables are rounded to the nearest ``int``.

        Raises
        ------
        RuntimeError
            If the last solve produced no value for the variable
        """
        if isinstance(item, Variable):
            if item.index not in self.solution.values:
                raise RuntimeError(f"No solution value for variable {item.name}")
            value = self.solution.values[item.index]
            return int(round(value)) if item.is_integer else value

        expr = flatten(item)
        missing = [i for i in expr.coefficients if i not in self.solution.values]
        if missing:
            raise RuntimeError("Model has not been solved yet")
        return expr.evaluate(self.solution.values)

    def __repr__(self):
        return (f"Model(name='{self.name}', "
                f"variables={len(self.variables)}, constraints={len(self.constraints)}, "
                f"status={self.status.value})")
