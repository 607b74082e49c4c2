"""
Modeling objects for lpbridge

This module defines the algebraic building blocks of a model: decision
variables, the expression tree nodes produced by arithmetic on them, the
canonical ``LinearExpression`` form, constraints and the objective.

Arithmetic never normalizes eagerly. ``x + y`` builds a ``Sum`` node and
``3 * x`` builds a ``Product`` node; the tree is flattened into a
``LinearExpression`` only when the model needs it (see ``lpbridge.canonical``).

Example
-------
>>> from lpbridge import Model
>>> model = Model()
>>> x = model.num_var(name='x')
>>> y = model.int_var(name='y')
>>> expr = 3*x + 2*y - 5           # deferred Sum/Product tree
>>> model.add_constraint(expr <= 10, name='c1')
"""

import numpy as np
from typing import Union, Optional, Dict, Sequence
from enum import Enum

from .errors import ValidationError, ExpressionTypeError


class VarKind(Enum):
    """Domain of a decision variable"""
    CONTINUOUS = 'continuous'
    INTEGER = 'integer'
    BINARY = 'binary'

    @property
    def name_prefix(self) -> str:
        """Prefix used for auto-generated variable names"""
        return _NAME_PREFIXES[self]

    @property
    def is_integer(self) -> bool:
        return self is not VarKind.CONTINUOUS


_NAME_PREFIXES = {
    VarKind.CONTINUOUS: 'Num',
    VarKind.INTEGER: 'Int',
    VarKind.BINARY: 'Bool',
}


class ConstraintType(Enum):
    """Relational type of a constraint"""
    EQ = '='
    LE = '<='
    GE = '>='


class ObjectiveSense(Enum):
    """Optimization sense"""
    MINIMIZE = 'minimize'
    MAXIMIZE = 'maximize'


Number = Union[int, float, np.number]


def is_scalar(value) -> bool:
    """Check if value is a plain number usable as a constant"""
    return isinstance(value, (int, float, np.number)) and not isinstance(value, np.complexfloating)


def as_number(value) -> Union[int, float]:
    """
    Normalize a scalar to a Python ``int`` or ``float``.

    Integer-typed inputs (including numpy integers and booleans) stay
    integers, everything else becomes a float.
    """
    if isinstance(value, (bool, np.bool_)):
        return int(value)
    if isinstance(value, (int, np.integer)):
        return int(value)
    if isinstance(value, (float, np.floating)):
        return float(value)
    raise ExpressionTypeError(f"Unsupported constant type: {type(value).__name__}")


def as_expression(value) -> 'Expression':
    """Wrap scalars into ``Constant`` nodes, pass expressions through"""
    if isinstance(value, Expression):
        return value
    if is_scalar(value):
        return Constant(value)
    raise ExpressionTypeError(f"Unsupported operand type: {type(value).__name__}")


def _is_operand(value) -> bool:
    return isinstance(value, Expression) or is_scalar(value)


class Expression:
    """
    Base class of all expression tree nodes.

    Supports ``+``, ``-``, unary ``-``, multiplication and division by a
    scalar, and the comparison operators ``<=``, ``>=`` and ``==`` which
    create an (unnamed) ``Constraint`` to be passed to
    ``Model.add_constraint``.
    """

    # Let numpy scalars defer to the reflected operators below
    __array_ufunc__ = None

    @property
    def is_integer(self) -> bool:
        """True if every leaf of the expression is integer-typed"""
        raise NotImplementedError

    # Arithmetic operations
    def __add__(self, other):
        if not _is_operand(other):
            return NotImplemented
        return Sum([self, as_expression(other)])

    def __radd__(self, other):
        if not _is_operand(other):
            return NotImplemented
        return Sum([as_expression(other), self])

    def __sub__(self, other):
        if not _is_operand(other):
            return NotImplemented
        return Sum([self, Product([Constant(-1), as_expression(other)])])

    def __rsub__(self, other):
        if not _is_operand(other):
            return NotImplemented
        return Sum([as_expression(other), Product([Constant(-1), self])])

    def __neg__(self):
        return Product([Constant(-1), self])

    def __mul__(self, other):
        if not is_scalar(other):
            raise ExpressionTypeError("Can only multiply expression by scalar (no quadratic terms)")
        return Product([Constant(other), self])

    def __rmul__(self, other):
        return self.__mul__(other)

    def __truediv__(self, other):
        if not is_scalar(other):
            raise ExpressionTypeError("Can only divide expression by scalar")
        return Product([Constant(1.0 / float(other)), self])

    # Comparison operators for constraints
    def __le__(self, other):
        return Constraint(self, as_expression(other), ConstraintType.LE)

    def __ge__(self, other):
        return Constraint(self, as_expression(other), ConstraintType.GE)

    def __eq__(self, other):
        return Constraint(self, as_expression(other), ConstraintType.EQ)

    __hash__ = object.__hash__


class Constant(Expression):
    """A constant leaf"""

    def __init__(self, value: Number):
        self.value = as_number(value)

    @property
    def is_integer(self) -> bool:
        return isinstance(self.value, int)

    def __repr__(self):
        return f"Constant({self.value!r})"

    def __str__(self):
        return str(self.value)


class Variable(Expression):
    """
    Represents a decision variable in the optimization model.

    Variables are created through ``Model`` (``num_var``, ``int_var``,
    ``bool_var`` or ``new_variable``), never directly. The ``index`` is the
    variable's identity: it is assigned in creation order, never changes
    and fixes the column order used for export and for the native solver.
    The ``name`` is for display only and need not be unique.

    Parameters
    ----------
    index : int
        Position of the variable in its model
    name : str
        Display name
    kind : VarKind
        Domain of the variable
    lower_bound : float
        Lower bound
    upper_bound : float
        Upper bound

    Examples
    --------
    >>> x = model.num_var(name='x', lower_bound=0, upper_bound=10)
    >>> x.upper_bound = 5
    >>> x.lower_bound = 6
    Traceback (most recent call last):
        ...
    lpbridge.errors.ValidationError: ...
    """

    def __init__(self, index: int, name: str, kind: VarKind = VarKind.CONTINUOUS,
                 lower_bound: Number = 0.0, upper_bound: Number = np.inf):
        self._index = index
        self.name = name
        self._kind = kind
        lower_bound = self._check_bound(lower_bound)
        upper_bound = self._check_bound(upper_bound)
        if lower_bound > upper_bound:
            raise ValidationError(
                f"Lower bound ({lower_bound}) must be <= upper bound ({upper_bound}) "
                f"for variable {name}")
        self._lower_bound = lower_bound
        self._upper_bound = upper_bound
        self._value = None  # Will be set after solving

    @property
    def index(self) -> int:
        return self._index

    @property
    def kind(self) -> VarKind:
        return self._kind

    @property
    def is_integer(self) -> bool:
        return self._kind.is_integer

    @property
    def lower_bound(self) -> Number:
        return self._lower_bound

    @lower_bound.setter
    def lower_bound(self, value: Number):
        value = self._check_bound(value)
        if value > self._upper_bound:
            raise ValidationError(
                f"Lower bound cannot be greater than the current upper bound ({self._upper_bound})")
        self._lower_bound = value

    @property
    def upper_bound(self) -> Number:
        return self._upper_bound

    @upper_bound.setter
    def upper_bound(self, value: Number):
        value = self._check_bound(value)
        if value < self._lower_bound:
            raise ValidationError(
                f"Upper bound cannot be smaller than the current lower bound ({self._lower_bound})")
        self._upper_bound = value

    def set_bounds(self, lower_bound: Number, upper_bound: Number):
        """Set both bounds at once; leaves the variable unchanged on failure"""
        lower_bound = self._check_bound(lower_bound)
        upper_bound = self._check_bound(upper_bound)
        if lower_bound > upper_bound:
            raise ValidationError(
                f"Lower bound ({lower_bound}) must be <= upper bound ({upper_bound})")
        self._lower_bound = lower_bound
        self._upper_bound = upper_bound

    def _check_bound(self, value: Number) -> Number:
        if not is_scalar(value):
            raise ValidationError(f"Bound must be a number, got {type(value).__name__}")
        value = as_number(value)
        if np.isnan(value):
            raise ValidationError("Bound must not be NaN")
        if self._kind is VarKind.BINARY and not 0 <= value <= 1:
            raise ValidationError(f"Bounds of binary variable {self.name} must lie in [0, 1]")
        if not self._kind.is_integer or not np.isfinite(value):
            return float(value)
        if value != int(value):
            raise ValidationError(
                f"Bounds of integer variable {self.name} must be integral, got {value}")
        return int(value)

    @property
    def value(self) -> Optional[float]:
        """Get the value of this variable after solving"""
        return self._value

    @value.setter
    def value(self, val: Optional[float]):
        """Set the value of this variable (used internally after solving)"""
        self._value = val

    def __repr__(self):
        return f"Variable({self.name})"

    def __str__(self):
        return self.name


class Sum(Expression):
    """Deferred sum of sub-expressions"""

    def __init__(self, children: Sequence):
        self.children = tuple(as_expression(child) for child in children)

    @property
    def is_integer(self) -> bool:
        return all(child.is_integer for child in self.children)

    def __repr__(self):
        return f"Sum({list(self.children)!r})"

    def __str__(self):
        if not self.children:
            return "0"
        return "(" + " + ".join(str(child) for child in self.children) + ")"


class Product(Expression):
    """
    Deferred product of sub-expressions.

    Only products with at most one non-constant factor are linear; the
    builder API only ever creates ``scalar * expression``.
    """

    def __init__(self, children: Sequence):
        self.children = tuple(as_expression(child) for child in children)

    @property
    def is_integer(self) -> bool:
        return all(child.is_integer for child in self.children)

    def __repr__(self):
        return f"Product({list(self.children)!r})"

    def __str__(self):
        if not self.children:
            return "1"
        return " * ".join(str(child) for child in self.children)


class LinearExpression(Expression):
    """
    Canonical linear form: sum of (coefficient * variable) + constant.

    Coefficients are keyed by variable index. Each variable appears at
    most once and exact zero coefficients are dropped. When
    ``is_integer`` is true all coefficients and the constant are ``int``;
    otherwise they are all ``float``.

    Parameters
    ----------
    coefficients : dict, optional
        Dictionary mapping variable indices to coefficients
    constant : int or float, optional
        Constant term
    is_integer : bool, optional
        Whether the expression is integer-typed (default: False)
    names : dict, optional
        Display names of the variables, keyed by index. Only used by
        ``str()``; indices without a name print as ``x<index>``.

    Examples
    --------
    >>> from lpbridge.canonical import flatten
    >>> flatten(2*x + 3*x + 1).coefficients
    {0: 5.0}
    """

    def __init__(self, coefficients: Optional[Dict[int, Number]] = None,
                 constant: Number = 0, is_integer: bool = False,
                 names: Optional[Dict[int, str]] = None):
        self._is_integer = bool(is_integer)
        convert = int if self._is_integer else float
        self.coefficients = {
            int(index): convert(coef)
            for index, coef in (coefficients or {}).items()
            if coef != 0
        }
        self.constant = convert(constant)
        self.names = {index: name for index, name in (names or {}).items()
                      if index in self.coefficients}

    @property
    def is_integer(self) -> bool:
        return self._is_integer

    @property
    def is_constant(self) -> bool:
        """True if the expression has no variable terms"""
        return not self.coefficients

    @staticmethod
    def from_variable(var: Variable) -> 'LinearExpression':
        """Create expression from a single variable"""
        return LinearExpression({var.index: 1}, 0, is_integer=var.is_integer,
                                names={var.index: var.name})

    @staticmethod
    def from_constant(value: Number) -> 'LinearExpression':
        """Create expression from a constant"""
        value = as_number(value)
        return LinearExpression({}, value, is_integer=isinstance(value, int))

    def copy(self) -> 'LinearExpression':
        """Create a copy of this expression"""
        return LinearExpression(self.coefficients, self.constant, self._is_integer, self.names)

    def get_coefficient(self, var: Union[Variable, int]) -> Number:
        """Get coefficient for a variable (or variable index)"""
        index = var.index if isinstance(var, Variable) else int(var)
        return self.coefficients.get(index, 0 if self._is_integer else 0.0)

    def evaluate(self, values: Dict[int, float]) -> float:
        """Evaluate the expression for a mapping of variable index to value"""
        total = self.constant
        for index, coef in self.coefficients.items():
            total += coef * values[index]
        return total

    def __repr__(self):
        return (f"LinearExpression({self.coefficients!r}, {self.constant!r}, "
                f"is_integer={self._is_integer})")

    def __str__(self):
        if not self.coefficients and self.constant == 0:
            return "0"

        terms = []
        for idx, coef in sorted(self.coefficients.items()):
            name = self.names.get(idx, f"x{idx}")
            if coef == 1:
                terms.append(name)
            elif coef == -1:
                terms.append(f"-{name}")
            else:
                terms.append(f"{coef}*{name}")

        if self.constant != 0:
            terms.append(f"{self.constant}")

        result = terms[0]
        for term in terms[1:]:
            if term.startswith('-'):
                result += f" - {term[1:]}"
            else:
                result += f" + {term}"
        return result


class Constraint:
    """
    Represents a linear constraint ``lhs <type> rhs``.

    Both sides are kept exactly as given (unflattened) until the model is
    exported or solved; ``lpbridge.canonical.rebalance`` produces the
    solver-ready form with all variables on the left.

    Parameters
    ----------
    lhs : Expression
        Left-hand side expression
    rhs : Expression
        Right-hand side expression
    type : ConstraintType
        Relational type (=, <=, >=)
    name : str, optional
        Name of the constraint; assigned by the model when omitted

    Examples
    --------
    >>> c1 = model.add_le(x + 2*y, 14)
    >>> c2 = model.add_constraint(3*x - y >= 0, name='balance')
    """

    def __init__(self, lhs: Expression, rhs: Expression, type: ConstraintType,
                 name: Optional[str] = None):
        self.lhs = as_expression(lhs)
        self.rhs = as_expression(rhs)
        if not isinstance(type, ConstraintType):
            raise ValidationError(f"Invalid constraint type: {type!r}")
        self.type = type
        self.name = name

    def __repr__(self):
        return f"Constraint({self}, type={self.type.name})"

    def __str__(self):
        return f"{self.name}: {self.lhs} {self.type.value} {self.rhs}"

    def __bool__(self):
        raise TypeError(
            "Constraint has no truth value; pass it to Model.add_constraint instead")


class Objective:
    """
    Objective function of a model.

    Parameters
    ----------
    expr : Expression
        Objective expression
    sense : ObjectiveSense
        Minimize or maximize
    name : str
        Name of the objective
    """

    def __init__(self, expr: Expression, sense: ObjectiveSense, name: str):
        self.expr = as_expression(expr)
        if not isinstance(sense, ObjectiveSense):
            raise ValidationError(f"Invalid objective sense: {sense!r}")
        self.sense = sense
        self.name = name

    def clear_expr(self):
        """Replace the expression by the constant 0"""
        self.expr = LinearExpression()

    @property
    def constant(self) -> Number:
        """Constant term of the flattened objective expression"""
        from .canonical import flatten
        return flatten(self.expr).constant

    def __repr__(self):
        return f"Objective(name={self.name}, sense={self.sense.value})"

    def __str__(self):
        if self.sense == ObjectiveSense.MAXIMIZE:
            return f"Maximize {self.expr}"
        return f"Minimize {self.expr}"
