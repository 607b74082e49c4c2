"""
lpbridge Python Package

Algebraic modeling layer for linear and mixed-integer programs, with LP
text export and solving through HiGHS (embedded or as an external process).
"""

from .solver import NativeSolver, ExternalSolver, get_solver, solve
from .parameters import Parameters
from .results import Solution, Status
from .model import Model
from .modeling import (
    Variable, VarKind, Expression, Constant, Sum, Product, LinearExpression,
    Constraint, ConstraintType, Objective, ObjectiveSense,
)
from .canonical import flatten, flatten_integer, rebalance
from .counters import Counters, GLOBAL_COUNTERS
from .lp_format import export_model, write_model, parse_solution, read_solution
from .native import NativeProblem
from .errors import (
    LPBridgeError, ValidationError, ExpressionTypeError, SerializationError,
    SolveError, ResourceError,
)

__version__ = "0.1.0"

__all__ = [
    'Model',
    'solve',
    'get_solver',
    'NativeSolver',
    'ExternalSolver',
    'NativeProblem',
    'Parameters',
    'Solution',
    'Status',
    '__version__',
    # Modeling interface
    'Variable',
    'VarKind',
    'Expression',
    'Constant',
    'Sum',
    'Product',
    'LinearExpression',
    'Constraint',
    'ConstraintType',
    'Objective',
    'ObjectiveSense',
    'Counters',
    'GLOBAL_COUNTERS',
    # Canonical form
    'flatten',
    'flatten_integer',
    'rebalance',
    # LP text format
    'export_model',
    'write_model',
    'parse_solution',
    'read_solution',
    # Errors
    'LPBridgeError',
    'ValidationError',
    'ExpressionTypeError',
    'SerializationError',
    'SolveError',
    'ResourceError',
]
