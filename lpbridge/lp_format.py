"""
LP text format writer and HiGHS solution file reader

The writer emits the CPLEX-style LP subset understood by the HiGHS
command line solver::

    Maximize
    3.0 x + 4.0 y
    Subject To
    Constraint_0: 1.0 x + 2.0 y <= 14.0
    Constraint_1: 3.0 x - 1.0 y >= 0.0
    Bounds
    x <= 10.0
    Generals
    n
    Binaries
    b
    End

Every term after the first is preceded by an explicit ``+`` or ``-``
token and coefficients are always written as magnitudes. Terms appear in
variable creation order, so exporting an unchanged model twice gives
identical text.

The reader understands the HiGHS ``.sol`` layout: status keywords, the
``# Primal solution values`` section with an ``Objective <value>`` line and
``<name> <value>`` lines for columns then rows, ended by
``# Dual solution values``.
"""
import logging
import math
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from .canonical import flatten, rebalance
from .errors import SerializationError, ValidationError
from .modeling import ConstraintType, ObjectiveSense, Variable, VarKind
from .results import Solution, Status

logger = logging.getLogger(__name__)

_RELOPS = {
    ConstraintType.EQ: '=',
    ConstraintType.LE: '<=',
    ConstraintType.GE: '>=',
}

# Single-line status keywords that end parsing immediately
_TERMINAL_MARKERS = {
    'infeasible': Status.INFEASIBLE,
    'unbounded': Status.UNBOUNDED,
    'primal infeasible or unbounded': Status.INFEASIBLE_OR_UNBOUNDED,
}

PRIMAL_HEADER = '# primal solution values'
DUAL_HEADER = '# dual solution values'
# Sub-headers of the primal section (``# Columns 2`` or ``# of columns 2``)
COLUMNS_HEADERS = ('# columns', '# of columns')
ROWS_HEADERS = ('# rows', '# of rows')


def format_number(value: Union[int, float]) -> str:
    """Format a number as an LP token (``3``, ``2.5``, ``inf``)"""
    if isinstance(value, int):
        return str(value)
    if math.isinf(value):
        return 'inf' if value > 0 else '-inf'
    return repr(float(value))


def _column_name(variables: Sequence[Variable], index: int) -> str:
    if not 0 <= index < len(variables):
        raise ValidationError(f"Expression refers to unknown variable index {index}")
    return variables[index].name


def format_terms(coefficients: Dict[int, Union[int, float]],
                 variables: Sequence[Variable]) -> List[str]:
    """
    Format linear terms as tokens: ``['3.0', 'x', '-', '1.0', 'y']``.

    A sign token precedes every term except a positive first term.
    """
    tokens: List[str] = []
    for index in sorted(coefficients):
        coef = coefficients[index]
        if coef < 0:
            tokens.append('-')
        elif tokens:
            tokens.append('+')
        tokens.append(format_number(abs(coef)))
        tokens.append(_column_name(variables, index))
    return tokens


def _objective_lines(model) -> List[str]:
    objective = model.objective
    if objective is None:
        return ['Minimize', '0']

    sense = 'Maximize' if objective.sense == ObjectiveSense.MAXIMIZE else 'Minimize'
    expr = flatten(objective.expr)
    tokens = format_terms(expr.coefficients, model.variables)
    if expr.constant < 0:
        tokens.append('-')
    elif expr.constant > 0 and tokens:
        tokens.append('+')
    if expr.constant != 0:
        tokens.append(format_number(abs(expr.constant)))
    if not tokens:
        tokens = ['0']
    return [sense, ' '.join(tokens)]


def _constraint_line(constraint, variables: Sequence[Variable]) -> str:
    balanced = rebalance(constraint)
    tokens = format_terms(balanced.lhs.coefficients, variables) or ['0']
    rhs = format_number(balanced.rhs.constant)
    return f"{balanced.name}: {' '.join(tokens)} {_RELOPS[balanced.type]} {rhs}"


def _bound_line(var: Variable) -> Optional[str]:
    default_upper = 1 if var.kind is VarKind.BINARY else math.inf
    lower = var.lower_bound
    upper = var.upper_bound
    lower_differs = lower != 0
    upper_differs = upper != default_upper

    if lower_differs and upper_differs:
        return f"{format_number(lower)} <= {var.name} <= {format_number(upper)}"
    if lower_differs:
        return f"{format_number(lower)} <= {var.name}"
    if upper_differs:
        return f"{var.name} <= {format_number(upper)}"
    return None


def export_model(model) -> str:
    """
    Serialize a model to LP text.

    Parameters
    ----------
    model : Model
        Model to serialize

    Returns
    -------
    str
        LP text, ending with a newline

    Raises
    ------
    ExpressionTypeError
        If a constraint or the objective is not linear
    ValidationError
        If an expression refers to a variable that is not in the model
    """
    lines = _objective_lines(model)

    lines.append('Subject To')
    for constraint in model.constraints:
        lines.append(_constraint_line(constraint, model.variables))

    lines.append('Bounds')
    for var in model.variables:
        line = _bound_line(var)
        if line is not None:
            lines.append(line)

    lines.append('Generals')
    lines.extend(var.name for var in model.variables if var.kind is VarKind.INTEGER)

    lines.append('Binaries')
    lines.extend(var.name for var in model.variables if var.kind is VarKind.BINARY)

    lines.append('End')
    logger.debug("Exported model with %d variables and %d constraints",
                 len(model.variables), len(model.constraints))
    return '\n'.join(lines) + '\n'


def write_model(model, path: Union[str, Path]) -> Path:
    """Write the LP text of a model to ``path``"""
    path = Path(path)
    text = export_model(model)
    try:
        path.write_text(text, encoding='utf-8')
    except OSError as err:
        raise SerializationError(f"Cannot write model file: {path}") from err
    return path


def _parse_value(token: Optional[str], line_number: int, line: str) -> float:
    if token is None:
        raise SerializationError(f"Missing numeric value on line {line_number}: {line!r}")
    try:
        return float(token)
    except ValueError as err:
        raise SerializationError(
            f"Invalid numeric value on line {line_number}: {line!r}") from err


def parse_solution(text: str, variables: Sequence[Variable]) -> Solution:
    """
    Parse the text of a HiGHS solution file.

    Values are matched to variables by name. Only the column block of the
    primal section is read, so row activities never reach a variable that
    happens to share a constraint's name. Column names that match no
    variable are ignored. When several variables share a name, the first
    one created receives the value.

    Parameters
    ----------
    text : str
        Content of the solution file
    variables : sequence of Variable
        Variables of the model, in creation order

    Returns
    -------
    Solution
        Parsed solution. ``Infeasible``/``Unbounded`` markers end parsing
        and yield a solution without values.

    Raises
    ------
    SerializationError
        If a numeric token cannot be parsed
    """
    by_name: Dict[str, int] = {}
    for var in variables:
        by_name.setdefault(var.name, var.index)

    solution = Solution()
    in_primal = False
    in_columns = False
    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        lowered = line.lower()

        if lowered in _TERMINAL_MARKERS:
            solution.status = _TERMINAL_MARKERS[lowered]
            solution.clear()
            logger.info("Solution file reports %s", solution.status.value)
            break
        if lowered == 'optimal':
            solution.status = Status.OPTIMAL
            continue
        if lowered == PRIMAL_HEADER:
            in_primal = True
            in_columns = True
            continue
        if in_primal and lowered.startswith(DUAL_HEADER):
            in_primal = False
            continue
        if in_primal and lowered.startswith(COLUMNS_HEADERS):
            in_columns = True
            continue
        if in_primal and lowered.startswith(ROWS_HEADERS):
            in_columns = False
            continue
        if not in_primal or not line or line.startswith('#'):
            continue

        parts = line.split()
        if parts[0].lower() == 'objective':
            token = parts[1] if len(parts) > 1 else None
            solution.objective_value = _parse_value(token, line_number, line)
            continue
        if lowered == 'feasible':
            if solution.status == Status.UNKNOWN:
                solution.status = Status.FEASIBLE
            continue
        if len(parts) == 2 and in_columns:
            value = _parse_value(parts[1], line_number, line)
            index = by_name.get(parts[0])
            if index is not None:
                solution.values[index] = value

    return solution


def read_solution(path: Union[str, Path], variables: Sequence[Variable]) -> Solution:
    """Read and parse a HiGHS solution file"""
    path = Path(path)
    if not path.exists():
        raise SerializationError(f"Solution file not found: {path}")
    try:
        text = path.read_text(encoding='utf-8')
    except OSError as err:
        raise SerializationError(f"Error reading solution file: {path}") from err
    return parse_solution(text, variables)
