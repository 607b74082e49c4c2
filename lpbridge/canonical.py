"""
Canonicalization of expression trees

``flatten`` turns any expression node into a ``LinearExpression``:
a mapping from variable index to coefficient plus one constant.
``rebalance`` moves every variable term of a constraint to the left-hand
side, leaving a pure constant on the right.
"""
from typing import Dict, List, Union

from .errors import ExpressionTypeError
from .modeling import (
    Constant, Constraint, Expression, LinearExpression, Product, Sum, Variable,
    is_scalar,
)


def flatten(node: Union[Expression, int, float]) -> LinearExpression:
    """
    Flatten an expression tree into canonical linear form.

    Parameters
    ----------
    node : Expression or scalar
        Any expression node; plain numbers are treated as constants

    Returns
    -------
    LinearExpression
        A new canonical expression (never the input object itself)

    Raises
    ------
    ExpressionTypeError
        If the tree contains a product of two non-constant factors or a
        node type that is not part of the expression language
    """
    if isinstance(node, LinearExpression):
        return node.copy()
    if isinstance(node, Variable):
        return LinearExpression.from_variable(node)
    if isinstance(node, Constant):
        return LinearExpression({}, node.value, is_integer=node.is_integer)
    if isinstance(node, Sum):
        return _flatten_sum(node)
    if isinstance(node, Product):
        return _flatten_product(node)
    if is_scalar(node):
        return LinearExpression.from_constant(node)
    raise ExpressionTypeError(f"Unsupported expression: {type(node).__name__}")


def flatten_integer(node: Union[Expression, int]) -> LinearExpression:
    """
    Flatten an expression that must be integer-typed.

    Raises
    ------
    ExpressionTypeError
        If any part of the expression is continuous
    """
    result = flatten(node)
    if not result.is_integer:
        raise ExpressionTypeError(
            "Cannot use a continuous expression where an integer expression is required")
    return result


def _flatten_sum(node: Sum) -> LinearExpression:
    # Nested sums are unrolled with an explicit stack, left to right, so
    # long chains of additions do not recurse.
    coefficients: Dict[int, Union[int, float]] = {}
    names: Dict[int, str] = {}
    constant = 0
    is_integer = True

    stack: List[Expression] = list(reversed(node.children))
    while stack:
        child = stack.pop()
        if isinstance(child, Sum):
            stack.extend(reversed(child.children))
            continue
        part = child if isinstance(child, LinearExpression) else flatten(child)
        for index, coef in part.coefficients.items():
            coefficients[index] = coefficients.get(index, 0) + coef
        names.update(part.names)
        constant += part.constant
        is_integer = is_integer and part.is_integer

    return LinearExpression(coefficients, constant, is_integer, names)


def _flatten_product(node: Product) -> LinearExpression:
    parts = [flatten(child) for child in node.children]
    linear = [part for part in parts if not part.is_constant]
    if len(linear) > 1:
        raise ExpressionTypeError(
            "Unsupported expression: product of non-constant expressions is not linear")

    is_integer = all(part.is_integer for part in parts)
    scale = 1
    for part in parts:
        if part.is_constant:
            scale *= part.constant

    if not linear:
        return LinearExpression({}, scale, is_integer)

    base = linear[0]
    coefficients = {index: coef * scale for index, coef in base.coefficients.items()}
    return LinearExpression(coefficients, base.constant * scale, is_integer, base.names)


def rebalance(constraint: Constraint) -> Constraint:
    """
    Move all variable terms of a constraint to the left-hand side.

    Both sides are flattened; every right-hand side coefficient is
    subtracted from the left-hand side and the constants are collected on
    the right (``rhs.constant - lhs.constant``). The result is a new
    constraint with the same name and type whose right-hand side is a
    pure constant. Rebalancing a rebalanced constraint returns an equal
    constraint.

    Raises
    ------
    ExpressionTypeError
        If either side is not a linear expression
    """
    lhs = flatten(constraint.lhs)
    rhs = flatten(constraint.rhs)

    coefficients = dict(lhs.coefficients)
    for index, coef in rhs.coefficients.items():
        coefficients[index] = coefficients.get(index, 0) - coef

    is_integer = lhs.is_integer and rhs.is_integer
    names = dict(rhs.names)
    names.update(lhs.names)
    new_lhs = LinearExpression(coefficients, 0, is_integer, names)
    new_rhs = LinearExpression({}, rhs.constant - lhs.constant, is_integer)
    return Constraint(new_lhs, new_rhs, constraint.type, name=constraint.name)
