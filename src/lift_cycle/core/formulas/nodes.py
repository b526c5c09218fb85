"""
Typed expression tree for prescription formulas.

The formula language is deliberately tiny: numbers, named variables, the
four arithmetic operators and the functions round() and max().  Trees are
built by the pattern recognisers in patterns.py and evaluated here by a
single recursive walk.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from ..parsing import round_half_up

# Variable names as they appear in formula text
ONE_RM_ESTIMATE = "CurrentCycle1RMEstimate"
USER_MAX_REPS = "UserMaxReps"
MIN_REPS = "ExerciseSpecificMinReps"
AMRAP_REPS = "AMRAPRepsAtStep8"


class EvaluationError(Exception):
    """Raised when a tree cannot be evaluated (unbound variable, division by zero)."""

    pass


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class Variable:
    name: str


@dataclass(frozen=True)
class BinaryOp:
    op: str  # one of + - * /
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Call:
    func: str  # "round" | "max"
    args: tuple["Node", ...]


Node = Number | Variable | BinaryOp | Call


def _apply(op: str, left: float, right: float) -> float:
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    if op == "/":
        if right == 0:
            raise EvaluationError("division by zero")
        return left / right
    raise EvaluationError(f"unknown operator {op!r}")


def _call(func: str, args: list[float]) -> float:
    if func == "round":
        if len(args) != 1:
            raise EvaluationError("round() takes exactly one argument")
        return round_half_up(args[0])
    if func == "max":
        if not args:
            raise EvaluationError("max() needs at least one argument")
        return max(args)
    raise EvaluationError(f"unknown function {func!r}")


def evaluate(node: Node, env: Mapping[str, float]) -> float:
    """
    Evaluate an expression tree against bound variable values.

    Args:
        node: Root of the tree
        env: Variable name -> value; absent names are unbound

    Returns:
        Numeric result

    Raises:
        EvaluationError: unbound variable, division by zero, bad call
    """
    if isinstance(node, Number):
        return node.value
    if isinstance(node, Variable):
        if node.name not in env:
            raise EvaluationError(f"unbound variable {node.name}")
        return float(env[node.name])
    if isinstance(node, BinaryOp):
        return _apply(node.op, evaluate(node.left, env), evaluate(node.right, env))
    if isinstance(node, Call):
        return _call(node.func, [evaluate(a, env) for a in node.args])
    raise EvaluationError(f"not an expression node: {node!r}")


def variables(node: Node) -> set[str]:
    """Names of all variables referenced anywhere in the tree."""
    if isinstance(node, Variable):
        return {node.name}
    if isinstance(node, BinaryOp):
        return variables(node.left) | variables(node.right)
    if isinstance(node, Call):
        found: set[str] = set()
        for arg in node.args:
            found |= variables(arg)
        return found
    return set()


def render(node: Node) -> str:
    """Canonical text form of a tree, as shown in debug log messages."""
    if isinstance(node, Number):
        v = node.value
        return str(int(v)) if float(v).is_integer() else str(v)
    if isinstance(node, Variable):
        return node.name
    if isinstance(node, BinaryOp):
        return f"({render(node.left)} {node.op} {render(node.right)})"
    if isinstance(node, Call):
        return f"{node.func}({', '.join(render(a) for a in node.args)})"
    return repr(node)
