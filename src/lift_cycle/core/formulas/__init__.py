"""
Prescription formula language.

    from lift_cycle.core.formulas import FormulaContext, resolve_formula

    resolve_formula("(CurrentCycle1RMEstimate * 0.85)",
                    FormulaContext(current_cycle_1rm_estimate=200))   # 170
"""

from .nodes import BinaryOp, Call, EvaluationError, Node, Number, Variable, evaluate, render, variables
from .patterns import LEGACY_PATTERNS, FormulaPattern, recognise
from .resolver import FormulaContext, FormulaValue, resolve_formula

__all__ = [
    "BinaryOp",
    "Call",
    "EvaluationError",
    "FormulaContext",
    "FormulaPattern",
    "FormulaValue",
    "LEGACY_PATTERNS",
    "Node",
    "Number",
    "Variable",
    "evaluate",
    "recognise",
    "render",
    "resolve_formula",
    "variables",
]
