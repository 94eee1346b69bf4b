"""Condition Expressions - Parse legacy condition strings into predicates

Workflow definitions authored by hand (and older exports) carry transition
conditions as short strings such as ``"pd_score <= 0.15"`` or
``"documents_verified"``. They are parsed here into a ConditionGroup once,
when the definition is validated. Nothing is ever passed to eval().

Supported forms:
    ""  / "true"              always satisfied
    "false"                   never satisfied
    "field"                   field is truthy
    "not field" / "!field"    field is falsy
    "field <op> literal"      op in == = != < <= > >=
    clause and clause ...     (or: clause or clause ...; one kind per expression)

Literals: numbers, true/false, null, 'quoted' or "quoted" strings, bare words.
"""
import re
from typing import Any, List, Tuple

from .enums import ConditionOperator, ConditionLogic
from .errors import ConditionSyntaxError


_FIELD = r"[A-Za-z_][A-Za-z0-9_.]*"
_COMPARISON_RE = re.compile(rf"^({_FIELD})\s*(==|!=|<=|>=|=|<|>)\s*(.+)$")
_FIELD_RE = re.compile(rf"^({_FIELD})$")
_NEGATED_RE = re.compile(rf"^(?:not\s+|!\s*)({_FIELD})$", re.IGNORECASE)
# Quoted literals are matched first so joiner words inside them are skipped
_JOINER_RE = re.compile(
    r"""'[^']*'|"[^"]*"|\s+(and|or)\s+|\s*(&&|\|\|)\s*""", re.IGNORECASE
)

_OPERATORS = {
    "==": ConditionOperator.EQUALS,
    "=": ConditionOperator.EQUALS,
    "!=": ConditionOperator.NOT_EQUALS,
    "<": ConditionOperator.LESS_THAN,
    "<=": ConditionOperator.LESS_THAN_OR_EQUALS,
    ">": ConditionOperator.GREATER_THAN,
    ">=": ConditionOperator.GREATER_THAN_OR_EQUALS,
}

_JOINERS = {"and": ConditionLogic.AND, "&&": ConditionLogic.AND,
            "or": ConditionLogic.OR, "||": ConditionLogic.OR}


def parse_condition(expression: str) -> Tuple[ConditionLogic, List[dict]]:
    """
    Parse a condition string into (logic, conditions)

    The conditions are plain dicts shaped like ``Condition`` so the caller
    can validate them into models.

    Raises:
        ConditionSyntaxError: If the expression is not in the supported subset
    """
    text = (expression or "").strip()
    if text == "" or text.lower() == "true":
        return ConditionLogic.AND, []
    if text.lower() == "false":
        # An empty IN list can never match
        return ConditionLogic.AND, [
            {"field": "__never__", "operator": ConditionOperator.IN, "value": []}
        ]

    clauses, logic = _split_clauses(text)
    return logic, [_parse_clause(clause, expression) for clause in clauses]


def _split_clauses(text: str) -> Tuple[List[str], ConditionLogic]:
    clauses = []
    joiners = set()
    start = 0
    for match in _JOINER_RE.finditer(text):
        joiner = match.group(1) or match.group(2)
        if not joiner:
            continue
        joiners.add(_JOINERS[joiner.lower()])
        clauses.append(text[start:match.start()])
        start = match.end()
    clauses.append(text[start:])

    if len(joiners) > 1:
        raise ConditionSyntaxError(
            f"Condition '{text}' mixes 'and' with 'or'",
            details={"condition": text}
        )
    logic = joiners.pop() if joiners else ConditionLogic.AND
    return [c.strip() for c in clauses], logic


def _parse_clause(clause: str, expression: str) -> dict:
    match = _COMPARISON_RE.match(clause)
    if match:
        field, op, literal = match.groups()
        return {
            "field": field,
            "operator": _OPERATORS[op],
            "value": _parse_literal(literal.strip(), expression),
        }

    match = _NEGATED_RE.match(clause)
    if match:
        return {"field": match.group(1), "operator": ConditionOperator.IS_FALSE, "value": None}

    match = _FIELD_RE.match(clause)
    if match:
        return {"field": match.group(1), "operator": ConditionOperator.IS_TRUE, "value": None}

    raise ConditionSyntaxError(
        f"Unsupported condition clause '{clause}'",
        details={"condition": expression, "clause": clause}
    )


def _parse_literal(literal: str, expression: str) -> Any:
    if len(literal) >= 2 and literal[0] == literal[-1] and literal[0] in ("'", '"'):
        return literal[1:-1]

    lowered = literal.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if lowered in ("null", "none"):
        return None

    try:
        return int(literal)
    except ValueError:
        pass
    try:
        return float(literal)
    except ValueError:
        pass

    if re.match(r"^[A-Za-z0-9_.-]+$", literal):
        return literal

    raise ConditionSyntaxError(
        f"Unsupported literal '{literal}' in condition",
        details={"condition": expression, "literal": literal}
    )
