"""
Custom per-item cost formulas.

A formula is a small arithmetic expression over six named variables::

    $rate * ($floor_area + $wall_area) / 2

Grammar (compiled once, evaluated many times)::

    expr   := term (('+' | '-') term)*
    term   := unary (('*' | '/') unary)*
    unary  := '-' unary | '+' unary | atom
    atom   := NUMBER | VARIABLE | '(' expr ')'

``×``, ``÷`` and the unicode minus ``−`` are accepted as aliases.  Variable
names are case-insensitive and the leading ``$`` is optional.  Nothing else is
valid -- there is no function call, attribute access or name lookup, so a
formula can never execute arbitrary code.
"""
import math
import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Mapping, Tuple, Union

FORMULA_VARIABLES: Tuple[str, ...] = (
    "floor_area", "wall_area", "length", "width", "height", "rate",
)

_OPERATOR_ALIASES: Dict[str, str] = {"×": "*", "÷": "/", "−": "-"}

# Keeps parse trees shallow enough for the recursive walkers below.
_MAX_FORMULA_LENGTH = 500
_MAX_NESTING_DEPTH = 32

_TOKEN_RE = re.compile(
    r"\s*(?:"
    r"(?P<number>\d+(?:\.\d*)?|\.\d+)"
    r"|(?P<name>\$?[A-Za-z_][A-Za-z_0-9]*)"
    r"|(?P<op>[-+*/()×÷−])"
    r")"
)


class FormulaError(ValueError):
    """Raised when a formula cannot be compiled or yields a non-finite value."""


@dataclass(frozen=True)
class FormulaBindings:
    """Values substituted for the formula variables of one item in one washroom."""
    floor_area: float = 0.0
    wall_area: float = 0.0
    length: float = 0.0
    width: float = 0.0
    height: float = 0.0
    rate: float = 0.0

    def as_dict(self) -> Dict[str, float]:
        return {name: float(getattr(self, name)) for name in FORMULA_VARIABLES}


# Tree nodes: ("num", value) | ("var", name) | ("neg", node) | ("bin", op, left, right)
_Node = Tuple


# ---------------------------------------------------------------------------
# Tokeniser
# ---------------------------------------------------------------------------

def _tokenize(source: str) -> List[Tuple[str, Union[str, float]]]:
    tokens: List[Tuple[str, Union[str, float]]] = []
    pos = 0
    text = source.rstrip()
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if not match or match.end() == pos:
            raise FormulaError(f"Unexpected character {text[pos:].lstrip()[:1]!r} at position {pos}")
        pos = match.end()
        if match.group("number") is not None:
            tokens.append(("num", float(match.group("number"))))
        elif match.group("name") is not None:
            name = match.group("name").lstrip("$").lower()
            if name not in FORMULA_VARIABLES:
                raise FormulaError(f"Unknown variable {match.group('name')!r}")
            tokens.append(("var", name))
        else:
            op = match.group("op")
            tokens.append(("op", _OPERATOR_ALIASES.get(op, op)))
    return tokens


# ---------------------------------------------------------------------------
# Recursive-descent parser
# ---------------------------------------------------------------------------

class _Parser:
    def __init__(self, tokens: List[Tuple[str, Union[str, float]]]) -> None:
        self._tokens = tokens
        self._pos = 0
        self._depth = 0

    def _peek(self) -> Tuple[str, Union[str, float]]:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return ("end", "")

    def _take(self) -> Tuple[str, Union[str, float]]:
        token = self._peek()
        self._pos += 1
        return token

    def parse(self) -> _Node:
        if not self._tokens:
            raise FormulaError("Formula is empty")
        node = self._expr()
        kind, value = self._peek()
        if kind != "end":
            raise FormulaError(f"Unexpected token {value!r}")
        return node

    def _expr(self) -> _Node:
        node = self._term()
        while self._peek() in (("op", "+"), ("op", "-")):
            op = self._take()[1]
            node = ("bin", op, node, self._term())
        return node

    def _term(self) -> _Node:
        node = self._unary()
        while self._peek() in (("op", "*"), ("op", "/")):
            op = self._take()[1]
            node = ("bin", op, node, self._unary())
        return node

    def _descend(self) -> None:
        self._depth += 1
        if self._depth > _MAX_NESTING_DEPTH:
            raise FormulaError(f"Formula nests deeper than {_MAX_NESTING_DEPTH} levels")

    def _unary(self) -> _Node:
        if self._peek() in (("op", "-"), ("op", "+")):
            op = self._take()[1]
            self._descend()
            node = self._unary()
            self._depth -= 1
            return ("neg", node) if op == "-" else node
        return self._atom()

    def _atom(self) -> _Node:
        kind, value = self._take()
        if kind == "num":
            return ("num", value)
        if kind == "var":
            return ("var", value)
        if (kind, value) == ("op", "("):
            self._descend()
            node = self._expr()
            if self._take() != ("op", ")"):
                raise FormulaError("Missing closing parenthesis")
            self._depth -= 1
            return node
        if kind == "end":
            raise FormulaError("Formula ends unexpectedly")
        raise FormulaError(f"Unexpected token {value!r}")


def _evaluate(node: _Node, values: Mapping[str, float]) -> float:
    kind = node[0]
    if kind == "num":
        return node[1]
    if kind == "var":
        return float(values.get(node[1], 0.0))
    if kind == "neg":
        return -_evaluate(node[1], values)

    _, op, left, right = node
    lhs = _evaluate(left, values)
    rhs = _evaluate(right, values)
    if op == "+":
        return lhs + rhs
    if op == "-":
        return lhs - rhs
    if op == "*":
        return lhs * rhs
    if rhs == 0:
        raise FormulaError("Division by zero")
    return lhs / rhs


def _collect_variables(node: _Node) -> FrozenSet[str]:
    kind = node[0]
    if kind == "var":
        return frozenset([node[1]])
    if kind == "neg":
        return _collect_variables(node[1])
    if kind == "bin":
        return _collect_variables(node[2]) | _collect_variables(node[3])
    return frozenset()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

class CompiledFormula:
    """A parsed formula, reusable across washrooms."""

    def __init__(self, source: str, tree: _Node) -> None:
        self.source = source
        self._tree = tree
        self.variables: FrozenSet[str] = _collect_variables(tree)

    def evaluate(self, bindings: Union[FormulaBindings, Mapping[str, float]]) -> float:
        """
        Evaluate against ``bindings``.

        Raises FormulaError on division by zero or a non-finite result.
        """
        values = bindings.as_dict() if isinstance(bindings, FormulaBindings) else bindings
        try:
            result = _evaluate(self._tree, values)
        except OverflowError as exc:
            raise FormulaError(f"Formula overflowed: {exc}") from exc
        except RecursionError as exc:
            raise FormulaError("Formula is too deeply nested") from exc
        if not math.isfinite(result):
            raise FormulaError(f"Formula produced a non-finite result ({result})")
        return result

    def __repr__(self) -> str:
        return f"CompiledFormula({self.source!r})"


def compile_formula(source: str) -> CompiledFormula:
    """
    Parse ``source`` once.  Raises FormulaError for anything malformed,
    including formulas over 500 characters or nested more than 32 levels.
    """
    if source is None:
        raise FormulaError("Formula is empty")
    text = str(source)
    if len(text) > _MAX_FORMULA_LENGTH:
        raise FormulaError(f"Formula is longer than {_MAX_FORMULA_LENGTH} characters")
    try:
        return CompiledFormula(text, _Parser(_tokenize(text)).parse())
    except RecursionError as exc:
        raise FormulaError("Formula is too deeply nested") from exc
