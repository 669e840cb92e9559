"""
SEEDFORGE - Rule Expression Language

Tokenizer and typed grammar for the two tiny languages rules are written in.

Effects (first match wins):
    score+1           ArithmeticEffect  type=score   op=+        value=1
    health-1          ArithmeticEffect  type=health  op=-        value=1
    chaos:trigger     TriggerEffect     type=chaos   op=trigger  value=trigger
    spawn:enemy       SignalEffect      type=spawn   op=:        value=enemy
    flag=collected    FlagEffect        type=flag    op==        value=collected
    anything else     CustomEffect      type=custom  op=trigger  value=<text>

Conditions (empty or None is always true):
    flag:key_collected     FlagCondition
    has:shoot              HasCondition      (state.abilities)
    health>0               CompareCondition  (>, >=, <, <=, ==, !=; missing field = 0)
    anything else          UnknownCondition  (true)

Both parsers are total. With strict=True a parse miss raises ExpressionError
instead of falling back, which is what authoring tools and tests want.
"""

from __future__ import annotations

import math
import operator
import re
from dataclasses import dataclass
from typing import Optional, Union


# ═══════════════════════════════════════════════════════════════
# Diagnostics
# ═══════════════════════════════════════════════════════════════

class ExpressionError(ValueError):
    """A rule string that matches none of the grammars."""

    def __init__(self, kind: str, text: str, reason: str):
        self.kind = kind        # "effect" | "condition"
        self.text = text
        self.reason = reason
        super().__init__(f"Unparsable {kind} {text!r}: {reason}")

    def to_dict(self) -> dict:
        return {"kind": self.kind, "text": self.text, "reason": self.reason}


# ═══════════════════════════════════════════════════════════════
# Tokenizer
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Token:
    kind: str    # NUMBER | NAME | OP
    text: str


_TOKEN_RE = re.compile(
    r"(?P<NUMBER>\d+(?:\.\d+)?(?!\w))"
    r"|(?P<NAME>\w+)"
    r"|(?P<OP>>=|<=|==|!=|[<>+\-:=])"
)

_WORD_RE = re.compile(r"^\w+$")


def tokenize(text: str) -> Optional[list[Token]]:
    """Split text into tokens, or None if any character is not covered."""
    tokens = []
    pos = 0
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if not m:
            return None
        tokens.append(Token(m.lastgroup, m.group()))
        pos = m.end()
    return tokens


def _number(text: str) -> Union[int, float]:
    return float(text) if "." in text else int(text)


def _is_word(tok: Token) -> bool:
    return tok.kind in ("NAME", "NUMBER") and bool(_WORD_RE.match(tok.text))


def _shape(tokens: list[Token]) -> tuple:
    return tuple(t.text if t.kind == "OP" else t.kind for t in tokens)


# ═══════════════════════════════════════════════════════════════
# Effects
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ParsedEffect:
    type: str
    operator: str
    value: Union[str, int, float]

    def to_dict(self) -> dict:
        return {"type": self.type, "operator": self.operator, "value": self.value}


@dataclass(frozen=True)
class ArithmeticEffect(ParsedEffect):
    pass


@dataclass(frozen=True)
class TriggerEffect(ParsedEffect):
    pass


@dataclass(frozen=True)
class SignalEffect(ParsedEffect):
    pass


@dataclass(frozen=True)
class FlagEffect(ParsedEffect):
    pass


@dataclass(frozen=True)
class CustomEffect(ParsedEffect):
    pass


def parse_effect(effect: str, strict: bool = False) -> ParsedEffect:
    text = effect if isinstance(effect, str) else ""
    tokens = tokenize(text) if text else None

    if tokens and len(tokens) == 3 and tokens[0].kind == "NAME":
        name, op, arg = tokens
        shape = _shape(tokens)

        if shape[1] in ("+", "-") and arg.kind == "NUMBER":
            return ArithmeticEffect(name.text, op.text, _number(arg.text))

        if shape[1] == ":" and _is_word(arg):
            if arg.text == "trigger":
                return TriggerEffect(name.text, "trigger", "trigger")
            return SignalEffect(name.text, ":", arg.text)

        if shape[1] == "=" and _is_word(arg):
            # Assignments always land in the flag namespace
            return FlagEffect("flag", "=", arg.text)

    if strict:
        raise ExpressionError("effect", text, "expected name+N, name-N, name:word or name=word")
    return CustomEffect("custom", "trigger", text)


# ═══════════════════════════════════════════════════════════════
# Conditions
# ═══════════════════════════════════════════════════════════════

COMPARATORS = {
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
    "==": operator.eq,
    "!=": operator.ne,
}


def _as_number(value) -> float:
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


class Condition:
    text: str = ""

    def evaluate(self, state) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class AlwaysCondition(Condition):
    text: str = ""

    def evaluate(self, state) -> bool:
        return True


@dataclass(frozen=True)
class FlagCondition(Condition):
    name: str
    text: str = ""

    def evaluate(self, state) -> bool:
        return state.flags.get(self.name) is True


@dataclass(frozen=True)
class HasCondition(Condition):
    name: str
    text: str = ""

    def evaluate(self, state) -> bool:
        abilities = getattr(state, "abilities", None)
        return isinstance(abilities, (list, tuple, set)) and self.name in abilities


@dataclass(frozen=True)
class CompareCondition(Condition):
    field: str
    op: str
    target: Union[int, float]
    text: str = ""

    def evaluate(self, state) -> bool:
        # NaN (non-numeric field) fails every comparison except !=
        return COMPARATORS[self.op](_as_number(state.value_of(self.field)), self.target)


@dataclass(frozen=True)
class UnknownCondition(Condition):
    text: str = ""

    def evaluate(self, state) -> bool:
        return True


def parse_condition(condition: Optional[str], strict: bool = False) -> Condition:
    if condition is None or not isinstance(condition, str) or condition.strip() == "":
        return AlwaysCondition()

    tokens = tokenize(condition)
    if tokens and len(tokens) == 3 and tokens[0].kind == "NAME":
        head, op, arg = tokens

        if op.text == ":" and _is_word(arg):
            if head.text == "flag":
                return FlagCondition(arg.text, text=condition)
            if head.text == "has":
                return HasCondition(arg.text, text=condition)

        if op.text in COMPARATORS and arg.kind == "NUMBER":
            return CompareCondition(head.text, op.text, _number(arg.text), text=condition)

    if strict:
        raise ExpressionError("condition", condition,
                              "expected flag:name, has:name or field<op>number")
    return UnknownCondition(text=condition)


def evaluate_condition(condition: Optional[str], state, strict: bool = False) -> bool:
    return parse_condition(condition, strict=strict).evaluate(state)
