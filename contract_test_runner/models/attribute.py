"""Typed attribute descriptors attached to compiled functions.

The compiler front-end reduces every attribute (``#[available_gas(1000)]``,
``#[should_panic(expected: ('x',))]``...) to an :class:`AttributeDescriptor`:
a name and an ordered list of positional or named arguments holding literal
values. Extraction of test configuration pattern-matches on these models.
"""

from collections.abc import Sequence
from typing import Annotated, Any, Literal

from pydantic import Field, field_validator

from contract_test_runner.felt import short_string_to_felt
from contract_test_runner.models.base import Model


class IntLiteral(Model):
    """Numeric literal, e.g. ``1000`` or ``0x1234``."""

    kind: Literal["int"] = "int"
    value: int


class ShortStringLiteral(Model):
    """Short string literal, e.g. ``'ERC20'``."""

    kind: Literal["short_string"] = "short_string"
    text: str

    @field_validator("text")
    @classmethod
    def check_encodable(cls, text: str) -> str:
        """Reject text that does not fit in a single field element."""
        short_string_to_felt(text)
        return text


class TupleLiteral(Model):
    """Parenthesized tuple of values, e.g. ``(1, 'A')``."""

    kind: Literal["tuple"] = "tuple"
    elements: Sequence["AttributeValue"] = Field(default_factory=tuple)

    @field_validator("elements", mode="before")
    @classmethod
    def coerce_plain_elements(cls, elements: Any) -> Any:
        """Accept plain scalars for the elements."""
        if isinstance(elements, list | tuple):
            return [coerce_value(item) for item in elements]
        return elements


class OpaqueExpr(Model):
    """Any expression that is not a literal, kept as source text."""

    kind: Literal["expr"] = "expr"
    text: str


AttributeValue = Annotated[
    IntLiteral | ShortStringLiteral | TupleLiteral | OpaqueExpr,
    Field(discriminator="kind"),
]


def coerce_value(raw: Any) -> Any:
    """Turn plain YAML/JSON scalars into tagged attribute values.

    ``5`` becomes an int literal, ``"'abc'"`` a short string, a list a tuple
    and any other string an opaque expression. Mappings are left untouched
    for pydantic to validate against the ``kind`` discriminator.
    """
    if isinstance(raw, bool):
        return {"kind": "expr", "text": str(raw).lower()}
    if isinstance(raw, int):
        return {"kind": "int", "value": raw}
    if isinstance(raw, str):
        if len(raw) >= 2 and raw.startswith("'") and raw.endswith("'"):
            return {"kind": "short_string", "text": raw[1:-1]}
        return {"kind": "expr", "text": raw}
    if isinstance(raw, list | tuple):
        return {"kind": "tuple", "elements": [coerce_value(item) for item in raw]}
    return raw


class AttributeArg(Model):
    """Single attribute argument, positional when ``name`` is None."""

    name: str | None = None
    value: AttributeValue

    @field_validator("value", mode="before")
    @classmethod
    def coerce_plain_value(cls, value: Any) -> Any:
        """Accept plain scalars for the value."""
        return coerce_value(value)


class AttributeDescriptor(Model):
    """Attribute attached to a function: a name and its ordered arguments."""

    name: str
    args: Sequence[AttributeArg] = Field(default_factory=tuple)


TupleLiteral.model_rebuild()
