"""
Visibility condition contracts.

A block may carry a :class:`ConditionGroup`. The group combines rules (and,
recursively, sub-groups) with ``AND`` / ``OR``. Each :class:`ConditionRule`
compares one value of the evaluation context against a literal.

The dotted ``field`` string is validated and parsed when the rule is built;
the parsed form is available as :attr:`ConditionRule.path` and is what the
evaluator uses. A rule with an unknown path can therefore never be saved.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, PrivateAttr, model_validator

from proposalkit.core.evaluation.paths import FieldPath, parse_field_path

Operator = Literal["==", "!=", ">", "<", ">=", "<="]
Logic = Literal["AND", "OR"]
RuleValue = bool | int | float | str


class ConditionRule(BaseModel):
    """A single comparison: ``<context[field]> <operator> <value>``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    field: str
    operator: Operator
    value: RuleValue

    _path: FieldPath = PrivateAttr()

    @model_validator(mode="after")
    def _bind_path(self) -> ConditionRule:
        """Parse ``field`` once; raises on malformed paths."""
        self._path = parse_field_path(self.field)
        return self

    @property
    def path(self) -> FieldPath:
        """The parsed, typed form of :attr:`field`."""
        return self._path


class ConditionGroup(BaseModel):
    """Rules combined with ``AND`` / ``OR``; an empty group always passes."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    logic: Logic = "AND"
    rules: tuple[ConditionRule | ConditionGroup, ...] = ()


__all__ = ["ConditionGroup", "ConditionRule", "Logic", "Operator", "RuleValue"]
