"""Plugin answers and window presets used when authoring job specs.

Task and hook plugins ask questions while a spec is being authored. Each
answer is one of a fixed set of kinds, modelled as a tagged union over the
``kind`` field:

    >>> answer = PluginAnswer.model_validate(
    ...     {"question": "LOAD_METHOD", "value": {"kind": "option", "value": "APPEND", "index": 0}}
    ... )
    >>> answer_to_string(answer.value)
    'APPEND'
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from sluice_core.errors import UnsupportedAnswerError
from sluice_core.schemas import ConfigItem, JobTaskWindow


class TextAnswer(BaseModel):
    """Free-form text input."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["text"] = "text"
    value: str


class OptionAnswer(BaseModel):
    """An option picked from a list."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["option"] = "option"
    value: str
    index: int = Field(default=0, ge=0)


class NumericAnswer(BaseModel):
    """An integer input."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["numeric"] = "numeric"
    value: int


PluginAnswerValue = Annotated[
    Union[TextAnswer, OptionAnswer, NumericAnswer],
    Field(discriminator="kind"),
]


class PluginAnswer(BaseModel):
    """Answer to a single plugin question."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    question: str = Field(..., min_length=1, description="Question name")
    value: PluginAnswerValue


def answer_to_string(value: object) -> str:
    """Convert an answer value to the string stored in a config block.

    Raises:
        UnsupportedAnswerError: If ``value`` is not a known answer kind.
    """
    if isinstance(value, TextAnswer):
        return value.value
    if isinstance(value, OptionAnswer):
        return value.value
    if isinstance(value, NumericAnswer):
        return str(value.value)
    raise UnsupportedAnswerError(value)


def answers_to_config(answers: Iterable[PluginAnswer]) -> tuple[ConfigItem, ...]:
    """Build an ordered config block from answers, in answer order."""
    return tuple(ConfigItem(name=a.question, value=answer_to_string(a.value)) for a in answers)


_WINDOW_PRESETS: dict[str, JobTaskWindow] = {
    "hourly": JobTaskWindow(size="1h", offset="0", truncate_to="h"),
    "daily": JobTaskWindow(size="24h", offset="0", truncate_to="h"),
    "weekly": JobTaskWindow(size="168h", offset="0", truncate_to="w"),
    "monthly": JobTaskWindow(size="720h", offset="0", truncate_to="M"),
}

WINDOW_PRESETS = tuple(_WINDOW_PRESETS)
"""Preset names offered when authoring a job."""


def window_for_preset(name: str) -> JobTaskWindow:
    """Return the authored window for a preset name.

    Unknown names get the daily preset.
    """
    return _WINDOW_PRESETS.get(name, _WINDOW_PRESETS["daily"])
