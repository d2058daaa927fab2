"""Data records for colour-vision deficiencies and quiz questions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class ColorBlindness:
    """A type of colour blindness."""

    name: str
    description: str


@dataclass
class Quiz:
    """One quiz question at a difficulty level."""

    level: int = 0
    question: str = ""
    options: list[str] = field(default_factory=list)
    answer: str = ""
    explanation: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the quiz as a plain mapping using its stored field names."""
        return {
            "level": self.level,
            "question": self.question,
            "options": list(self.options),
            "answer": self.answer,
            "explanation": self.explanation,
        }


def _string(document: Mapping[str, Any], key: str) -> str:
    value = document.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string")
    return value


def _integer(document: Mapping[str, Any], key: str) -> int:
    value = document.get(key)
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValueError(f"field {key!r} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ValueError(f"field {key!r} must be an integer")


def _strings(document: Mapping[str, Any], key: str) -> list[str]:
    value = document.get(key)
    if value is None:
        return []
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
        raise ValueError(f"field {key!r} must be a list of strings")
    if not all(isinstance(item, str) for item in value):
        raise ValueError(f"field {key!r} must be a list of strings")
    return list(value)


def quiz_from_document(document: Optional[Mapping[str, Any]]) -> Quiz:
    """Build a Quiz from a stored document; missing fields take empty values.

    Unknown keys (such as ``_id``) are ignored. A field of the wrong type
    raises ValueError.
    """
    if document is None:
        return Quiz()
    if not isinstance(document, Mapping):
        raise ValueError("quiz document must be a mapping")
    return Quiz(
        level=_integer(document, "level"),
        question=_string(document, "question"),
        options=_strings(document, "options"),
        answer=_string(document, "answer"),
        explanation=_string(document, "explanation"),
    )