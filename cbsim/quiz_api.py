"""Quiz lookup and insertion against a document collection."""

from __future__ import annotations

import json
import logging
import re
from http import HTTPStatus
from typing import Any, Mapping, Optional, Union

from pymongo.errors import PyMongoError

from cbsim.models import Quiz, quiz_from_document

logger = logging.getLogger(__name__)

_INTEGER = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class QuizError(Exception):
    """A quiz request failed; ``status`` is the HTTP status to answer with."""

    def __init__(self, status: HTTPStatus, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


def parse_level(value: Optional[str]) -> int:
    """Parse the ``level`` query parameter as a signed decimal integer."""
    if not value:
        raise QuizError(HTTPStatus.BAD_REQUEST, "Missing level parameter")
    if not _INTEGER.fullmatch(value):
        raise QuizError(HTTPStatus.BAD_REQUEST, "Invalid level parameter")
    level = int(value)
    if not _INT64_MIN <= level <= _INT64_MAX:
        raise QuizError(HTTPStatus.BAD_REQUEST, "Invalid level parameter")
    return level


def find_quizzes(collection: Any, level: int) -> list[Quiz]:
    """Return every quiz stored at ``level``; undecodable documents are skipped."""
    try:
        cursor = collection.find({"level": level})
    except PyMongoError as exc:
        raise QuizError(HTTPStatus.INTERNAL_SERVER_ERROR, "Error querying database") from exc

    quizzes: list[Quiz] = []
    try:
        for document in cursor:
            try:
                quizzes.append(quiz_from_document(document))
            except ValueError as exc:
                logger.warning("Error decoding quiz: %s", exc)
    except PyMongoError as exc:
        raise QuizError(HTTPStatus.INTERNAL_SERVER_ERROR, "Error iterating cursor") from exc
    finally:
        close = getattr(cursor, "close", None)
        if callable(close):
            close()

    if not quizzes:
        raise QuizError(HTTPStatus.NOT_FOUND, "No quizzes found for the specified level")
    return quizzes


def add_quiz(collection: Any, data: Union[str, bytes, Mapping[str, Any]]) -> dict[str, str]:
    """Validate and store one quiz given as JSON text or an already parsed mapping."""
    if isinstance(data, (str, bytes, bytearray)):
        try:
            data = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise QuizError(HTTPStatus.BAD_REQUEST, "Invalid quiz data") from exc
    try:
        quiz = quiz_from_document(data)
    except ValueError as exc:
        raise QuizError(HTTPStatus.BAD_REQUEST, "Invalid quiz data") from exc

    if not quiz.question or not quiz.options or not quiz.answer:
        raise QuizError(HTTPStatus.BAD_REQUEST, "Missing required quiz fields")

    try:
        collection.insert_one(quiz.to_dict())
    except PyMongoError as exc:
        raise QuizError(HTTPStatus.INTERNAL_SERVER_ERROR, "Error adding quiz") from exc
    return {"message": "Quiz added successfully"}