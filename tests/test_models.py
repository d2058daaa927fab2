import pytest

from cbsim.models import ColorBlindness, Quiz, quiz_from_document


def _sample() -> Quiz:
    return Quiz(
        level=2,
        question="Which colour is hardest to see with protanopia?",
        options=["Red", "Blue", "Yellow"],
        answer="Red",
        explanation="Protanopes lack long-wavelength cones.",
    )


def test_to_dict_round_trip():
    quiz = _sample()
    assert quiz_from_document(quiz.to_dict()) == quiz


def test_to_dict_keys():
    assert set(_sample().to_dict()) == {"level", "question", "options", "answer", "explanation"}


def test_to_dict_copies_options():
    quiz = _sample()
    data = quiz.to_dict()
    data["options"].append("Green")
    assert quiz.options == ["Red", "Blue", "Yellow"]


def test_document_ignores_unknown_keys():
    document = dict(_sample().to_dict(), _id="abc")
    assert quiz_from_document(document) == _sample()


def test_missing_fields_take_empty_values():
    assert quiz_from_document({"question": "Q"}) == Quiz(question="Q")
    assert quiz_from_document(None) == Quiz()


def test_null_fields_take_empty_values():
    quiz = quiz_from_document({"level": None, "options": None, "answer": None})
    assert quiz == Quiz()


def test_whole_float_level_accepted():
    assert quiz_from_document({"level": 3.0}).level == 3


@pytest.mark.parametrize(
    "document",
    [
        {"level": "one"},
        {"level": 1.5},
        {"level": True},
        {"question": 5},
        {"options": "Red"},
        {"options": ["Red", 2]},
        {"explanation": ["x"]},
        ["not", "a", "mapping"],
    ],
)
def test_wrong_types_rejected(document):
    with pytest.raises(ValueError):
        quiz_from_document(document)


def test_color_blindness_is_frozen():
    kind = ColorBlindness(name="Protanopia", description="No red cones")
    assert (kind.name, kind.description) == ("Protanopia", "No red cones")
    with pytest.raises(AttributeError):
        kind.name = "Other"