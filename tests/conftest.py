from types import SimpleNamespace

import pytest

from eduaid.insight_client import GroqInsightClient


def fake_groq(reply=None, error=None, calls=None):
    """Object shaped like the Groq SDK client, answering `reply` or raising `error`"""
    def create(**kwargs):
        if calls is not None:
            calls.append(kwargs)
        if error is not None:
            raise error
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


@pytest.fixture
def make_client():
    def _make(reply=None, error=None, calls=None):
        return GroqInsightClient(client=fake_groq(reply, error, calls), timeout=5)
    return _make


@pytest.fixture
def offline_client():
    return GroqInsightClient(api_key=None)


@pytest.fixture
def term_rows():
    return [
        {"Full Name": "Ada Obi", "Subject": "Mathematics", "SS1_1st": 80, "SS1_2nd": 90, "SS2_1st": 85},
        {"Full Name": "Ada Obi", "Subject": "Physics", "SS1_1st": 75, "SS1_2nd": 70, "SS2_1st": 74},
        {"Full Name": "Ada Obi", "Subject": "English", "SS1_1st": 60, "SS1_2nd": 58, "SS2_1st": 62},
        {"Full Name": "Tunde Bello", "Subject": "Economics", "SS1_1st": 72, "SS1_2nd": 78, "SS2_1st": 75},
        {"Full Name": "Tunde Bello", "Subject": "Government", "SS1_1st": 81, "SS1_2nd": 79, "SS2_1st": 80},
        {"Full Name": "Tunde Bello", "Subject": "English", "SS1_1st": 66, "SS1_2nd": 70, "SS2_1st": 68},
    ]


@pytest.fixture
def graded_records():
    names = ["Ada", "Tunde", "Chioma", "Emeka", "Ngozi", "Bola"]
    grades = [88, 75, 62, 91, 55, 5]
    attendance = [96, 85, 70, 98, 65, 40]
    return [
        {
            "identifier": name, "name": name, "id": None, "subject": None,
            "grade": float(grade), "attendance": float(att), "participation": None,
            "assignment": None, "exam": None, "quiz": None,
        }
        for name, grade, att in zip(names, grades, attendance)
    ]
