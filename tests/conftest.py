import os
import sys
import tempfile
from pathlib import Path

import pytest

os.environ.setdefault("ENABLE_FILE_LOGS", "0")

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storage.migrate import migrate
from config.settings import settings
from config.registry import QUESTION_KEY, SCORER_KEY, SUMMARY_KEY, bind_model, clear_models


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    try:
        yield db_path
    finally:
        td.cleanup()


@pytest.fixture(autouse=True)
def no_backends():
    """Start every test with nothing bound, i.e. all fallbacks active."""

    clear_models()
    yield
    clear_models()


@pytest.fixture
def fake_models():
    calls = {"question": 0, "score": 0, "summary": 0}

    def question(**kwargs):
        calls["question"] += 1
        number = kwargs["inputs"]["question_number"]
        tier = kwargs["inputs"]["tier"]
        return f"Generated {tier} question {number} (call {calls['question']})"

    def scorer(**_):
        calls["score"] += 1
        return {
            "score": 80,
            "reasoning": "Solid answer.",
            "breakdown": {"technical_accuracy": 85, "clarity": 80, "completeness": 75, "depth": 80},
        }

    def summary(**kwargs):
        calls["summary"] += 1
        return f"Candidate scored {kwargs['inputs']['final_score']}/100."

    bind_model(QUESTION_KEY, question)
    bind_model(SCORER_KEY, scorer)
    bind_model(SUMMARY_KEY, summary)
    return calls
