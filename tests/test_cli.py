"""
CLI tests using typer's CliRunner.

Unless a test sets GEMINI_API_KEY and patches the HTTP layer, no key is
configured and grading runs use mock data.
"""

import json
from unittest.mock import Mock, patch
import pytest
from typer.testing import CliRunner

from gradeflow import __version__
from gradeflow.domain.models import GradingResult, QuestionResult, Worksheet
from gradeflow.main import _display_worksheet, app
from gradeflow.utils.logging import console

runner = CliRunner()


@pytest.fixture
def worksheet_file(tmp_path):
    path = tmp_path / "ada.txt"
    path.write_text("Name: Ada\n1. 2 + 2 = 4\n2. 3 x 4 = 11\n", encoding="utf-8")
    return path


@pytest.fixture
def results_dir(tmp_path):
    return tmp_path / "results"


def _grade(worksheet_file, results_dir, *extra):
    return runner.invoke(app, ["grade", str(worksheet_file), "-s", "math", "-o", str(results_dir), *extra])


class TestGradeCommand:
    def test_grade_text_file_with_mock(self, worksheet_file, results_dir):
        result = _grade(worksheet_file, results_dir, "--tone", "strict")

        assert result.exit_code == 0, result.output
        assert "GEMINI_API_KEY not set" in result.output
        assert "Results for Ada" in result.output

        saved = list(results_dir.glob("*.json"))
        assert len(saved) == 1
        data = json.loads(saved[0].read_text(encoding="utf-8"))
        assert data["status"] == "graded"
        assert data["studentName"] == "Ada"
        assert data["gradingResults"]["source"] == "mock"
        assert data["feedback"]["summary"].startswith("Ada, you earned")

    def test_no_feedback(self, worksheet_file, results_dir):
        result = _grade(worksheet_file, results_dir, "--no-feedback", "-n", "Grace")

        assert result.exit_code == 0, result.output
        data = json.loads(next(results_dir.glob("*.json")).read_text(encoding="utf-8"))
        assert data["feedback"] is None
        assert data["completedAt"] is not None
        assert data["studentName"] == "Grace"

    def test_unknown_tone_warns(self, worksheet_file, results_dir):
        result = _grade(worksheet_file, results_dir, "--tone", "sarcastic")

        assert result.exit_code == 0, result.output
        assert "Unknown tone" in result.output

    def test_padded_tone_is_accepted(self, worksheet_file, results_dir):
        result = _grade(worksheet_file, results_dir, "--tone", " strict")

        assert result.exit_code == 0, result.output
        assert "Unknown tone" not in result.output

    def test_bracketed_model_text_is_printed_verbatim(self, worksheet_file, results_dir, monkeypatch,
                                                      make_gemini_body):
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        grading = {
            "totalScore": 40,
            "questions": [
                {"number": 1, "question": "Simplify x [/2]", "score": 2, "maxScore": 5,
                 "feedback": "Check [red] step"}
            ]
        }
        feedback = {
            "summary": "Watch the [/2] step.",
            "praise": "Good [bold] start.",
            "improvements": "Divide carefully.",
            "nextSteps": "Practice fractions.",
            "encouragement": "Keep going!"
        }
        responses = []
        for body in (grading, feedback):
            response = Mock(ok=True, status_code=200)
            response.json.return_value = make_gemini_body(json.dumps(body))
            responses.append(response)

        with patch("gradeflow.services.llm.gemini.requests.post", side_effect=responses):
            result = _grade(worksheet_file, results_dir)

        assert result.exit_code == 0, result.output
        assert "Simplify x [/2]" in result.output
        assert "Check [red] step" in result.output
        assert "Watch the [/2] step." in result.output
        assert "Good [bold] start." in result.output

    def test_missing_input_file(self, tmp_path):
        result = runner.invoke(app, ["grade", str(tmp_path / "missing.txt")])
        assert result.exit_code != 0


class TestDisplayWorksheet:
    def test_markup_in_results_is_escaped(self):
        worksheet = Worksheet(
            student_name="[Ada]",
            grading_results=GradingResult(
                total_score=50,
                questions=[QuestionResult(number=1, question="Simplify x [/2]", score=1, max_score=2)]
            )
        )

        with console.capture() as capture:
            _display_worksheet(worksheet)

        output = capture.get()
        assert "Simplify x [/2]" in output
        assert "Results for [Ada]" in output


class TestReportCommands:
    def test_report_and_export(self, worksheet_file, results_dir, tmp_path):
        assert _grade(worksheet_file, results_dir).exit_code == 0

        html = tmp_path / "report.html"
        result = runner.invoke(app, ["report", "-d", str(results_dir), "-o", str(html)])
        assert result.exit_code == 0, result.output
        assert "Ada" in html.read_text(encoding="utf-8")

        csv_file = tmp_path / "grades.csv"
        result = runner.invoke(app, ["export", "-d", str(results_dir), "-o", str(csv_file)])
        assert result.exit_code == 0, result.output
        assert len(csv_file.read_text(encoding="utf-8").strip().splitlines()) == 2

    def test_report_without_results(self, tmp_path):
        result = runner.invoke(app, ["report", "-d", str(tmp_path / "empty")])

        assert result.exit_code == 1
        assert "No saved worksheets" in result.output


class TestApiCommands:
    def test_check_api_without_key(self):
        result = runner.invoke(app, ["check-api"])

        assert result.exit_code == 1
        assert "GEMINI_API_KEY not configured" in result.output

    def test_models_without_key(self):
        assert runner.invoke(app, ["models"]).exit_code == 1


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output
