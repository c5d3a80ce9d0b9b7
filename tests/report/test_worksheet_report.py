import csv

import pytest

from gradeflow.domain.models import Feedback, Source, Worksheet, WorksheetStatus
from gradeflow.pipelines.mock import generate_mock_grading_results
from gradeflow.report import WorksheetReportGenerator, export_grades_csv


@pytest.fixture
def worksheets(sample_grading_result):
    graded = Worksheet(
        student_name="Ada",
        subject="math",
        grade_level="3",
        status=WorksheetStatus.GRADED,
        grading_results=sample_grading_result,
        feedback=Feedback(
            summary="Ada did well <b>overall</b>.",
            praise="p", improvements="i", next_steps="n", encouragement="Keep going!"
        )
    )
    mocked = Worksheet(
        student_name="Grace",
        subject="science",
        status=WorksheetStatus.GRADED,
        grading_results=generate_mock_grading_results("science")
    )
    failed = Worksheet(student_name="Alan", status=WorksheetStatus.ERROR, error="Image unreadable")
    return [graded, mocked, failed]


class TestWorksheetReportGenerator:
    def test_render_contains_results(self, worksheets):
        html = WorksheetReportGenerator().render(worksheets, title="Class 3B")

        assert "<title>Class 3B</title>" in html
        assert "80%" in html
        assert "(B-)" in html
        assert "3x4" in html
        assert "Processing failed: Image unreadable" in html
        assert "Keep going!" in html

    def test_feedback_is_escaped(self, worksheets):
        html = WorksheetReportGenerator().render(worksheets)

        assert "&lt;b&gt;overall&lt;/b&gt;" in html

    def test_stats(self, worksheets):
        stats = WorksheetReportGenerator()._calculate_stats(worksheets)

        assert stats["total"] == 3
        assert stats["graded"] == 2
        assert stats["mock_results"] == 1
        expected = (80 + worksheets[1].grading_results.total_score) / 2
        assert stats["average_score"] == pytest.approx(expected)

    def test_stats_without_graded_worksheets(self):
        stats = WorksheetReportGenerator()._calculate_stats([Worksheet()])
        assert stats["average_score"] == 0.0

    def test_generate_report_writes_file(self, worksheets, tmp_path):
        output = tmp_path / "reports" / "class.html"

        path = WorksheetReportGenerator().generate_report(worksheets, output)

        assert path == output
        assert "Ada" in output.read_text(encoding="utf-8")

    def test_custom_template_dir(self, worksheets, tmp_path):
        (tmp_path / "worksheet_report.html").write_text("{{ title }}: {{ stats.graded }} graded")

        html = WorksheetReportGenerator(template_dir=tmp_path).render(worksheets, title="Custom")

        assert html == "Custom: 2 graded"


class TestExportGradesCsv:
    def test_only_graded_rows(self, worksheets, tmp_path):
        output = tmp_path / "grades.csv"

        rows = export_grades_csv(worksheets, output)

        with open(output, newline="", encoding="utf-8") as f:
            records = list(csv.DictReader(f))

        assert rows == 2
        assert [r["Student"] for r in records] == ["Ada", "Grace"]
        assert records[0]["Score"] == "80"
        assert records[0]["Letter Grade"] == "B-"
        assert records[0]["Points Earned"] == "8"
        assert records[0]["Points Possible"] == "10"
        assert records[0]["Source"] == Source.GEMINI.value
        assert records[1]["Source"] == "mock"

    def test_empty_export_has_header(self, tmp_path):
        output = tmp_path / "grades.csv"

        assert export_grades_csv([], output) == 0
        assert output.read_text(encoding="utf-8").startswith("Student,Subject")
