"""
Worksheet Report Generator

Generates an HTML class summary of graded worksheets and a CSV export of
their scores.
"""

import csv
import logging
from pathlib import Path
from typing import List, Dict, Any, Optional
from datetime import datetime
from jinja2 import Environment, FileSystemLoader, select_autoescape

from gradeflow.domain.models import Worksheet, WorksheetStatus

logger = logging.getLogger(__name__)

REPORT_TEMPLATE_NAME = "worksheet_report.html"

CSV_COLUMNS = [
    "Student", "Subject", "Grade Level", "Score", "Letter Grade",
    "Points Earned", "Points Possible", "Questions", "Source", "Graded At"
]

INLINE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>{{ title }}</title>
    <style>
        body { font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; color: #333; background: #f5f5f5; }
        .container { max-width: 1100px; margin: 0 auto; padding: 20px; }
        .header { background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white; padding: 24px; border-radius: 10px; }
        .stats { display: flex; gap: 20px; margin: 20px 0; }
        .stat-card { background: white; padding: 16px; border-radius: 8px; flex: 1; }
        .stat-card .value { font-size: 1.8em; font-weight: bold; color: #667eea; }
        .worksheet { background: white; border-radius: 10px; padding: 20px; margin-bottom: 20px; }
        .badge { padding: 3px 10px; border-radius: 12px; font-size: 0.85em; background: #e5e7eb; }
        .badge.mock, .badge.fallback { background: #fde68a; }
        table { width: 100%; border-collapse: collapse; }
        th, td { text-align: left; padding: 6px; border-bottom: 1px solid #eee; }
        .correct { color: #10b981; }
        .partial { color: #f59e0b; }
        .wrong { color: #ef4444; }
    </style>
</head>
<body>
<div class="container">
    <div class="header">
        <h1>{{ title }}</h1>
        <div>Generated: {{ generation_time }}</div>
    </div>

    <div class="stats">
        <div class="stat-card"><div>Graded</div><div class="value">{{ stats.graded }}/{{ stats.total }}</div></div>
        <div class="stat-card"><div>Average</div><div class="value">{{ "%.1f"|format(stats.average_score) }}%</div></div>
        <div class="stat-card"><div>Mock results</div><div class="value">{{ stats.mock_results }}</div></div>
    </div>

    {% for item in worksheets %}
    <div class="worksheet">
        <h2>{{ item.student_name }} &mdash; {{ item.subject }}</h2>
        {% if item.error %}
        <p class="wrong">Processing failed: {{ item.error }}</p>
        {% elif item.grading %}
        <p>
            <strong>{{ item.grading.totalScore }}%</strong> ({{ item.grade_letter }})
            <span class="badge {{ item.grading.source }}">{{ item.grading.source }}</span>
        </p>
        <table>
            <tr><th>#</th><th>Question</th><th>Answer</th><th>Score</th><th>Feedback</th></tr>
            {% for q in item.grading.questions %}
            <tr class="{{ 'correct' if q.isCorrect else ('partial' if q.partialCredit else 'wrong') }}">
                <td>{{ q.number }}</td><td>{{ q.question }}</td><td>{{ q.studentAnswer }}</td>
                <td>{{ q.score }}/{{ q.maxScore }}</td><td>{{ q.feedback }}</td>
            </tr>
            {% endfor %}
        </table>
        {% if item.feedback %}
        <h3>Feedback</h3>
        <p>{{ item.feedback.summary }}</p>
        <p><em>{{ item.feedback.encouragement }}</em></p>
        {% endif %}
        {% else %}
        <p>Status: {{ item.status }}</p>
        {% endif %}
    </div>
    {% endfor %}
</div>
</body>
</html>
"""


class WorksheetReportGenerator:
    """Renders graded worksheets into a single HTML summary page."""

    def __init__(self, template_dir: Optional[Path] = None):
        """
        Initialize the report generator.

        Args:
            template_dir: Optional directory holding a custom worksheet_report.html
        """
        if template_dir and (template_dir / REPORT_TEMPLATE_NAME).exists():
            self.env = Environment(
                loader=FileSystemLoader(str(template_dir)),
                autoescape=select_autoescape(['html', 'xml'])
            )
            self.template = self.env.get_template(REPORT_TEMPLATE_NAME)
        else:
            self.env = Environment(autoescape=True)
            self.template = self.env.from_string(INLINE_TEMPLATE)

    def _worksheet_context(self, worksheet: Worksheet) -> Dict[str, Any]:
        grading = worksheet.grading_results
        return {
            "student_name": worksheet.student_name or "Unknown student",
            "subject": worksheet.subject or "Unknown subject",
            "status": worksheet.status.value,
            "error": worksheet.error,
            "grading": grading.to_dict() if grading else None,
            "grade_letter": grading.grade_letter if grading else None,
            "feedback": worksheet.feedback.to_dict() if worksheet.feedback else None
        }

    def _calculate_stats(self, worksheets: List[Worksheet]) -> Dict[str, Any]:
        graded = [w for w in worksheets if w.status == WorksheetStatus.GRADED and w.grading_results]
        scores = [w.grading_results.total_score for w in graded]

        return {
            "total": len(worksheets),
            "graded": len(graded),
            "average_score": sum(scores) / len(scores) if scores else 0.0,
            "mock_results": len([w for w in graded if w.grading_results.source.value != "gemini"])
        }

    def render(self, worksheets: List[Worksheet], title: str = "Worksheet Grading Report") -> str:
        return self.template.render(
            title=title,
            generation_time=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            stats=self._calculate_stats(worksheets),
            worksheets=[self._worksheet_context(w) for w in worksheets]
        )

    def generate_report(
        self,
        worksheets: List[Worksheet],
        output_file: Path,
        title: str = "Worksheet Grading Report"
    ) -> Path:
        """
        Generate the HTML report.

        Args:
            worksheets: Worksheets to include
            output_file: Path to save HTML report
            title: Page title

        Returns:
            Path to generated HTML file
        """
        html_content = self.render(worksheets, title=title)

        output_file.parent.mkdir(parents=True, exist_ok=True)
        with open(output_file, 'w', encoding='utf-8') as f:
            f.write(html_content)

        logger.info(f"Report saved to {output_file}")
        return output_file


def export_grades_csv(worksheets: List[Worksheet], output_file: Path) -> int:
    """
    Write one CSV row per graded worksheet.

    Returns:
        Number of rows written
    """
    output_file.parent.mkdir(parents=True, exist_ok=True)
    rows = 0

    with open(output_file, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(CSV_COLUMNS)

        for worksheet in worksheets:
            grading = worksheet.grading_results
            if worksheet.status != WorksheetStatus.GRADED or grading is None:
                continue

            writer.writerow([
                worksheet.student_name or "",
                worksheet.subject or "",
                worksheet.grade_level or "",
                grading.total_score,
                grading.grade_letter,
                grading.points_earned,
                grading.points_possible,
                len(grading.questions),
                grading.source.value,
                grading.graded_at.isoformat()
            ])
            rows += 1

    logger.info(f"Exported {rows} grades to {output_file}")
    return rows
