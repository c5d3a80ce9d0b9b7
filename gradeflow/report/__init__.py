"""
GradeFlow Report Generation

HTML summaries and CSV exports of graded worksheets.
"""

from .worksheet_report import WorksheetReportGenerator, export_grades_csv

__all__ = [
    'WorksheetReportGenerator',
    'export_grades_csv'
]
