"""
GradeFlow - AI worksheet grading

Grades worksheets with Gemini, normalises the answers into a fixed schema and
falls back to mock results whenever the API cannot be used.
"""

__version__ = "0.1.0"
