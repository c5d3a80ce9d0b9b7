import pytest

from gradeflow.utils.text import detect_subject, extract_student_name


class TestExtractStudentName:
    @pytest.mark.parametrize("text,expected", [
        ("Name: Ada Lovelace\nDate: Monday", "Ada Lovelace"),
        ("Student: Grace Hopper\n1. 2+2=4", "Grace Hopper"),
        ("1) 3+3 = 6\nAlan Turing\n2) 4+4 = 8", "Alan Turing"),
        ("Name Ada Lovelace, grade 3\n2+2=4", "Ada Lovelace"),
    ])
    def test_patterns(self, text, expected):
        assert extract_student_name(text) == expected

    def test_no_name(self):
        assert extract_student_name("1) 3+3 = 6") is None
        assert extract_student_name("") is None
        assert extract_student_name(None) is None


class TestDetectSubject:
    @pytest.mark.parametrize("text,expected", [
        ("Multiplication practice sheet", "math"),
        ("Spelling and grammar quiz", "english"),
        ("Form a hypothesis", "science"),
        ("Civics review", "history"),
    ])
    def test_keywords(self, text, expected):
        assert detect_subject(text) == expected

    def test_unknown(self):
        assert detect_subject("1 2 3") is None
