import re
from typing import Optional


NAME_PATTERNS = [
    re.compile(r"Name:\s*([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)*)", re.IGNORECASE),
    re.compile(r"Student:\s*([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)*)", re.IGNORECASE),
    re.compile(r"^([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)*)[ \t]*$", re.MULTILINE),
    re.compile(r"Name\s*([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)*)", re.IGNORECASE),
]

SUBJECT_KEYWORDS = {
    "math": ["math", "arithmetic", "algebra", "geometry", "calculus", "addition",
             "subtraction", "multiplication", "division"],
    "english": ["english", "language arts", "reading", "writing", "grammar",
                "vocabulary", "spelling", "literature"],
    "science": ["science", "biology", "chemistry", "physics", "nature",
                "experiment", "hypothesis", "observation"],
    "history": ["history", "social studies", "civics", "government", "geography", "culture"],
    "art": ["art", "drawing", "painting", "creative", "design", "artistic"],
}


def extract_student_name(text: Optional[str]) -> Optional[str]:
    """Find a student name on a worksheet from labels such as ``Name:``."""
    if not text:
        return None

    for pattern in NAME_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue

        name = match.group(1).strip()
        if 2 <= len(name) <= 50 and re.fullmatch(r"[A-Za-z ]+", name):
            return name

    return None


def detect_subject(text: Optional[str]) -> Optional[str]:
    if not text:
        return None

    lowered = text.lower()
    for subject, keywords in SUBJECT_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return subject

    return None
