"""
Tests for extracting JSON objects from free-form model output.
"""

import json

from gradeflow.utils.json_extraction import extract_json_object, iter_json_candidates


class TestExtractJsonObject:
    def test_plain_json(self):
        assert extract_json_object('{"a": 1}') == {"a": 1}

    def test_json_in_markdown_fence(self):
        text = 'Sure!\n```json\n{"totalScore": 90, "questions": []}\n```'
        assert extract_json_object(text) == {"totalScore": 90, "questions": []}

    def test_braces_inside_strings_do_not_end_object(self):
        payload = {"feedback": "Use {braces} and \"quotes\" carefully }", "score": 3}
        text = f"Result: {json.dumps(payload)} done"

        assert extract_json_object(text) == payload

    def test_skips_prose_braces_before_json(self):
        text = 'Remember the set {1, 2, 3}. Answer: {"totalScore": 70} and {see note}'
        assert extract_json_object(text) == {"totalScore": 70}

    def test_unbalanced_prefix_brace(self):
        text = 'Note: { is tricky. {"ok": true}'
        assert extract_json_object(text) == {"ok": True}

    def test_invalid_outer_object_does_not_yield_nested_fragment(self):
        text = '{"questions": [{"number": 1}], trailing garbage}'
        assert extract_json_object(text) is None

    def test_no_json(self):
        assert extract_json_object("I could not grade this worksheet.") is None
        assert extract_json_object("") is None
        assert extract_json_object(None) is None

    def test_nested_objects_returned_whole(self):
        text = 'x {"outer": {"inner": {"deep": 1}}} y'
        assert extract_json_object(text) == {"outer": {"inner": {"deep": 1}}}


class TestIterJsonCandidates:
    def test_spans(self):
        text = "{a} {b {c}}"
        spans = list(iter_json_candidates(text))

        assert [text[s:e + 1] for s, e in spans] == ["{a}", "{b {c}}"]

    def test_balanced_regions_after_unclosed_brace(self):
        text = "{ {a {b}} {c}"
        spans = list(iter_json_candidates(text))

        assert [text[s:e + 1] for s, e in spans] == ["{a {b}}", "{c}"]


class TestHostileInput:
    def test_deeply_nested_candidate_is_skipped(self):
        text = '{"questions": ' + "[" * 100000 + "]" * 100000 + '} then {"ok": true}'
        assert extract_json_object(text) == {"ok": True}

    def test_many_unclosed_braces(self):
        text = "{" * 50000 + '{"ok": true}'
        assert extract_json_object(text) == {"ok": True}

    def test_stray_braces_in_prose(self):
        text = "x { " * 5000 + 'Answer: {"totalScore": 12}'
        assert extract_json_object(text) == {"totalScore": 12}
