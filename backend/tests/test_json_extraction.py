"""
Unit tests for JSON extraction from completion text
"""

import pytest

from utils.errors import ValidationError
from utils.json_extraction import extract_json_object, iter_balanced_objects


class TestExtractJsonObject:
    """Test locating a JSON object inside free text"""

    def test_plain_json(self):
        """TEST: A bare object parses as-is"""
        assert extract_json_object('{"confidence": 80}') == {"confidence": 80}

    def test_json_inside_markdown_fence(self):
        """TEST: Fenced JSON with surrounding prose is found"""
        text = 'Sure!\n```json\n{"diagnosis": "Bad alternator", "confidence": 70}\n```\nHope that helps.'

        assert extract_json_object(text)["diagnosis"] == "Bad alternator"

    def test_braces_inside_strings_are_ignored(self):
        """TEST: '}' inside a string value does not end the object"""
        text = 'Result: {"diagnosis": "Replace part {A} and }", "confidence": 60} done'

        assert extract_json_object(text) == {"diagnosis": "Replace part {A} and }", "confidence": 60}

    def test_escaped_quotes_inside_strings(self):
        """TEST: Escaped quotes do not end a string early"""
        text = '{"diagnosis": "The \\"check engine\\" light {P0300}", "confidence": 55}'

        assert extract_json_object(text)["confidence"] == 55

    def test_skips_unparseable_candidates(self):
        """
        TEST: An earlier non-JSON brace block is skipped

        GIVEN: Prose containing {not json} before the real payload
        WHEN: extract_json_object() is called
        THEN: The first block that parses is returned
        """
        text = 'Thinking {not json} ... {"confidence": 90}'

        assert extract_json_object(text) == {"confidence": 90}

    def test_nested_objects(self):
        """TEST: Nested objects stay intact"""
        text = 'x {"diagnosis": "ok", "meta": {"source": "kb"}} y'

        assert extract_json_object(text)["meta"] == {"source": "kb"}

    def test_unbalanced_opening_brace_before_payload(self):
        """TEST: A stray '{' that never closes does not hide a later object"""
        text = 'note { stray {"confidence": 40}'

        assert extract_json_object(text) == {"confidence": 40}

    @pytest.mark.parametrize("text", ["", "no json here", "{broken", "[1, 2, 3]"])
    def test_no_object_raises(self, text):
        """TEST: Text without a JSON object raises ValidationError"""
        with pytest.raises(ValidationError):
            extract_json_object(text)


class TestIterBalancedObjects:
    def test_yields_spans_in_order(self):
        """TEST: Each '{' that closes yields a span"""
        text = "{a} {b}"

        assert list(iter_balanced_objects(text)) == [(0, 3), (4, 7)]
