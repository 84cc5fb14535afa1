"""
JSON extraction from free-text LLM output.
Models often wrap the JSON payload in prose or markdown fences, so the payload
is located with a brace-matching scan that ignores braces inside strings.
"""

import json
from typing import Any, Dict, Iterator, Tuple

from utils.errors import ValidationError


def iter_balanced_objects(text: str) -> Iterator[Tuple[int, int]]:
    """
    Yield (start, end) spans of balanced {...} substrings, in order of start.

    Braces that appear inside JSON string literals are skipped, as are
    escaped quotes within those strings.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        end = None

        for i in range(start, len(text)):
            char = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue

            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    end = i + 1
                    break

        if end is not None:
            yield start, end
        start = text.find("{", start + 1)


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Return the first balanced JSON object embedded in text.

    Args:
        text: Raw completion output

    Returns:
        Parsed JSON object

    Raises:
        ValidationError: If no balanced substring parses to a JSON object
    """
    if not text:
        raise ValidationError("Empty completion output")

    for start, end in iter_balanced_objects(text):
        try:
            parsed = json.loads(text[start:end])
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    raise ValidationError("No JSON object found in completion output")
