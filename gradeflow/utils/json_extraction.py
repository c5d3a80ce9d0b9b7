"""
JSON extraction from free-form model output.

Models often wrap their JSON answer in prose or markdown fences. The scanner
below walks the text once, tracking string and escape state so that braces
inside JSON strings never change the nesting depth.
"""

import json
import logging
from typing import Any, Dict, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)


def iter_json_candidates(text: str) -> Iterator[Tuple[int, int]]:
    """
    Yield (start, end) spans of balanced ``{...}`` regions in order.

    Only outermost regions are yielded. A brace that is never closed still
    lets the balanced regions nested after it through.
    """
    open_braces: List[int] = []
    # balanced spans inside a region that is still open
    pending: List[Tuple[int, int]] = []
    in_string = False
    escaped = False

    for index, char in enumerate(text):
        if not open_braces:
            if char == "{":
                open_braces.append(index)
            continue

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
            open_braces.append(index)
        elif char == "}":
            start = open_braces.pop()
            if open_braces:
                pending.append((start, index))
            else:
                pending.clear()
                yield start, index

    last_end = -1
    for start, end in sorted(pending):
        if start > last_end:
            yield start, end
            last_end = end


def extract_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Return the first balanced ``{...}`` region of ``text`` that parses as a JSON object.

    Regions that fail to parse are skipped as a whole, so an invalid outer
    object never yields one of its nested fragments.
    """
    if not text:
        return None

    for start, end in iter_json_candidates(text):
        candidate = text[start:end + 1]
        try:
            parsed = json.loads(candidate)
        except (ValueError, RecursionError) as e:
            logger.debug(f"Skipping unparseable JSON candidate at {start}: {e}")
            continue

        if isinstance(parsed, dict):
            return parsed

    return None
