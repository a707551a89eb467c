"""Tolerant JSON field extraction.

Two flavors with the same contract (missing or wrong-typed field => empty value,
never an exception):

- tree helpers (`get_string_field`, `get_number_field`, `get_bool_field`) work on
  values already produced by `json.loads`;
- text helpers (`extract_string_field`, `scan_match_objects`, `find_object_span`)
  work directly on raw response text. They are used when the body is not valid
  JSON, and for pulling the top-level `error` string out of an error response.
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple


_WHITESPACE = " \t\n\r"

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    '"': '"',
    "\\": "\\",
    "/": "/",
}


def get_string_field(obj: Any, field: str) -> str:
    if not isinstance(obj, dict):
        return ""
    v = obj.get(field)
    return v if isinstance(v, str) else ""


def get_number_field(obj: Any, field: str) -> float:
    if not isinstance(obj, dict):
        return 0.0
    v = obj.get(field)
    # bool is an int subclass; JSON true/false are not numbers.
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return 0.0
    return float(v)


def get_bool_field(obj: Any, field: str) -> bool:
    if not isinstance(obj, dict):
        return False
    v = obj.get(field)
    return v if isinstance(v, bool) else False


def get_object_field(obj: Any, field: str) -> Optional[dict]:
    if not isinstance(obj, dict):
        return None
    v = obj.get(field)
    return v if isinstance(v, dict) else None


def unescape_json_string(raw: str) -> str:
    """Undo the common JSON escapes (\\n, \\t, \\", \\\\, \\/) in one left-to-right pass.

    Other escapes (\\uXXXX, \\r, ...) are left untouched.
    """

    if "\\" not in raw:
        return raw
    out: List[str] = []
    i = 0
    n = len(raw)
    while i < n:
        c = raw[i]
        if c == "\\" and i + 1 < n and raw[i + 1] in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[raw[i + 1]])
            i += 2
            continue
        out.append(c)
        i += 1
    return "".join(out)


def _skip_ws(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] in _WHITESPACE:
        pos += 1
    return pos


def extract_string_field(text: str, key: str) -> str:
    """Return the string value of the first `"key":` occurrence in raw JSON text.

    Returns "" when the key is absent, the value is not a quoted string, or the
    string is unterminated.
    """

    if not text:
        return ""
    needle = f'"{key}":'
    key_pos = text.find(needle)
    if key_pos < 0:
        return ""

    start = _skip_ws(text, key_pos + len(needle))
    if start >= len(text) or text[start] != '"':
        return ""

    start += 1
    end = start
    escape_next = False
    while end < len(text):
        c = text[end]
        if escape_next:
            escape_next = False
        elif c == "\\":
            escape_next = True
        elif c == '"':
            return unescape_json_string(text[start:end])
        end += 1
    return ""


def _balanced_object_end(text: str, open_pos: int) -> int:
    """Index of the `}` closing the object that opens at `open_pos`, or -1."""

    depth = 0
    in_string = False
    escape_next = False
    for pos in range(open_pos, len(text)):
        c = text[pos]
        if escape_next:
            escape_next = False
            continue
        if c == "\\":
            escape_next = True
            continue
        if c == '"':
            in_string = not in_string
        elif not in_string:
            if c == "{":
                depth += 1
            elif c == "}":
                depth -= 1
                if depth == 0:
                    return pos
    return -1


def find_object_span(text: str, key: str) -> Tuple[int, int]:
    """Return `(start, end)` so that `text[start:end]` is the `{...}` value of the
    first `"key":`, or `(-1, -1)` when that value is not a complete object."""

    if not text:
        return -1, -1
    needle = f'"{key}":'
    key_pos = text.find(needle)
    if key_pos < 0:
        return -1, -1
    start = _skip_ws(text, key_pos + len(needle))
    if start >= len(text) or text[start] != "{":
        return -1, -1
    end = _balanced_object_end(text, start)
    if end < 0:
        return -1, -1
    return start, end + 1


def extract_object_span(text: str, key: str) -> str:
    """Return the raw `{...}` text of the first `"key":` whose value is an object."""

    start, end = find_object_span(text, key)
    return text[start:end] if start >= 0 else ""


def scan_match_objects(text: str, *, array_key: str = "matches", limit: int = 10) -> List[str]:
    """Split the array under `"array_key"` into raw object spans without a full parse.

    Scans from the key to the first `[`, then tracks string and escape state while
    counting brace depth. Stops at the array's closing `]` or after `limit` objects.
    """

    out: List[str] = []
    if not text or limit <= 0:
        return out

    key_pos = text.find(f'"{array_key}"')
    if key_pos < 0:
        return out
    array_start = text.find("[", key_pos)
    if array_start < 0:
        return out

    pos = array_start + 1
    depth = 0
    in_string = False
    escape_next = False
    obj_start = 0

    while pos < len(text) and len(out) < limit:
        c = text[pos]
        if escape_next:
            escape_next = False
            pos += 1
            continue
        if c == "\\":
            escape_next = True
            pos += 1
            continue

        if c == '"':
            in_string = not in_string
        elif not in_string:
            if c == "{":
                if depth == 0:
                    obj_start = pos
                depth += 1
            elif c == "}" and depth > 0:
                depth -= 1
                if depth == 0:
                    out.append(text[obj_start : pos + 1])
            elif c == "]" and depth == 0:
                break
        pos += 1

    return out
