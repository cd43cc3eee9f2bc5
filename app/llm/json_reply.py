import json
from typing import Any

from app.llm.exceptions import LlmResponseError


def parse_json_object(raw: str) -> dict[str, Any]:
    """Parse an LLM reply that should hold one JSON object.

    Markdown code fences around the object are stripped. When the reply
    carries prose around the object, the outermost braces are used.

    Raises:
        LlmResponseError: if no JSON object can be read from the reply.
    """
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        lines = cleaned.splitlines()
        if lines and lines[0].startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        cleaned = "\n".join(lines)

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise LlmResponseError(f"Invalid JSON response: {exc}") from exc
        try:
            parsed = json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError as inner:
            raise LlmResponseError(f"Invalid JSON response: {inner}") from inner

    if not isinstance(parsed, dict):
        raise LlmResponseError("JSON response must be an object")
    return parsed
