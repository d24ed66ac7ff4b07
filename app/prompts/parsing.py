import json
from typing import Any

from app.core.errors import ParseError


def strip_json_fences(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith("```"):
        lines = stripped.splitlines()
        lines = lines[1:]
        if lines and lines[-1].strip().startswith("```"):
            lines = lines[:-1]
        return "\n".join(lines).strip()
    return stripped


def extract_json_object(text: str) -> dict[str, Any]:
    """Parse the outermost ``{...}`` block of an LLM reply."""
    cleaned = strip_json_fences(text or "")
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        raise ParseError("No JSON object found in response")
    try:
        data = json.loads(cleaned[start : end + 1])
    except json.JSONDecodeError as exc:
        raise ParseError(f"Failed to parse response: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise ParseError("No JSON object found in response")
    return data


def format_transcript(messages) -> str:
    lines = []
    for message in messages:
        speaker = "Expert" if message.role == "user" else "Interviewer"
        lines.append(f"{speaker}: {message.content}")
    return "\n\n".join(lines)
