import re

from app.core.catalog import ChecklistTopic

SYSTEM_PROMPT = """You analyse interview transcripts and turn the processes described in them into workflow diagrams.

1. Read the transcript for process steps
2. Identify the stages, decision points and outcomes
3. Produce a Mermaid flowchart

Diagram rules:
- Start with 'flowchart TD'
- Short node ids (A, B, C, ...)
- Square brackets [text] for steps, curly braces {text} for decisions
- Arrows --> for connections, |text| labels for decision outcomes
- Keep node text under 40 characters
- Usually 3 to 10 steps, with a clear start and a clear end

Example:
```mermaid
flowchart TD
    A[Receive Invoice] --> B[Validate Details]
    B --> C{Details Correct?}
    C -->|Yes| D[Code to GL Account]
    C -->|No| E[Return to Supplier]
    D --> F[Schedule Payment]
```

Respond with ONLY the mermaid code block."""

_FENCE_OPEN = re.compile(r"^```(?:mermaid)?[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?```\s*$")
_SQUARE_LABEL = re.compile(r"\[([^\]]+)\]")
_CURLY_LABEL = re.compile(r"\{([^}]+)\}")


def build_request(topic: ChecklistTopic, transcript: str) -> str:
    return (
        f"Analyse this interview transcript about \"{topic.name}\" ({topic.description}) and extract the workflow.\n\n"
        f"Interview Transcript:\n{transcript}\n\n"
        f"Generate a Mermaid flowchart of the key steps, decision points and outcomes for {topic.name}."
    )


def _quote(opening: str, closing: str, specials: str):
    def replace(match: re.Match) -> str:
        text = match.group(1)
        if text.startswith('"') or not any(char in text for char in specials):
            return match.group(0)
        return f'{opening}"{text.replace(chr(34), chr(39))}"{closing}'

    return replace


def clean_mermaid(text: str) -> str:
    code = (text or "").strip()
    if code.startswith("```"):
        code = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", code, count=1))
    code = _SQUARE_LABEL.sub(_quote("[", "]", "(){}"), code)
    code = _CURLY_LABEL.sub(_quote("{", "}", "()[]"), code)
    return code.strip()
