from typing import Any

from app.core.errors import ParseError
from app.prompts.parsing import extract_json_object

NOT_COVERED = "Not covered in interview"
TEXT_SECTIONS = ("overview", "frequency")
LIST_SECTIONS = ("keyTasks", "keyDates", "contacts", "systemsAndTools", "watchOutFor", "proTips")


def system_prompt(topic, all_topics) -> str:
    others = "\n".join(f"- {other.name}" for other in all_topics if other.id != topic.id)
    cross_refs = (
        f"Other topics in this knowledge base:\n{others}\n\nNote any connections that would help a successor."
        if others
        else "No other topics defined yet."
    )
    details = ""
    if topic.description:
        details += f"Topic description: {topic.description}\n"
    if topic.frequency:
        details += f"Frequency: {topic.frequency}\n"

    return (
        "You are a senior consultant specialising in knowledge capture. Turn an expert interview into a "
        "structured procedures manual entry.\n\n"
        "# Context\n"
        f"You are documenting **{topic.name}** in a local authority finance department.\n{details}\n"
        "# Sections\n"
        "1. Overview: what this is and why it matters, 2-3 sentences\n"
        "2. Frequency: how often it happens, specifically (\"Monthly, by working day 5\")\n"
        "3. Key Tasks: numbered, actionable steps including who does what\n"
        "4. Key Dates: internal and external deadlines and triggers\n"
        "5. Contacts: people and roles, and when to contact them\n"
        "6. Systems & Tools: software, templates and file locations\n"
        "7. Watch Out For: what fails, and why\n"
        "8. Pro Tips: insider knowledge that only comes from experience\n\n"
        f"If a section was not discussed, write \"{NOT_COVERED}\" rather than inventing content.\n\n"
        f"# Cross-References\n{cross_refs}\n\n"
        "# Response Format\n"
        "Respond with valid JSON only:\n"
        "{\n"
        '  "sections": {"overview": "...", "frequency": "...", "keyTasks": ["..."], "keyDates": ["..."],\n'
        '               "contacts": ["..."], "systemsAndTools": ["..."], "watchOutFor": ["..."], "proTips": ["..."]},\n'
        '  "crossReferences": [{"topicName": "...", "reason": "..."}],\n'
        '  "qualityNotes": "..."\n'
        "}\n"
        "Arrays hold strings; use [] when empty and never null."
    )


def parse_entry(text: str) -> dict[str, Any]:
    data = extract_json_object(text)
    raw_sections = data.get("sections")
    if not isinstance(raw_sections, dict):
        raise ParseError("Missing or invalid sections object")
    for name in TEXT_SECTIONS + LIST_SECTIONS:
        if name not in raw_sections:
            raise ParseError(f"Missing section: {name}")

    sections: dict[str, Any] = {}
    for name in TEXT_SECTIONS:
        value = raw_sections[name]
        sections[name] = value if isinstance(value, str) else str(value or NOT_COVERED)
    for name in LIST_SECTIONS:
        value = raw_sections[name]
        if not isinstance(value, list):
            value = [value] if value else []
        sections[name] = [str(item) for item in value]

    references = data.get("crossReferences")
    if not isinstance(references, list):
        references = []
    references = [
        {"topicName": ref["topicName"], "reason": ref["reason"]}
        for ref in references
        if isinstance(ref, dict) and isinstance(ref.get("topicName"), str) and isinstance(ref.get("reason"), str)
    ]

    notes = data.get("qualityNotes")
    return {
        "sections": sections,
        "crossReferences": references,
        "qualityNotes": notes if isinstance(notes, str) else "",
    }


def resolve_cross_references(references: list[dict[str, str]], topics) -> list[dict[str, Any]]:
    resolved = []
    for ref in references:
        wanted = ref["topicName"].lower()
        match = next(
            (topic for topic in topics if topic.name.lower() in wanted or wanted in topic.name.lower()),
            None,
        )
        resolved.append({"topicId": match.id if match else None, "topicName": ref["topicName"], "reason": ref["reason"]})
    return resolved
