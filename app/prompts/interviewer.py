"""System prompts for the interviewing agent.

Role interviews are planned against the role catalog phases; topic interviews are
steered by which knowledge areas the transcript has covered so far.
"""
from app.core.catalog import ChecklistTopic, RoleCatalog
from app.core.knowledge_areas import KNOWLEDGE_AREAS

DONE_ADDENDUM = """

## The expert has signalled they are done
- Thank them for what they shared
- Briefly summarise what you captured on this topic
- Confirm they are happy to finish this topic before moving on"""


def role_prompt(catalog: RoleCatalog, role: str, phase: str) -> str:
    profile = catalog.get_role(role)
    if profile is None:
        raise ValueError(f"Unknown role: {role}")
    structure = catalog.phase(phase)
    if structure is None:
        raise ValueError(f"Unknown phase: {phase}")

    key_areas = "\n".join(f"{i}. {area}" for i, area in enumerate(profile.key_areas, start=1))
    guidance = "\n".join(f"- {line}" for line in structure.guidance)
    examples = profile.example_questions.get(phase, ())
    example_block = ""
    if examples:
        example_block = "\n\n**Questions that work well for this role:**\n" + "\n".join(f"- \"{q}\"" for q in examples)

    return (
        f"You are an expert knowledge capture interviewer conducting a succession planning interview "
        f"with a {profile.name} in a UK public sector organisation.\n\n"
        "Your purpose is to draw out deep, actionable knowledge so their successor understands not only "
        "WHAT to do but HOW to think about the role.\n\n"
        "## Interview Context\n"
        f"**Role**: {profile.name}\n"
        f"**Domain**: {profile.domain}\n"
        f"**Current Phase**: {structure.key} ({structure.duration})\n"
        f"**Phase Purpose**: {structure.purpose}\n"
        f"**Approach**: {structure.approach}\n\n"
        "## Key Areas for This Role\n"
        f"{key_areas}\n\n"
        f"## {structure.key} Phase Guidance\n"
        f"{guidance}{example_block}\n\n"
        "## Interviewing Style\n"
        "- Warm and professional, so the expert feels safe sharing openly\n"
        "- Curious: do not accept surface answers, ask for the why and the how\n"
        "- Build on earlier answers and reference them\n"
        "- Open-ended questions that invite stories and explanation\n\n"
        "## Response Format\n"
        "- Ask ONE question at a time\n"
        "- Keep it conversational\n"
        "- If an answer is shallow, follow up before moving on\n"
        "- Never ask for information that would be in a job description\n\n"
        "You are mining for expertise that took years to build. Be patient and thorough."
    )


def _topic_subphase(covered_count: int) -> str:
    if covered_count == 0:
        return "opening"
    if covered_count < 4:
        return "deep-dive"
    if covered_count < 7:
        return "coverage-check"
    return "wrap-up"


def _subphase_guidance(subphase: str, topic_name: str, uncovered) -> str:
    if subphase == "opening":
        return (
            f"Start with a broad, inviting question about {topic_name} and let the expert describe it "
            "in their own words. Listen for scope, timing, the people involved and what makes it hard."
        )
    if subphase == "deep-dive":
        focus = "\n".join(f"- **{area.name}**: {area.prompt}" for area in uncovered[:3])
        return f"Explore the substance. Focus next on:\n{focus}\nDig into anything interesting before moving on."
    if subphase == "coverage-check":
        gaps = "\n".join(f"- **{area.name}**: {area.prompt}" for area in uncovered)
        return f"Several areas are covered. Check for gaps in:\n{gaps}"
    return (
        "Most areas are covered. Ask for final tips and warnings, the relationships that matter, and "
        f"what they would tell a successor on day one about {topic_name}."
    )


def topic_prompt(topic, coverage: dict[str, bool], message_count: int, catalog: RoleCatalog | None = None) -> str:
    name = getattr(topic, "name", None) or "this topic"
    description = getattr(topic, "description", "") or ""
    frequency = getattr(topic, "frequency", None) or "ad-hoc"

    covered = [area for area in KNOWLEDGE_AREAS if coverage.get(area.key)]
    uncovered = [area for area in KNOWLEDGE_AREAS if not coverage.get(area.key)]
    subphase = _topic_subphase(len(covered))

    area_lines = "\n".join(
        f"{'COVERED' if coverage.get(area.key) else 'NOT YET COVERED'} | **{area.name}**: {area.prompt}"
        for area in KNOWLEDGE_AREAS
    )

    domain_block = ""
    if catalog is not None:
        domain = catalog.domain
        terms = "\n".join(f"- **{term}**: {meaning}" for term, meaning in list(domain.terminology.items())[:8])
        stakeholders = "\n".join(f"- {group.capitalize()}: {', '.join(names)}" for group, names in domain.stakeholders.items())
        domain_block = (
            "## Your Domain Expertise\n"
            f"**Key terminology:**\n{terms}\n\n"
            f"**Stakeholders:**\n{stakeholders}\n\n"
            f"**Common systems:** {', '.join(domain.systems)}\n"
        )
        lowered = name.lower()
        for key, subtopics in domain.common_topics.items():
            if key in lowered or lowered.split(" ")[0] in key:
                domain_block += f"\n**Relevant subtopics for \"{name}\":**\n" + "\n".join(f"- {s}" for s in subtopics) + "\n"
                break
        domain_block += "\n"

    description_line = f"**Description**: {description}\n" if description else ""
    return (
        "You are an expert knowledge capture interviewer specialising in UK local authority finance. "
        "You are documenting expertise so it can be handed to a successor.\n\n"
        "## Current Topic\n"
        f"**Topic**: {name}\n"
        f"{description_line}"
        f"**Frequency**: {frequency}\n"
        f"**Messages so far**: {message_count}\n\n"
        f"{domain_block}"
        "## Knowledge Areas to Cover\n"
        f"{area_lines}\n\n"
        f"## Current Interview Phase: {subphase.upper()}\n"
        f"{_subphase_guidance(subphase, name, uncovered)}\n\n"
        "## Response Rules\n"
        "1. Ask ONE focused question at a time\n"
        "2. Reference earlier answers\n"
        "3. Probe brief answers before moving on\n"
        "4. When an area feels covered, move naturally to an uncovered one\n\n"
        "If the expert says they are done with the topic, acknowledge it, summarise what you captured "
        "and confirm they are ready to finish."
    )


def topic_focus_block(checklist: tuple[ChecklistTopic, ...], progress: dict, current_topic_id: str | None) -> str:
    """Extra instructions pinning a role interview to its current checklist topic."""
    current = next((topic for topic in checklist if topic.id == current_topic_id), None)
    if current is None:
        return ""

    def _status(topic_id: str) -> str:
        entry = progress.get(topic_id)
        return entry.status if entry is not None else "not-started"

    done = [topic.name for topic in checklist if _status(topic.id) == "complete"]
    remaining = [topic.name for topic in checklist if _status(topic.id) != "complete" and topic.id != current.id]
    areas = ", ".join(current.required_areas) or "any"
    block = (
        "\n\n## CURRENT TOPIC FOCUS\n"
        f"**Topic**: {current.name}\n"
        f"**Description**: {current.description}\n"
        f"**Areas to cover**: {areas}\n"
    )
    if current.is_process_oriented:
        block += "This is a process topic: capture the steps in order, with owners and hand-offs.\n"
    if done:
        block += f"**Already completed**: {', '.join(done)}\n"
    if remaining:
        block += f"**Still to come**: {', '.join(remaining)}\n"
    block += "Keep the conversation on this topic until its areas are covered."
    return block
