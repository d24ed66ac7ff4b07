from typing import Any

from app.core.errors import ParseError
from app.prompts.parsing import extract_json_object

EXTRACTION_FIELDS = ("topicsCovered", "keyInsights", "frameworksMentioned", "gaps", "suggestedProbes")

SYSTEM_PROMPT = """You are a knowledge extraction specialist reviewing succession planning interviews.

You receive a transcript between an interviewer and a domain expert. Pull out the tacit knowledge a
successor would need: the mental models, decision rules and local context behind what the expert does.

From the transcript, extract:
1. Topics Covered: the subjects and areas that were discussed
2. Key Insights: principles, judgements and hard-won knowledge the expert shared
3. Frameworks Mentioned: methods, models, processes or systematic approaches referenced
4. Gaps: areas where more depth or clarity is needed
5. Suggested Probes: follow-up questions that would close those gaps

Guidelines:
- Be thorough but concise
- Prefer actionable knowledge over plain facts
- Capture the why and the how behind decisions
- Note assumptions the expert takes for granted
- Prioritise insights that would not be found in documentation

Respond with valid JSON only, in exactly this structure:
{
  "topicsCovered": ["topic"],
  "keyInsights": ["insight"],
  "frameworksMentioned": ["framework"],
  "gaps": ["gap"],
  "suggestedProbes": ["question"]
}

Every array holds strings. Use an empty array when a category has nothing."""


def parse_extraction(text: str) -> dict[str, list[str]]:
    data = extract_json_object(text)
    extraction: dict[str, list[str]] = {}
    for field in EXTRACTION_FIELDS:
        value: Any = data.get(field)
        if not isinstance(value, list):
            raise ParseError(f"Missing or invalid field: {field}")
        extraction[field] = [str(item) for item in value if item is not None]
    return extraction
