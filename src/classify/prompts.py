"""Prompt templates for LLM-assisted event classification."""

from __future__ import annotations

from daylens.classify.models import RawActivityEvent

CLASSIFICATION_SYSTEM_PROMPT = (
    "You are an activity classifier. Analyze each activity and return "
    "structured classifications as a JSON array. Be concise and accurate. "
    "Return only valid JSON with no markdown fences."
)


def build_classification_prompt(batch: list[RawActivityEvent]) -> str:
    """Build the user prompt for one batch of raw events."""
    lines = "\n".join(
        f"{i}. [{e.source}] {e.text}" + (f" ({e.category})" if e.category else "")
        for i, e in enumerate(batch, start=1)
    )

    return f"""Classify each activity. For each determine:
- activityType: research|debugging|implementation|infrastructure|writing|learning|admin|communication|browsing|planning
- topics: 1-3 noun phrases describing what the activity is about
- entities: tools, libraries, companies, or technologies mentioned
- intent: compare|implement|evaluate|read|troubleshoot|configure|explore|communicate
- confidence: 0.0-1.0 how confident you are in the classification
- summary: one sentence describing the activity, no raw URLs or file paths

Activities:
{lines}

Return ONLY a JSON array with exactly {len(batch)} elements, in the same order \
(no markdown fences, no preamble). Each element must have: activityType, topics, \
entities, intent, confidence, summary.
Example: [{{"activityType":"research","topics":["OAuth flows"],"entities":["GitHub"],\
"intent":"evaluate","confidence":0.8,"summary":"Researching OAuth authentication flows \
for GitHub integration"}}]"""
