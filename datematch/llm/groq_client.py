from __future__ import annotations

import json
import logging
from typing import Any

from groq import Groq

from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a date planning assistant. "
    "Given the preferences of one or two people and a list of venues that "
    "were already scored for them, write a short, warm one-sentence pitch "
    "for each venue explaining why it suits their date.\n\n"
    "Return ONLY valid JSON in this exact format:\n"
    '{"venues": [{"id": "<venue_id>", "reason": "<one sentence>"}]}\n'
    "Include only venues from the provided list. Do not invent facts."
)


def _build_user_message(
    preferences: dict[str, Any],
    candidates: list[dict[str, Any]],
) -> str:
    lines = ["## Preferences"]
    if preferences.get("cuisines"):
        lines.append(f"- Cuisines: {', '.join(preferences['cuisines'])}")
    if preferences.get("vibes"):
        lines.append(f"- Vibes: {', '.join(preferences['vibes'])}")
    if preferences.get("price_ranges"):
        lines.append(f"- Price range: {', '.join(preferences['price_ranges'])}")
    if preferences.get("partner"):
        lines.append("- Planning for two people")

    lines.append("\n## Venues")
    lines.append("| ID | Name | Cuisine | Price | Rating | Tags | Current reasoning |")
    lines.append("|---|---|---|---|---|---|---|")
    for c in candidates:
        tags_str = ", ".join(c.get("tags", []))
        lines.append(
            f"| {c['id']} | {c['name']} | {c.get('cuisine_type') or '?'} "
            f"| {c.get('price_range') or '?'} | {c.get('rating', 'N/A')} "
            f"| {tags_str} | {c.get('reasoning', '')} |"
        )

    return "\n".join(lines)


def enhance_reasoning(
    preferences: dict[str, Any],
    candidates: list[dict[str, Any]],
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> dict[str, str]:
    """
    Call Groq LLM to rewrite the reasoning shown for each venue.

    Returns a dict mapping venue id -> reason string.
    Returns empty dict on any failure (timeout, bad JSON, API error).
    """
    if not config.enabled or not config.api_key:
        return {}

    if not candidates:
        return {}

    try:
        client = Groq(api_key=config.api_key, timeout=config.timeout)
        response = client.chat.completions.create(
            model=config.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": _build_user_message(preferences, candidates),
                },
            ],
            max_tokens=config.max_tokens,
            temperature=0.3,
            response_format={"type": "json_object"},
        )

        content = response.choices[0].message.content or ""
        parsed = json.loads(content)

        known_ids = {str(c["id"]) for c in candidates}
        results: dict[str, str] = {}
        for item in parsed.get("venues", []):
            vid = str(item.get("id", ""))
            reason = item.get("reason", "")
            if vid in known_ids and reason:
                results[vid] = reason

        return results

    except Exception:
        logger.warning("Groq LLM call failed, keeping heuristic reasoning", exc_info=True)
        return {}
