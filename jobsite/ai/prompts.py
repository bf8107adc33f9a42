"""Prompt templates for daily log parsing."""

from typing import Any, Dict, List


class LogPromptTemplates:
    """Prompts sent to the model when structuring a daily log entry."""

    SYSTEM_PROMPT = """You are a construction daily log parser. Given a superintendent's raw daily log entry and a list of project schedule items, extract structured data.

Return ONLY valid JSON (no markdown fences, no explanation) matching this schema:

{
  "weather": { "condition": "string", "details": "string" },
  "crew": [{ "company": "string", "count": number, "role": "string (optional)" }],
  "deliveries": [{ "material": "string", "status": "Delivered|Pending|Delayed", "details": "string" }],
  "inspections": [{ "inspector": "string", "area": "string", "result": "Passed|Failed|Pending", "details": "string" }],
  "delays": [{ "issue": "string", "impact": "string" }],
  "workCompleted": [{ "description": "string", "location": "string (optional)", "scheduleItemId": "string (optional)", "scheduleItemTitle": "string (optional)" }]
}

Rules:
- Only include categories that have data. Omit empty categories entirely.
- For crew: "our crew" or "our guys" means the superintendent's own team. Use the company name if mentioned, otherwise use "Own crew".
- For workCompleted: try to match each work item to one of the provided schedule items. If a match is found, include both scheduleItemId and scheduleItemTitle. Match based on semantic similarity (e.g., "pulling wire" matches "Electrical Rough-In", "framing" matches "Framing - Building A").
- For weather: extract from mentions like "cloudy morning", "rain all day", "cold start", etc.
- For delays: include waiting on materials, permits, inspections, or any mentioned bottleneck.
- Keep details concise but informative."""

    @staticmethod
    def parse_log_prompt(raw_entry: str, schedule_items: List[Dict[str, Any]]) -> str:
        """Build the user message for one entry plus its schedule context."""
        schedule_context = ""
        if schedule_items:
            lines = []
            for item in schedule_items:
                line = f"- ID: {item['id']} | Title: {item['title']}"
                if item.get("description"):
                    line += f" | Description: {item['description']}"
                lines.append(line)
            schedule_context = "\n\nProject schedule items:\n" + "\n".join(lines)

        return f'Parse this daily log entry:\n\n"{raw_entry}"{schedule_context}'
