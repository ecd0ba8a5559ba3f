"""AI helpers — titles, summaries and plan parsing with graceful fallbacks."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import date
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError

from writetrack.models.entries import ActivityType, WritingEntry, untitled_title
from writetrack.models.planning import EntrySummary, PlannedActivity

if TYPE_CHECKING:
    from writetrack.services.gemini import TextGenerator

logger = logging.getLogger(__name__)

DISABLED_SUMMARY = "AI features disabled. No API key."
FAILED_SUMMARY = "Error generating AI summary."
_CONTENT_PREVIEW_CHARS = 2000

_SUMMARY_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "summary": {"type": "STRING", "description": "2-3 sentence summary"},
        "themes": {"type": "ARRAY", "items": {"type": "STRING"}},
        "suggested_tags": {"type": "ARRAY", "items": {"type": "STRING"}},
    },
    "required": ["summary", "themes", "suggested_tags"],
}

_PLAN_SCHEMA: dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "date": {"type": "STRING", "description": "Date in YYYY-MM-DD format"},
            "activity_type": {"type": "STRING", "enum": [t.value for t in ActivityType]},
            "title": {"type": "STRING"},
            "start_time": {"type": "STRING"},
            "duration_minutes": {"type": "INTEGER"},
            "notes": {"type": "STRING"},
        },
        "required": ["date", "activity_type", "title", "start_time", "duration_minutes"],
    },
}

_ACTIVITY_LIST = TypeAdapter(list[PlannedActivity])


class AIService:
    """Generative helpers. With no generator every call returns its fallback."""

    def __init__(self, generator: TextGenerator | None = None) -> None:
        self._generator = generator

    @property
    def enabled(self) -> bool:
        return self._generator is not None

    async def generate_entry_title(self, content: str, activity_type: ActivityType) -> str:
        fallback = untitled_title(activity_type)
        if self._generator is None or not content.strip():
            return fallback
        prompt = (
            f'Based on the following content from a "{activity_type.value}" activity, '
            "generate a concise and descriptive title (5-10 words maximum).\n\n"
            f"Content:\n---\n{content[:_CONTENT_PREVIEW_CHARS]}\n---\n\n"
            "Return only the title text, with no extra formatting, labels, or quotation marks."
        )
        try:
            text = await self._generator.generate(prompt)
        except Exception:
            logger.exception("Error generating entry title")
            return fallback
        title = text.strip().strip("\"'").strip()
        return title or fallback

    async def generate_entry_summary(self, entry: WritingEntry) -> EntrySummary:
        if self._generator is None:
            return EntrySummary(summary=DISABLED_SUMMARY)
        prompt = (
            f"Summarize this {entry.activity_type.value} entry for a writing log.\n\n"
            f"Activity Type: {entry.activity_type.value}\n"
            f"Writing Type: {entry.writing_type}\n"
            f"Title: {entry.title}\n"
            f"Word Count: {entry.word_count}\n\n"
            f"Content:\n{entry.content}\n\n"
            f"Process Notes:\n{entry.notes}\n\n"
            "Provide a 2-3 sentence summary, the main themes, and suggested tags. "
            "Return a valid JSON object with the specified schema."
        )
        try:
            text = await self._generator.generate(prompt, response_schema=_SUMMARY_SCHEMA)
            return EntrySummary.model_validate_json(text.strip())
        except Exception:
            logger.exception("Error generating entry summary")
            return EntrySummary(summary=FAILED_SUMMARY)

    async def parse_multi_day_plan(
        self, description: str, start_date: date, end_date: date
    ) -> list[PlannedActivity]:
        """Parse a free-text plan. Returns an empty list when disabled or on failure."""
        if self._generator is None or not description.strip():
            return []
        prompt = (
            "Parse the following writing plan description into a series of structured "
            f"activities scheduled between {start_date.isoformat()} and {end_date.isoformat()}.\n\n"
            f"Plan description:\n---\n{description}\n---\n\n"
            "Extract each activity with date (YYYY-MM-DD), activity_type (one of: "
            f"{', '.join(t.value for t in ActivityType)}), title, start_time (HH:MM, 24-hour), "
            "duration_minutes (integer, default 60) and notes. Distribute undated activities "
            "across the range. Return a valid JSON array of activity objects."
        )
        try:
            text = await self._generator.generate(prompt, response_schema=_PLAN_SCHEMA)
            activities = _ACTIVITY_LIST.validate_python(json.loads(text.strip()))
        except ValidationError:
            logger.exception("Plan response did not match the activity schema")
            return []
        except Exception:
            logger.exception("Error parsing multi-day plan")
            return []
        return [activity.model_copy(update={"id": uuid.uuid4().hex}) for activity in activities]

    async def parse_daily_plan(self, description: str, day: date) -> list[PlannedActivity]:
        return await self.parse_multi_day_plan(description, day, day)

    async def enrich_entry(self, entry: WritingEntry) -> WritingEntry:
        """Attach summary and themes and merge suggested tags."""
        result = await self.generate_entry_summary(entry)
        return entry.model_copy(
            update={
                "ai_summary": result.summary,
                "ai_themes": result.themes,
                "tags": list(dict.fromkeys([*entry.tags, *result.suggested_tags])),
            }
        )
