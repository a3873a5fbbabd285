"""Structured LLM output models and JSON recovery helpers."""

import json
import re
from typing import Any

from pydantic import BaseModel, Field, field_validator

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class FactExtraction(BaseModel):
    """Facts distilled from one text."""

    facts: list[str] = Field(default_factory=list)

    @field_validator("facts", mode="before")
    @classmethod
    def clean_facts(cls, v: Any) -> list[str]:
        """Drop non-strings, blanks and exact repeats; keep order."""
        if not isinstance(v, list):
            return []
        seen = set()
        cleaned = []
        for fact in v:
            if not isinstance(fact, str):
                continue
            fact = " ".join(fact.split())
            if fact and fact not in seen:
                seen.add(fact)
                cleaned.append(fact)
        return cleaned

    @property
    def fact_count(self) -> int:
        return len(self.facts)


def parse_json_object(raw: str) -> dict[str, Any]:
    """Parse the first {...} block in a model response.

    Models sometimes wrap JSON in prose or code fences even in JSON mode.

    Raises:
        ValueError: If no JSON object can be recovered
    """
    match = _JSON_OBJECT.search(raw.strip())
    if not match:
        raise ValueError("No JSON object found in response")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in response: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Response JSON is not an object")
    return data
