"""Prompt templates for fact distillation and profile refinement.

Fact prompts target Ollama's JSON mode: the model must answer with a
single object of the form {"facts": ["...", "..."]}.
"""

# Distillation reads at most this many characters of the source text
MAX_DISTILL_CHARS = 20000

FACT_SYSTEM_PROMPT = """You are a meticulous research librarian.
Your task is to distill text into atomic facts that can be retrieved independently.

An atomic fact:
1. Is one short declarative sentence
2. Stands on its own without pronouns that point outside the sentence
3. States something the text asserts, never an opinion you add

Output must be valid JSON matching the specified schema."""

FACT_EXTRACTION_PROMPT = """Extract the ATOMIC FACTS contained in the following text.

TEXT:
---
{text}
---

Return at most {max_facts} facts, most informative first.
Skip boilerplate, navigation text, advertising and author biographies.

OUTPUT FORMAT (JSON):
{{"facts": ["First atomic fact.", "Second atomic fact."]}}

If the text contains no factual content, return {{"facts": []}}."""

PROFILE_SYSTEM_PROMPT = """You write dense technical summaries for a vector search index.
Respond with plain prose only: no lists, no headings, no preamble."""

PROFILE_REFINEMENT_PROMPT = """Analyze the following interests of a user and write one dense
technical paragraph summarizing the professional and personal subject areas they gravitate to.
Name concrete fields, methods and technologies rather than adjectives.

INTERESTS:
{profile}"""


def format_fact_prompt(text: str, max_facts: int = 40) -> str:
    """Format the distillation prompt, truncating very long input."""
    return FACT_EXTRACTION_PROMPT.format(text=text[:MAX_DISTILL_CHARS], max_facts=max_facts)


def format_refinement_prompt(profile: str) -> str:
    """Format the profile densification prompt."""
    return PROFILE_REFINEMENT_PROMPT.format(profile=profile.strip())
