"""NKV Research - tiered retrieval with web fallback.

Provides:
- ResearchOrchestrator: vault/staging tiers, sufficiency gate, circular re-ingestion
- search_vault: operator view of Tier 1 matches
- TavilyClient: external web search
- WebhookHandoff / LoggingHandoff: downstream stage notification
"""

from nkv_research.handoff import LoggingHandoff, WebhookHandoff, get_handoff
from nkv_research.orchestrator import ResearchOrchestrator
from nkv_research.vault_search import search_vault
from nkv_research.web_search import TavilyClient, get_web_search

__all__ = [
    "ResearchOrchestrator",
    "search_vault",
    "TavilyClient",
    "get_web_search",
    "WebhookHandoff",
    "LoggingHandoff",
    "get_handoff",
]
