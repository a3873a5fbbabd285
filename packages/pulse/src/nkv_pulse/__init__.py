"""NKV Pulse - harvesting and personalization.

Provides:
- Harvester: scheduled arXiv sweeps into the staging store
- PersonalizationMatcher: DNA-ranked staging signals with cold-start fallback
- DNASynthesizer: profile text to stored interest vector
"""

from nkv_pulse.dna import DNASynthesizer
from nkv_pulse.harvester import Harvester
from nkv_pulse.matcher import PersonalizationMatcher, to_signal
from nkv_pulse.normalize import (
    AUTHORITY_WEIGHTS,
    authority_for,
    clean_content,
    contains_negative_interest,
)

__all__ = [
    "Harvester",
    "PersonalizationMatcher",
    "DNASynthesizer",
    "to_signal",
    "AUTHORITY_WEIGHTS",
    "authority_for",
    "clean_content",
    "contains_negative_interest",
]
