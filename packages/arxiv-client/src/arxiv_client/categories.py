"""Harvest taxonomy: the arXiv categories a sweep may draw from.

Each sweep picks one category uniformly at random; repeated sweeps
eventually cover the whole set.
"""

import random
from enum import Enum
from typing import Optional


class HarvestCategory(str, Enum):
    """arXiv subject classes swept by the harvester."""

    # Computer science
    ARTIFICIAL_INTELLIGENCE = "cs.AI"
    MACHINE_LEARNING = "cs.LG"
    COMPUTATION_AND_LANGUAGE = "cs.CL"
    COMPUTER_VISION = "cs.CV"
    ROBOTICS = "cs.RO"
    CRYPTOGRAPHY = "cs.CR"
    HUMAN_COMPUTER_INTERACTION = "cs.HC"

    # Statistics and quantitative biology
    STAT_MACHINE_LEARNING = "stat.ML"
    NEURONS_AND_COGNITION = "q-bio.NC"
    GENOMICS = "q-bio.GN"

    # Economics and finance
    GENERAL_ECONOMICS = "econ.GN"
    GENERAL_FINANCE = "q-fin.GN"

    # Physics
    PHYSICS_AND_SOCIETY = "physics.soc-ph"
    QUANTUM_PHYSICS = "quant-ph"
    COSMOLOGY = "astro-ph.CO"
    EARTH_AND_PLANETARY = "astro-ph.EP"
    ATMOSPHERIC_PHYSICS = "physics.ao-ph"
    PLASMA_PHYSICS = "physics.plasm-ph"

    @property
    def search_query(self) -> str:
        """arXiv search_query expression for this category."""
        return f"cat:{self.value}"


def pick_category(rng: Optional[random.Random] = None) -> HarvestCategory:
    """Uniform random choice over the taxonomy."""
    chooser = rng or random
    return chooser.choice(list(HarvestCategory))
