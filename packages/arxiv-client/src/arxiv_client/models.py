"""Pydantic model for arXiv Atom feed entries."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ArxivEntry(BaseModel):
    """One paper from an arXiv query feed.

    Text fields hold the feed values as-is (titles often contain hard
    line breaks); normalisation is the harvester's job.
    """

    arxiv_id: str
    title: str
    summary: str = ""
    url: str
    authors: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    primary_category: Optional[str] = None
    published: Optional[datetime] = None
    updated: Optional[datetime] = None
    pdf_url: Optional[str] = None

    model_config = ConfigDict(extra="ignore")
