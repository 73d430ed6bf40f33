# recurrence_engine/schemas/summary.py
from datetime import date
from enum import Enum

from pydantic import BaseModel, Field


class SummaryDateTag(str, Enum):
    ADDED = "Added"
    EXCLUDED = "Excluded"


class SummaryDate(BaseModel):
    """
    One ad-hoc date shown next to a recurrence summary.
    """

    day: date
    text: str = Field(..., description="Short month/day label, e.g. '1/15'.", examples=["1/15"])
    tag: SummaryDateTag


class EnhancedSummary(BaseModel):
    """
    Recurrence summary plus the ad-hoc additions and exclusions that
    modify it. Renderers typically colour additions green and exclusions red.
    """

    base: str = Field(
        "",
        description="Pattern/range summary, possibly spanning two lines.",
        examples=["Occurs every M, W, F\nUntil Jun 30, 2024"],
    )
    dates: list[SummaryDate] = Field(default_factory=list)

    @property
    def additions(self) -> list[SummaryDate]:
        return [d for d in self.dates if d.tag == SummaryDateTag.ADDED]

    @property
    def exclusions(self) -> list[SummaryDate]:
        return [d for d in self.dates if d.tag == SummaryDateTag.EXCLUDED]
