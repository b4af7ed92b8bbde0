from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class DateRangeModel(BaseModel):
    start: Optional[str] = None
    end: Optional[str] = None


class FilterSpecModel(BaseModel):
    date_range: DateRangeModel = Field(default_factory=DateRangeModel)
    payment_methods: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    products: List[str] = Field(default_factory=list)
    sold_by: List[str] = Field(default_factory=list)
    locations: List[str] = Field(default_factory=list)
    location: str = "all"
    trainers: List[str] = Field(default_factory=list)
    classes: List[str] = Field(default_factory=list)
    min_discount: Optional[float] = None
    max_discount: Optional[float] = None


class MetaSourcesResponse(BaseModel):
    sources: List[str]
    configured: List[str]
