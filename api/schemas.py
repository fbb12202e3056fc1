from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel


class FilterModel(BaseModel):
    city: Optional[str] = None
    product: Optional[str] = None
    sales_rep: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class OptionsResponse(BaseModel):
    source: str
    cities: List[str]
    products: List[str]
    sales_reps: List[str]
    min_date: Optional[str] = None
    max_date: Optional[str] = None
    rejected_count: int = 0
