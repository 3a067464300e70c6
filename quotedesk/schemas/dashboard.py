from decimal import Decimal
from typing import Dict, List

from pydantic import BaseModel

from quotedesk.schemas.calendar import CalendarEventResponse
from quotedesk.schemas.quotation import QuotationSummary


class DashboardStats(BaseModel):
    total_revenue: Decimal
    pipeline_value: Decimal
    active_quotes: int
    open_invoices: int
    total_quotes: int
    status_counts: Dict[str, int]
    recent_quotes: List[QuotationSummary]
    upcoming_events: List[CalendarEventResponse] = []
    role: str
