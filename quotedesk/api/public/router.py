"""
Public API Router

Unauthenticated endpoints under /api/public: client quote links, the lead
form, calendar availability and the client portal.
"""

from fastapi import APIRouter

from quotedesk.api.public import quotes, lead_form, calendar, client_portal

public_router = APIRouter()

public_router.include_router(quotes.router)
public_router.include_router(lead_form.router)
public_router.include_router(calendar.router)
public_router.include_router(client_portal.router)
