from fastapi import APIRouter
from quotedesk.api.v2 import (
    auth,
    organization,
    price_matrix,
    quotations,
    quote_items,
    calendar,
    dossiers,
    notifications,
    employees,
    form_templates,
    dashboard,
)

api_router = APIRouter()

# Include all v2 routers
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(organization.router, prefix="/organization", tags=["organization"])
api_router.include_router(price_matrix.router, prefix="/price-matrix", tags=["price-matrix"])
api_router.include_router(quotations.router, prefix="/quotations", tags=["quotations"])
api_router.include_router(quote_items.router, prefix="/quote-items", tags=["quotations"])
api_router.include_router(calendar.router, prefix="/calendar", tags=["calendar"])
api_router.include_router(dossiers.router, prefix="/dossiers", tags=["dossiers"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(employees.router, prefix="/employees", tags=["employees"])
api_router.include_router(form_templates.router, prefix="/form-templates", tags=["form-templates"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
