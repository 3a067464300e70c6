from quotedesk.models.organization import Organization
from quotedesk.models.user import User
from quotedesk.models.price_matrix import PriceMatrixItem
from quotedesk.models.quotation import Quotation, QuoteItem, QuotationAuditEntry
from quotedesk.models.calendar_event import CalendarEvent
from quotedesk.models.client_user import ClientUser
from quotedesk.models.dossier import Dossier, DossierEntry, DossierMessage, DossierSignature
from quotedesk.models.notification import Notification
from quotedesk.models.form_template import FormTemplate

__all__ = [
    "Organization",
    "User",
    "PriceMatrixItem",
    "Quotation",
    "QuoteItem",
    "QuotationAuditEntry",
    "CalendarEvent",
    "ClientUser",
    "Dossier",
    "DossierEntry",
    "DossierMessage",
    "DossierSignature",
    "Notification",
    "FormTemplate",
]
