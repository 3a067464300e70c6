"""HTML/plain-text bodies for outgoing mails. User supplied values are escaped."""

from dataclasses import dataclass
from decimal import Decimal
from html import escape
from typing import Optional

from quotedesk.config import settings


@dataclass(frozen=True)
class EmailContent:
    subject: str
    body: str
    html: str


def format_eur(amount) -> str:
    value = Decimal(str(amount or 0)).quantize(Decimal("0.01"))
    whole, cents = f"{value:,.2f}".split(".")
    return f"€ {whole.replace(',', '.')},{cents}"


def quote_url(token: str) -> str:
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/quote/{token}"


def portal_url(login_token: str) -> str:
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/portal/auto-login/{login_token}"


def _layout(org_name: str, color: Optional[str], inner: str) -> str:
    color = escape(color or "#1d4ed8")
    return (
        "<html><body style=\"font-family: Arial, sans-serif; color: #1f2937;\">"
        f"<div style=\"max-width: 600px; margin: 0 auto;\">"
        f"<h2 style=\"color: {color};\">{escape(org_name)}</h2>"
        f"{inner}"
        "</div></body></html>"
    )


def _button(url: str, label: str, color: Optional[str]) -> str:
    return (
        f"<p><a href=\"{escape(url)}\" style=\"background: {escape(color or '#1d4ed8')}; color: #fff; "
        f"padding: 10px 18px; border-radius: 6px; text-decoration: none;\">{escape(label)}</a></p>"
    )


def quote_email(org, quotation) -> EmailContent:
    url = quote_url(quotation.token)
    inner = (
        f"<p>Beste {escape(quotation.client_name)},</p>"
        f"<p>Hierbij ontvangt u onze offerte ter waarde van <strong>{format_eur(quotation.total)}</strong>.</p>"
        f"{_button(url, 'Bekijk offerte', org.primary_color)}"
        "<p>U kunt de offerte online bekijken, aanpassen en ondertekenen.</p>"
    )
    body = (
        f"Beste {quotation.client_name},\n\n"
        f"Hierbij ontvangt u onze offerte ter waarde van {format_eur(quotation.total)}.\n"
        f"Bekijk en onderteken de offerte via: {url}\n"
    )
    return EmailContent(f"Offerte van {org.name}", body, _layout(org.name, org.primary_color, inner))


def invoice_email(org, quotation) -> EmailContent:
    number = quotation.invoice_number or ""
    inner = (
        f"<p>Beste {escape(quotation.client_name)},</p>"
        f"<p>In de bijlage vindt u factuur <strong>{escape(number)}</strong> "
        f"voor een bedrag van <strong>{format_eur(quotation.total)}</strong>.</p>"
    )
    if org.iban:
        inner += f"<p>Gelieve het bedrag over te maken naar {escape(org.iban)} t.n.v. {escape(org.name)}.</p>"
    body = (
        f"Beste {quotation.client_name},\n\n"
        f"In de bijlage vindt u factuur {number} voor een bedrag van {format_eur(quotation.total)}.\n"
    )
    return EmailContent(f"Factuur {number} van {org.name}", body, _layout(org.name, org.primary_color, inner))


def portal_access_email(org, client_user, password: str) -> EmailContent:
    url = portal_url(client_user.login_token)
    inner = (
        f"<p>Beste {escape(client_user.name)},</p>"
        f"<p>Er is een klantenportaal voor u aangemaakt bij {escape(org.name)}. "
        "Hier vindt u uw documenten en kunt u berichten sturen.</p>"
        f"{_button(url, 'Open klantenportaal', org.primary_color)}"
        f"<p>Inloggen kan ook met uw e-mailadres en het wachtwoord <code>{escape(password)}</code>.</p>"
    )
    body = (
        f"Beste {client_user.name},\n\n"
        f"Uw klantenportaal bij {org.name}: {url}\n"
        f"E-mailadres: {client_user.email}\nWachtwoord: {password}\n"
    )
    return EmailContent(f"Uw klantenportaal bij {org.name}", body, _layout(org.name, org.primary_color, inner))


def new_lead_email(org, quotation) -> EmailContent:
    lines = [
        ("Naam", quotation.client_name),
        ("E-mail", quotation.client_email),
        ("Telefoon", quotation.client_phone),
        ("Bedrijf", quotation.client_company),
        ("Gewenste datum", quotation.desired_start_date and quotation.desired_start_date.isoformat()),
        ("Totaal", format_eur(quotation.total)),
    ]
    rows = "".join(
        f"<tr><td><strong>{label}</strong></td><td>{escape(str(value))}</td></tr>"
        for label, value in lines if value
    )
    inner = f"<p>Er is een nieuwe aanvraag binnengekomen via het aanvraagformulier.</p><table>{rows}</table>"
    body = "Nieuwe aanvraag:\n" + "\n".join(f"{label}: {value}" for label, value in lines if value)
    return EmailContent(
        f"Nieuwe aanvraag van {quotation.client_name}", body, _layout(org.name, org.primary_color, inner)
    )


def dossier_message_email(org, sender_name: str, message: str, link: Optional[str] = None) -> EmailContent:
    inner = (
        f"<p>Nieuw bericht van <strong>{escape(sender_name)}</strong>:</p>"
        f"<blockquote>{escape(message)}</blockquote>"
    )
    if link:
        inner += _button(link, "Bekijk dossier", org.primary_color)
    body = f"Nieuw bericht van {sender_name}:\n\n{message}\n" + (f"\n{link}\n" if link else "")
    return EmailContent(f"Nieuw bericht - {org.name}", body, _layout(org.name, org.primary_color, inner))


def employee_invite_email(org, employee, password: Optional[str] = None) -> EmailContent:
    """Account mail for a new employee. The password is only included when it was generated."""
    url = f"{settings.FRONTEND_URL.rstrip('/')}/login"
    inner = (
        f"<p>Beste {escape(employee.full_name)},</p>"
        f"<p>{escape(org.name)} heeft een account voor u aangemaakt. "
        "Hier vindt u uw offertes, dossiers en agenda.</p>"
        f"{_button(url, 'Inloggen', org.primary_color)}"
        f"<p>Uw e-mailadres: {escape(employee.email)}</p>"
    )
    body = (
        f"Beste {employee.full_name},\n\n"
        f"{org.name} heeft een account voor u aangemaakt: {url}\n"
        f"E-mailadres: {employee.email}\n"
    )
    if password is not None:
        inner += f"<p>Uw wachtwoord is <code>{escape(password)}</code>.</p>"
        body += f"Wachtwoord: {password}\n"
    return EmailContent(f"Uw account bij {org.name}", body, _layout(org.name, org.primary_color, inner))
