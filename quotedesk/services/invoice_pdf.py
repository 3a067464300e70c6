"""Invoice PDF generation using WeasyPrint.

The invoice is a function of current state only: selected lines and the
stored totals of the quotation.
"""

import base64
import logging
import re
from datetime import datetime
from html import escape
from pathlib import Path
from typing import Iterable

from quotedesk.config import settings
from quotedesk.exceptions import ExternalServiceError
from quotedesk.services.email_templates import format_eur

logger = logging.getLogger(__name__)

UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def _fmt_date(value) -> str:
    if not value:
        return datetime.now().strftime("%d-%m-%Y")
    return value.strftime("%d-%m-%Y")


def build_invoice_html(org, quotation, items: Iterable) -> str:
    """Render the invoice as HTML. Deselected lines are left out."""
    color = escape(org.primary_color or "#1d4ed8")
    rows = ""
    for item in items:
        if not item.is_selected:
            continue
        description = f"<br><small>{escape(item.description)}</small>" if item.description else ""
        rows += (
            "<tr>"
            f"<td>{escape(item.name)}{description}</td>"
            f"<td class=\"num\">{item.quantity} {escape(item.unit or '')}</td>"
            f"<td class=\"num\">{format_eur(item.unit_price)}</td>"
            f"<td class=\"num\">{format_eur(item.total)}</td>"
            "</tr>"
        )

    totals = f"<tr><td>Subtotaal</td><td class=\"num\">{format_eur(quotation.subtotal)}</td></tr>"
    if quotation.discount:
        totals += f"<tr><td>Korting</td><td class=\"num\">- {format_eur(quotation.discount)}</td></tr>"
    if quotation.include_vat:
        totals += (
            f"<tr><td>BTW ({quotation.vat_rate}%)</td>"
            f"<td class=\"num\">{format_eur(quotation.vat_amount)}</td></tr>"
        )
    totals += f"<tr class=\"grand\"><td>Totaal</td><td class=\"num\">{format_eur(quotation.total)}</td></tr>"

    org_lines = [org.address, org.email, org.phone]
    if org.vat_number:
        org_lines.append(f"BTW: {org.vat_number}")
    if org.kvk_number:
        org_lines.append(f"KVK: {org.kvk_number}")
    org_block = "<br>".join(escape(line) for line in org_lines if line)

    client_lines = [quotation.client_company, quotation.client_name, quotation.client_email, quotation.client_address]
    client_block = "<br>".join(escape(line) for line in client_lines if line)

    payment = ""
    if org.iban:
        payment = f"<p class=\"payment\">IBAN: {escape(org.iban)} t.n.v. {escape(org.name)}</p>"
    notes = f"<p>{escape(quotation.invoice_notes)}</p>" if quotation.invoice_notes else ""
    footer = f"<p class=\"footer\">{escape(org.quote_footer)}</p>" if org.quote_footer else ""

    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<style>
  @page {{ size: A4; margin: 2cm; }}
  body {{ font-family: Helvetica, Arial, sans-serif; font-size: 10pt; color: #1f2937; }}
  h1 {{ color: {color}; margin-bottom: 4px; }}
  .header {{ display: flex; justify-content: space-between; }}
  table.lines {{ width: 100%; border-collapse: collapse; margin-top: 24px; }}
  table.lines th {{ background: {color}; color: #fff; text-align: left; padding: 6px; }}
  table.lines td {{ border-bottom: 1px solid #e5e7eb; padding: 6px; }}
  table.totals {{ margin-left: auto; margin-top: 12px; }}
  .num {{ text-align: right; }}
  .grand td {{ font-weight: bold; border-top: 2px solid {color}; }}
  .footer {{ margin-top: 32px; color: #6b7280; font-size: 8pt; }}
</style>
</head>
<body>
  <h1>FACTUUR</h1>
  <div class="header">
    <div><strong>{escape(org.name)}</strong><br>{org_block}</div>
    <div>
      Factuurnummer: {escape(quotation.invoice_number or '')}<br>
      Factuurdatum: {_fmt_date(quotation.updated_at)}
    </div>
  </div>
  <p><strong>Factuur aan</strong><br>{client_block}</p>
  <table class="lines">
    <tr><th>Omschrijving</th><th class="num">Aantal</th><th class="num">Prijs</th><th class="num">Totaal</th></tr>
    {rows}
  </table>
  <table class="totals">{totals}</table>
  {notes}
  {payment}
  {footer}
</body>
</html>"""


class InvoiceRenderer:
    """Turns an invoiced quotation into PDF bytes."""

    def render(self, org, quotation, items: Iterable) -> bytes:
        html = build_invoice_html(org, quotation, items)
        try:
            from weasyprint import HTML
            pdf_bytes = HTML(string=html).write_pdf()
        except Exception as e:
            logger.error(
                "Invoice PDF generation failed",
                extra={"quotation_id": quotation.id, "error": str(e)},
            )
            raise ExternalServiceError("PDF", "invoice could not be rendered") from e

        logger.info(
            "Generated invoice PDF",
            extra={"quotation_id": quotation.id, "size_bytes": len(pdf_bytes)},
        )
        return pdf_bytes


_renderer = InvoiceRenderer()


def get_invoice_renderer() -> InvoiceRenderer:
    """FastAPI dependency; tests override it with a stub renderer."""
    return _renderer


def invoice_filename(quotation) -> str:
    """Safe as a single path component whatever the organization's prefix holds."""
    stem = UNSAFE_FILENAME_CHARS.sub("_", quotation.invoice_number or "factuur")
    return f"{stem}.pdf"


def pdf_attachment(quotation, pdf_bytes: bytes) -> dict:
    """Brevo attachment format."""
    return {"name": invoice_filename(quotation), "content": base64.b64encode(pdf_bytes).decode("ascii")}


def store_invoice_pdf(quotation, pdf_bytes: bytes) -> str:
    """Write the PDF under UPLOAD_DIR and return its relative path."""
    relative = Path("invoices") / str(quotation.organization_id) / invoice_filename(quotation)
    root = Path(settings.UPLOAD_DIR).resolve()
    target = (root / relative).resolve()
    if root not in target.parents:
        raise ExternalServiceError("storage", "invoice path escapes the upload directory")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(pdf_bytes)
    return relative.as_posix()
