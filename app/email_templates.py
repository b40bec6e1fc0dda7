"""
MJML Email Templates
Reservation and GDPR emails, each with a plain-text alternative
"""

from datetime import datetime
from typing import Optional

from .config import (
    DEFAULT_PICKUP_LOCATION,
    KINDERGARTEN_CITY,
    KINDERGARTEN_EMAIL,
    KINDERGARTEN_NAME,
    KINDERGARTEN_POSTAL_CODE,
    KINDERGARTEN_STREET,
    MAGAZINE_PRICE,
    SHIPPING_COST,
)
from .pricing import (
    calculate_payment_deadline,
    calculate_total_cost,
    format_currency,
    format_reservation_number,
    generate_payment_reference,
    paypal_link,
)
from .utils.sanitization import sanitize_string

# Maritime blue theme of the Leuchtturm kindergarten
THEME = {
    "primary": "#0066cc",
    "background": "#f5f5f5",
    "card_bg": "#ffffff",
    "info_bg": "#f8f9fa",
    "payment_bg": "#fff3cd",
    "payment_border": "#ffc107",
    "text_primary": "#333333",
    "text_muted": "#666666",
    "border": "#dddddd",
    "danger": "#d9534f",
}

PICKUP_DATE_NOTICE = "Wir melden uns in Kürze bezüglich eines Abholtermins"

DELETED_DATA_TYPES = [
    "Persönliche Daten",
    "Reservierungen",
    "Einwilligungen",
    "Verarbeitungsprotokoll (anonymisiert)",
]


def copies_label(quantity: int) -> str:
    return "Exemplar" if quantity == 1 else "Exemplare"


def get_base_template(title: str, preview_text: str, content_sections: str) -> str:
    """Base MJML template wrapper for all emails"""
    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_primary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{THEME['card_bg']}" padding="30px 20px 10px 20px">
          <mj-column>
            <mj-text align="center" font-size="28px" color="{THEME['primary']}" padding="0">
              {title}
            </mj-text>
            <mj-text align="center" font-size="18px" color="{THEME['text_muted']}" padding="5px 0 0 0">
              {KINDERGARTEN_NAME}
            </mj-text>
            <mj-divider border-color="{THEME['primary']}" border-width="2px" padding="20px 0 0 0" />
          </mj-column>
        </mj-section>

        {content_sections}

        <mj-section background-color="{THEME['card_bg']}" padding="20px 30px 30px 30px">
          <mj-column>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="0 0 20px 0" />
            <mj-text align="center" font-size="14px" color="{THEME['text_muted']}">
              Diese E-Mail wurde automatisch generiert. Bitte antworten Sie nicht direkt auf diese E-Mail.
            </mj-text>
            <mj-text align="center" font-size="14px" color="{THEME['text_muted']}">
              {KINDERGARTEN_NAME}<br/>
              {KINDERGARTEN_STREET}<br/>
              {KINDERGARTEN_POSTAL_CODE} {KINDERGARTEN_CITY}
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _info_row(label: str, value: str) -> str:
    return f"""
            <mj-text padding="4px 0">
              <strong>{label}</strong> {value}
            </mj-text>"""


def _info_box(heading: str, rows: str, background: Optional[str] = None) -> str:
    return f"""
        <mj-section background-color="{THEME['card_bg']}" padding="0 30px">
          <mj-column background-color="{background or THEME['info_bg']}" border-left="4px solid {THEME['primary']}" padding="15px">
            <mj-text font-size="18px" font-weight="600" padding="0 0 8px 0">{heading}</mj-text>
            {rows}
          </mj-column>
        </mj-section>
        <mj-section background-color="{THEME['card_bg']}" padding="10px 0"><mj-column></mj-column></mj-section>"""


def reservation_confirmation_template(
    first_name: str,
    last_name: str,
    reservation_id: str,
    magazine_title: str,
    issue_number: str,
    quantity: int,
    delivery_method: str,
    reservation_date: datetime,
    pickup_location: Optional[str] = None,
    payment_method: Optional[str] = None,
    order_group_picture: bool = False,
    child_group_name: Optional[str] = None,
    order_vorschul_picture: bool = False,
    child_name: Optional[str] = None,
) -> str:
    """Reservation confirmation MJML template"""
    magazine_title = sanitize_string(magazine_title)
    magazine_cost = MAGAZINE_PRICE * quantity
    total_cost = calculate_total_cost(quantity, delivery_method)

    cost_rows = _info_row("Reservierungsnummer:", format_reservation_number(reservation_id))
    cost_rows += _info_row("Magazin:", f"{magazine_title} - {sanitize_string(issue_number)}")
    cost_rows += _info_row("Anzahl:", f"{quantity} {copies_label(quantity)}")
    cost_rows += _info_row("Preis pro Exemplar:", format_currency(MAGAZINE_PRICE))
    if delivery_method == "shipping":
        cost_rows += _info_row("Zwischensumme:", format_currency(magazine_cost))
        cost_rows += _info_row("Versandkostenpauschale:", format_currency(SHIPPING_COST))
    cost_rows += _info_row("Gesamtpreis:", f"<strong>{format_currency(total_cost)}</strong>")

    sections = f"""
        <mj-section background-color="{THEME['card_bg']}" padding="10px 30px">
          <mj-column>
            <mj-text>Hallo {sanitize_string(first_name)} {sanitize_string(last_name)},</mj-text>
            <mj-text>vielen Dank für Ihre Reservierung der <strong>{magazine_title}</strong>.</mj-text>
          </mj-column>
        </mj-section>
        {_info_box("Reservierungsdetails:", cost_rows)}"""

    if delivery_method == "pickup":
        location = sanitize_string(pickup_location or DEFAULT_PICKUP_LOCATION)
        pickup_rows = _info_row("Ort:", location) + _info_row("Termin:", PICKUP_DATE_NOTICE)
        payment_rows = f"""
            <mj-text padding="4px 0"><strong>Bitte bezahlen Sie bei der Abholung in bar.</strong></mj-text>
            <mj-text padding="4px 0">Betrag: <strong>{format_currency(total_cost)}</strong></mj-text>
            <mj-text padding="4px 0" color="{THEME['danger']}" font-weight="600">Bitte bringen Sie den passenden Betrag mit.</mj-text>"""
        sections += _info_box("Abholung:", pickup_rows)
        sections += _info_box("💰 Zahlungsinformationen", payment_rows, THEME["payment_bg"])
    else:
        shipping_rows = """
            <mj-text padding="4px 0">Die Lieferadresse wurde gespeichert. Das Magazin wird nach Zahlungseingang versandt.</mj-text>"""
        sections += _info_box("Versand:", shipping_rows)
        if payment_method == "paypal":
            deadline = calculate_payment_deadline(reservation_date).strftime("%d.%m.%Y")
            paypal_rows = f"""
            <mj-text padding="4px 0">Bitte überweisen Sie den Betrag von <strong>{format_currency(total_cost)}</strong> via PayPal bis zum {deadline}:</mj-text>
            <mj-button href="{paypal_link(total_cost)}" background-color="#0070ba" color="#ffffff" border-radius="4px" align="left">
              💳 Mit PayPal bezahlen ({format_currency(total_cost)})
            </mj-button>
            <mj-text padding="4px 0"><strong>Verwendungszweck:</strong> {generate_payment_reference(reservation_id)}</mj-text>
            <mj-text padding="4px 0" color="{THEME['danger']}" font-weight="600">Bitte geben Sie unbedingt den Verwendungszweck an!</mj-text>"""
            sections += _info_box("💳 PayPal-Zahlung", paypal_rows, THEME["payment_bg"])

    if order_group_picture or order_vorschul_picture:
        picture_rows = ""
        if order_group_picture:
            picture_rows += _info_row("Gruppenbild:", f"✓ Bestellt ({sanitize_string(child_group_name)})")
        if order_vorschul_picture:
            picture_rows += _info_row("Vorschüler-Bild:", "✓ Bestellt")
        if child_name:
            picture_rows += _info_row("Kind:", sanitize_string(child_name))
        sections += _info_box("📸 Bildbestellung:", picture_rows)

    sections += f"""
        <mj-section background-color="{THEME['card_bg']}" padding="10px 30px">
          <mj-column>
            <mj-text>Bei Fragen können Sie uns gerne kontaktieren:</mj-text>
            <mj-text>E-Mail: <a href="mailto:{KINDERGARTEN_EMAIL}" style="color: {THEME['primary']};">{KINDERGARTEN_EMAIL}</a></mj-text>
          </mj-column>
        </mj-section>"""

    return get_base_template(
        title="Reservierung bestätigt!",
        preview_text=f"Ihre Reservierung der {magazine_title} ist eingegangen",
        content_sections=sections,
    )


def reservation_confirmation_text(
    first_name: str,
    last_name: str,
    reservation_id: str,
    magazine_title: str,
    issue_number: str,
    quantity: int,
    delivery_method: str,
    reservation_date: datetime,
    pickup_location: Optional[str] = None,
    payment_method: Optional[str] = None,
    order_group_picture: bool = False,
    child_group_name: Optional[str] = None,
    order_vorschul_picture: bool = False,
    child_name: Optional[str] = None,
) -> str:
    """Plain-text alternative of the reservation confirmation"""
    magazine_cost = MAGAZINE_PRICE * quantity
    total_cost = calculate_total_cost(quantity, delivery_method)

    lines = [
        "Reservierung bestätigt!",
        "======================",
        "",
        f"Hallo {first_name} {last_name},",
        "",
        f"vielen Dank für Ihre Reservierung der {magazine_title}.",
        "",
        "RESERVIERUNGSDETAILS:",
        "--------------------",
        f"Reservierungsnummer: {format_reservation_number(reservation_id)}",
        f"Magazin: {magazine_title} - {issue_number}",
        f"Anzahl: {quantity} {copies_label(quantity)}",
        f"Preis pro Exemplar: {format_currency(MAGAZINE_PRICE)}",
    ]
    if delivery_method == "shipping":
        lines.append(f"Zwischensumme: {format_currency(magazine_cost)}")
        lines.append(f"Versandkostenpauschale: {format_currency(SHIPPING_COST)}")
    lines.append(f"Gesamtpreis: {format_currency(total_cost)}")

    if delivery_method == "pickup":
        lines += [
            "",
            "ABHOLUNG:",
            "---------",
            f"Ort: {pickup_location or DEFAULT_PICKUP_LOCATION}",
            f"Termin: {PICKUP_DATE_NOTICE}",
            "",
            "ZAHLUNG:",
            "--------",
            "Bitte bezahlen Sie bei der Abholung in bar.",
            f"Betrag: {format_currency(total_cost)}",
            "WICHTIG: Bitte bringen Sie den passenden Betrag mit.",
        ]
    else:
        lines += [
            "",
            "VERSAND:",
            "--------",
            "Die Lieferadresse wurde gespeichert.",
            "Das Magazin wird nach Zahlungseingang versandt.",
        ]
        if payment_method == "paypal":
            deadline = calculate_payment_deadline(reservation_date).strftime("%d.%m.%Y")
            lines += [
                "",
                "PAYPAL-ZAHLUNG:",
                "--------------",
                f"Bitte überweisen Sie {format_currency(total_cost)} via PayPal bis zum {deadline}:",
                f"PayPal.Me Link: {paypal_link(total_cost)}",
                f"Verwendungszweck: {generate_payment_reference(reservation_id)}",
                "WICHTIG: Bitte geben Sie unbedingt den Verwendungszweck an!",
            ]

    if order_group_picture or order_vorschul_picture:
        lines += ["", "BILDBESTELLUNG:", "--------------"]
        if order_group_picture:
            lines.append(f"Gruppenbild: ✓ Bestellt ({child_group_name})")
        if order_vorschul_picture:
            lines.append("Vorschüler-Bild: ✓ Bestellt")
        if child_name:
            lines.append(f"Kind: {child_name}")

    lines += [
        "",
        "Bei Fragen können Sie uns gerne kontaktieren:",
        f"E-Mail: {KINDERGARTEN_EMAIL}",
        "",
        "Mit freundlichen Grüßen",
        KINDERGARTEN_NAME,
        KINDERGARTEN_STREET,
        f"{KINDERGARTEN_POSTAL_CODE} {KINDERGARTEN_CITY}",
    ]
    return "\n".join(lines) + "\n"


def deletion_confirmation_template(first_name: str, deletion_timestamp: datetime) -> str:
    """GDPR deletion confirmation MJML template"""
    deleted_items = "".join(
        f"""
            <mj-text padding="2px 0">✓ {item}</mj-text>"""
        for item in DELETED_DATA_TYPES
    )
    sections = f"""
        <mj-section background-color="{THEME['card_bg']}" padding="10px 30px">
          <mj-column>
            <mj-text>Hallo {sanitize_string(first_name)},</mj-text>
            <mj-text>
              wie von Ihnen gewünscht, haben wir am {deletion_timestamp.strftime("%d.%m.%Y")} alle Ihre
              personenbezogenen Daten gelöscht.
            </mj-text>
          </mj-column>
        </mj-section>
        {_info_box("Gelöschte Daten:", deleted_items)}
        <mj-section background-color="{THEME['card_bg']}" padding="10px 30px">
          <mj-column>
            <mj-text font-size="14px" color="{THEME['text_muted']}">
              Aus rechtlichen Gründen bewahren wir ein anonymisiertes Verarbeitungsprotokoll auf.
              Es enthält keine Angaben mehr, die Sie identifizieren.
            </mj-text>
            <mj-text>Bei Fragen wenden Sie sich bitte an: <a href="mailto:{KINDERGARTEN_EMAIL}" style="color: {THEME['primary']};">{KINDERGARTEN_EMAIL}</a></mj-text>
          </mj-column>
        </mj-section>"""

    return get_base_template(
        title="Ihre Daten wurden gelöscht",
        preview_text="Bestätigung der Löschung Ihrer Daten",
        content_sections=sections,
    )


def deletion_confirmation_text(first_name: str, deletion_timestamp: datetime) -> str:
    lines = [
        "Ihre Daten wurden gelöscht",
        "==========================",
        "",
        f"Hallo {first_name},",
        "",
        f"wie von Ihnen gewünscht, haben wir am {deletion_timestamp.strftime('%d.%m.%Y')} alle Ihre",
        "personenbezogenen Daten gelöscht:",
        "",
    ]
    lines += [f"- {item}" for item in DELETED_DATA_TYPES]
    lines += [
        "",
        "Aus rechtlichen Gründen bewahren wir ein anonymisiertes Verarbeitungsprotokoll auf.",
        "",
        f"Bei Fragen wenden Sie sich bitte an: {KINDERGARTEN_EMAIL}",
        "",
        "Mit freundlichen Grüßen",
        KINDERGARTEN_NAME,
    ]
    return "\n".join(lines) + "\n"
