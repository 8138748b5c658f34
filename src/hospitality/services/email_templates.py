"""
Email templates for admin notifications.

Placeholders are ``{name}`` tokens filled by :func:`render_template`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

_PLACEHOLDER = re.compile(r"\{(\w+)\}")

_FOOTER = """
        <p style="color: #64748b; font-size: 14px;">
          Questo messaggio è stato generato automaticamente dal sistema Stadium Hospitality Manager.
        </p>"""


@dataclass(frozen=True)
class EmailTemplate:
    subject: str
    html: str
    text: str


GUEST_CHECK_IN = EmailTemplate(
    subject="🎯 Nuovo Check-in - {guest_name}",
    html=f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #2563eb;">✅ Check-in Effettuato</h2>
        <div style="background: #f8fafc; padding: 20px; border-radius: 8px; margin: 20px 0;">
          <p><strong>Ospite:</strong> {{guest_name}}</p>
          <p><strong>Sala:</strong> {{room_name}}</p>
          <p><strong>Tavolo:</strong> {{table_number}}</p>
          <p><strong>Hostess:</strong> {{hostess_name}}</p>
          <p><strong>Orario:</strong> {{check_in_time}}</p>
        </div>{_FOOTER}
      </div>
    """,
    text=(
        "Check-in effettuato per {guest_name} nella sala {room_name} "
        "alle ore {check_in_time} da {hostess_name}."
    ),
)

GUEST_CHECK_OUT = EmailTemplate(
    subject="🚪 Check-out - {guest_name}",
    html=f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #dc2626;">🚪 Check-out Effettuato</h2>
        <div style="background: #fef2f2; padding: 20px; border-radius: 8px; margin: 20px 0;">
          <p><strong>Ospite:</strong> {{guest_name}}</p>
          <p><strong>Sala:</strong> {{room_name}}</p>
          <p><strong>Hostess:</strong> {{hostess_name}}</p>
          <p><strong>Orario Check-out:</strong> {{check_out_time}}</p>
          <p><strong>Durata Permanenza:</strong> {{duration}}</p>
        </div>{_FOOTER}
      </div>
    """,
    text=(
        "Check-out effettuato per {guest_name} dalla sala {room_name} "
        "alle ore {check_out_time}."
    ),
)

DAILY_REPORT = EmailTemplate(
    subject="📊 Report Giornaliero Accessi - {date}",
    html="""
      <div style="font-family: Arial, sans-serif; max-width: 800px; margin: 0 auto;">
        <h2 style="color: #059669;">📊 Report Accessi Giornaliero</h2>
        <p><strong>Data:</strong> {date}</p>

        <div style="display: grid; grid-template-columns: repeat(2, 1fr); gap: 20px; margin: 20px 0;">
          <div style="background: #ecfdf5; padding: 15px; border-radius: 8px;">
            <h3 style="margin: 0; color: #065f46;">Totale Check-in</h3>
            <p style="font-size: 24px; font-weight: bold; margin: 5px 0; color: #059669;">{total_check_ins}</p>
          </div>
          <div style="background: #fef3f2; padding: 15px; border-radius: 8px;">
            <h3 style="margin: 0; color: #991b1b;">Totale Check-out</h3>
            <p style="font-size: 24px; font-weight: bold; margin: 5px 0; color: #dc2626;">{total_check_outs}</p>
          </div>
        </div>

        <h3>Dettaglio per Sala</h3>
        <div style="background: #f8fafc; padding: 20px; border-radius: 8px;">
          {rooms_stats}
        </div>

        <h3>Top Hostess</h3>
        <div style="background: #f8fafc; padding: 20px; border-radius: 8px;">
          {hostess_stats}
        </div>

        <p style="color: #64748b; font-size: 14px; margin-top: 30px;">
          Report generato automaticamente alle {report_time}
        </p>
      </div>
    """,
    text="Report giornaliero del {date}: {total_check_ins} check-in, {total_check_outs} check-out.",
)

SYSTEM_ALERT = EmailTemplate(
    subject="🚨 Alert Sistema - {alert_type}",
    html="""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #dc2626;">🚨 Alert Sistema</h2>
        <div style="background: #fef2f2; padding: 20px; border-radius: 8px; margin: 20px 0; border-left: 4px solid #dc2626;">
          <p><strong>Tipo Alert:</strong> {alert_type}</p>
          <p><strong>Messaggio:</strong> {message}</p>
          <p><strong>Orario:</strong> {timestamp}</p>
          {details}
        </div>
        <p style="color: #64748b; font-size: 14px;">
          Alert generato automaticamente dal sistema di monitoraggio.
        </p>
      </div>
    """,
    text="Alert sistema: {alert_type} - {message} alle ore {timestamp}",
)

TEST_EMAIL = EmailTemplate(
    subject="🧪 Test Email - Stadium Hospitality Manager",
    html=f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #2563eb;">🧪 Email di Test</h2>
        <p>Questo è un messaggio di test per verificare la configurazione delle email.</p>
        <p><strong>Inviato alle:</strong> {{timestamp}}</p>{_FOOTER}
      </div>
    """,
    text="Questo è un messaggio di test per verificare la configurazione delle email.",
)

EMAIL_TEMPLATES = {
    "GUEST_CHECK_IN": GUEST_CHECK_IN,
    "GUEST_CHECK_OUT": GUEST_CHECK_OUT,
    "DAILY_REPORT": DAILY_REPORT,
    "SYSTEM_ALERT": SYSTEM_ALERT,
    "TEST_EMAIL": TEST_EMAIL,
}


def render_template(template: str, data: dict[str, Any]) -> str:
    """
    Replace every ``{key}`` whose key is present in ``data``.

    Lists are joined with ", ". Unknown placeholders are left as they are.
    """

    def replace(match: re.Match) -> str:
        key = match.group(1)
        if key not in data or data[key] is None:
            return match.group(0)
        value = data[key]
        if isinstance(value, (list, tuple)):
            return ", ".join(str(item) for item in value)
        return str(value)

    return _PLACEHOLDER.sub(replace, template)
