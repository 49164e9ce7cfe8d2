"""
MJML Email Templates
All transactional emails share the base wrapper so they render consistently.
"""

from typing import Optional

THEME = {
    "primary": "#2563eb",
    "background": "#f8fafc",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "success": "#16a34a",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}

STATUS_COLORS = {
    "open": THEME["primary"],
    "in_progress": THEME["warning"],
    "on_hold": THEME["text_muted"],
    "resolved": THEME["success"],
    "closed": THEME["text_muted"],
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>
            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              PropDesk · Property management for agencies, owners and tenants
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _paragraph(text: str) -> str:
    return f'<mj-text padding="0 0 12px 0">{text}</mj-text>'


def notification_email_template(title: str, body: str, action_url: Optional[str] = None) -> str:
    """Generic in-app notification mirrored to email"""
    return get_base_template(
        title=title,
        preview_text=body[:100] if body else title,
        content_sections=_paragraph(body or ""),
        cta_url=action_url,
        cta_label="Open PropDesk" if action_url else None,
    )


def ticket_status_template(
    ticket_id: int,
    ticket_title: str,
    new_status: str,
    unit_name: Optional[str] = None,
    notes: Optional[str] = None,
    ticket_url: Optional[str] = None,
) -> str:
    color = STATUS_COLORS.get(new_status, THEME["primary"])
    status_label = new_status.replace("_", " ").title()
    unit_line = _paragraph(f"Unit: <strong>{unit_name}</strong>") if unit_name else ""
    notes_line = _paragraph(f"<em>{notes}</em>") if notes else ""

    content = f"""
    {_paragraph(f"Ticket <strong>#{ticket_id} · {ticket_title}</strong> is now:")}
    <mj-text font-size="18px" font-weight="600" color="{color}" padding="0 0 16px 0">
      {status_label}
    </mj-text>
    {unit_line}
    {notes_line}
    """
    return get_base_template(
        title="Maintenance ticket update",
        preview_text=f"Ticket #{ticket_id} is now {status_label}",
        content_sections=content,
        cta_url=ticket_url,
        cta_label="View ticket" if ticket_url else None,
    )


def quotation_sent_template(
    client_name: str,
    agency_name: str,
    quotation_title: str,
    services: list[dict],
    subtotal: float,
    admin_fee: float,
    total: float,
    currency: str,
    public_url: str,
) -> str:
    """Quotation delivered to the client with a link to approve or reject it"""
    rows = "".join(
        f"""
        <tr>
          <td style="padding:6px 0;">{service.get('name', '')}</td>
          <td style="padding:6px 0; text-align:center;">{service.get('quantity', 0)}</td>
          <td style="padding:6px 0; text-align:right;">${service.get('subtotal', 0):,.2f}</td>
        </tr>
        """
        for service in services
    )

    content = f"""
    {_paragraph(f"Hi {client_name},")}
    {_paragraph(f"{agency_name} sent you a quotation: <strong>{quotation_title}</strong>.")}
    <mj-table font-size="14px" color="{THEME['text_secondary']}" padding="0 0 16px 0">
      <tr style="border-bottom:1px solid {THEME['border']}; text-align:left;">
        <th style="padding:6px 0;">Service</th>
        <th style="padding:6px 0; text-align:center;">Qty</th>
        <th style="padding:6px 0; text-align:right;">Amount</th>
      </tr>
      {rows}
    </mj-table>
    {_paragraph(f"Subtotal: ${subtotal:,.2f} {currency}")}
    {_paragraph(f"Administration fee: ${admin_fee:,.2f} {currency}")}
    <mj-text font-size="18px" font-weight="600" color="{THEME['text_primary']}" padding="0 0 16px 0">
      Total: ${total:,.2f} {currency}
    </mj-text>
    """
    return get_base_template(
        title="You have a new quotation",
        preview_text=f"{agency_name} sent you a quotation for ${total:,.2f} {currency}",
        content_sections=content,
        cta_url=public_url,
        cta_label="Review quotation",
    )


def team_invite_template(full_name: str, agency_name: str, role: str, login_url: str) -> str:
    role_label = role.replace("external_agency_", "").replace("_", " ").title()
    content = f"""
    {_paragraph(f"Hi {full_name},")}
    {_paragraph(f"You were added to <strong>{agency_name}</strong> on PropDesk as <strong>{role_label}</strong>.")}
    {_paragraph("Sign in with the email address this message was sent to.")}
    """
    return get_base_template(
        title=f"Welcome to {agency_name}",
        preview_text=f"You now have access to {agency_name} on PropDesk",
        content_sections=content,
        cta_url=login_url,
        cta_label="Sign in",
    )
