"""
HTML email templates for the Renovate platform.

Every public function returns a complete HTML string ready for sending via
the ``send_email`` helper in ``notifications.py``.

Design tokens:
  - Primary accent: #2563EB (blue)
  - Background:     #f8fafc
  - Card:           #ffffff
  - Text dark:      #111827
  - Text muted:     #4b5563 / #6b7280

All styles are inlined for maximum email-client compatibility.  No external
resources (fonts, images, scripts) are referenced.
"""

from html import escape as _esc


# ---------------------------------------------------------------------------
# Shared layout helpers
# ---------------------------------------------------------------------------

def _header():
    """Branded header block."""
    return (
        '<div style="text-align:center;margin-bottom:30px;">'
        '<h1 style="color:#2563EB;font-size:28px;margin:0;font-family:Arial,sans-serif;font-weight:700;letter-spacing:-0.5px;">Renovate</h1>'
        '<p style="color:#6b7280;margin:5px 0 0;font-size:14px;">Home renovation, fairly bid</p>'
        '</div>'
    )


def _footer():
    """Footer with unsubscribe hint."""
    return (
        '<div style="text-align:center;margin-top:30px;padding-top:20px;border-top:1px solid #e5e7eb;color:#9ca3af;font-size:12px;line-height:1.6;">'
        '<p style="margin:0 0 4px;">Renovate Platform</p>'
        '<p style="margin:0;">You receive this email because you have an account with us. '
        'Manage email preferences in your account settings.</p>'
        '</div>'
    )


def _wrap(body_html):
    """Wrap inner content in the common email shell (background, card, header, footer)."""
    return (
        '<!DOCTYPE html>'
        '<html lang="en"><head><meta charset="utf-8">'
        '<meta name="viewport" content="width=device-width,initial-scale=1.0">'
        '<title>Renovate</title></head>'
        '<body style="margin:0;padding:0;background-color:#f3f4f6;-webkit-text-size-adjust:100%;">'
        '<div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto;background:#f8fafc;padding:40px 20px;">'
        + _header()
        + '<div style="background:#ffffff;border-radius:12px;padding:30px;box-shadow:0 1px 3px rgba(0,0,0,0.1);">'
        + body_html
        + '</div>'
        + _footer()
        + '</div></body></html>'
    )


def _detail_row(label, value):
    """Single key-value row for detail tables."""
    return (
        '<tr>'
        '<td style="padding:8px 0;color:#6b7280;font-size:14px;">{label}</td>'
        '<td style="padding:8px 0;color:#111827;font-size:14px;font-weight:600;text-align:right;">{value}</td>'
        '</tr>'
    ).format(label=_esc(str(label)), value=_esc(str(value)))


def _detail_table(rows):
    """Tinted detail box.  *rows* is a list of (label, value) tuples."""
    inner = ''.join(_detail_row(label, value) for label, value in rows)
    return (
        '<div style="background:#EFF6FF;border:1px solid #BFDBFE;border-radius:8px;padding:20px;margin:20px 0;">'
        '<table style="width:100%;border-collapse:collapse;">'
        + inner
        + '</table></div>'
    )


def _greeting(title, name):
    name = _esc(str(name)) if name else 'there'
    return (
        '<h2 style="color:#111827;margin:0 0 12px;font-size:22px;">{title}</h2>'
        '<p style="color:#4b5563;line-height:1.6;">Hi {name},</p>'
    ).format(title=_esc(title), name=name)


def _paragraph(text):
    return '<p style="color:#4b5563;line-height:1.6;">{}</p>'.format(_esc(text))


def _money(amount):
    try:
        return '${:,.2f}'.format(float(amount))
    except (TypeError, ValueError):
        return '$0.00'


def format_category(category):
    """KITCHEN -> Kitchen, WITHIN_1MONTH -> Within 1month."""
    return str(category or 'Other').replace('_', ' ').capitalize()


# ---------------------------------------------------------------------------
# 1. Inspection scheduled (to participating contractors)
# ---------------------------------------------------------------------------

def inspection_scheduled_html(contractor_name, category, address, inspection_date,
                              bidding_end_date, notes=None):
    """Return HTML telling a contractor the site visit date is set."""
    body = _greeting('Site Inspection Scheduled', contractor_name)
    body += _paragraph(
        'The site inspection for a project you signed up for has been scheduled. '
        'Bidding opens on the inspection day.'
    )
    rows = [
        ('Project', format_category(category)),
        ('Address', address or 'TBD'),
        ('Inspection date', inspection_date or 'TBD'),
        ('Bidding closes', bidding_end_date or 'TBD'),
    ]
    if notes:
        rows.append(('Notes', notes))
    body += _detail_table(rows)
    return _wrap(body)


# ---------------------------------------------------------------------------
# 2. Bidding started (to participating contractors)
# ---------------------------------------------------------------------------

def bidding_started_html(contractor_name, category, address, bidding_end_date):
    """Return HTML announcing that a bidding window is open."""
    body = _greeting('Bidding Is Open', contractor_name)
    body += _paragraph('You can now submit your estimate for this project.')
    body += _detail_table([
        ('Project', format_category(category)),
        ('Address', address or 'TBD'),
        ('Bidding closes', bidding_end_date or 'TBD'),
    ])
    return _wrap(body)


# ---------------------------------------------------------------------------
# 3. Bidding closed (to the customer)
# ---------------------------------------------------------------------------

def bidding_closed_html(customer_name, category, bid_count):
    """Return HTML telling the customer bidding has ended and it is time to choose."""
    body = _greeting('Bidding Has Closed', customer_name)
    if bid_count:
        body += _paragraph(
            'You received {} bid(s) for your {} project. Compare them and select '
            'a contractor from My Projects.'.format(bid_count, format_category(category).lower())
        )
    else:
        body += _paragraph(
            'Unfortunately no contractor submitted a bid for your {} project.'.format(
                format_category(category).lower()
            )
        )
    body += _detail_table([
        ('Project', format_category(category)),
        ('Bids received', bid_count or 0),
    ])
    return _wrap(body)


# ---------------------------------------------------------------------------
# 4. New bid (to the customer)
# ---------------------------------------------------------------------------

def new_bid_html(customer_name, business_name, category, total_amount, timeline_weeks):
    """Return HTML for a new-bid notification."""
    body = _greeting('New Bid Received', customer_name)
    body += _paragraph('{} submitted a bid on your project.'.format(business_name or 'A contractor'))
    body += _detail_table([
        ('Project', format_category(category)),
        ('Contractor', business_name or 'N/A'),
        ('Amount', _money(total_amount)),
        ('Timeline', '{} week(s)'.format(timeline_weeks)),
    ])
    return _wrap(body)


# ---------------------------------------------------------------------------
# 5. Bid accepted (to the winning contractor)
# ---------------------------------------------------------------------------

def bid_accepted_html(contractor_name, category, address, total_amount, customer_name):
    """Return HTML congratulating the selected contractor."""
    body = _greeting('Your Bid Was Accepted!', contractor_name)
    body += _paragraph(
        '{} selected you for their project. Reach out to agree on a start date.'.format(
            customer_name or 'The customer'
        )
    )
    body += _detail_table([
        ('Project', format_category(category)),
        ('Address', address or 'TBD'),
        ('Accepted amount', _money(total_amount)),
    ])
    return _wrap(body)


# ---------------------------------------------------------------------------
# 6. Bid rejected (to every other bidder)
# ---------------------------------------------------------------------------

def bid_rejected_html(contractor_name, category):
    """Return HTML letting a contractor know another bid was chosen."""
    body = _greeting('Project Update', contractor_name)
    body += _paragraph(
        'The customer has selected another contractor for the {} project you bid on. '
        'Thank you for participating.'.format(format_category(category).lower())
    )
    return _wrap(body)


# ---------------------------------------------------------------------------
# 7. Bid withdrawn (to the customer)
# ---------------------------------------------------------------------------

def bid_withdrawn_html(customer_name, business_name, category):
    body = _greeting('Bid Withdrawn', customer_name)
    body += _paragraph(
        '{} withdrew their bid on your {} project.'.format(
            business_name or 'A contractor', format_category(category).lower()
        )
    )
    return _wrap(body)


# ---------------------------------------------------------------------------
# 8. Welcome
# ---------------------------------------------------------------------------

def welcome_html(name, role):
    """Return HTML for the registration welcome email."""
    body = _greeting('Welcome to Renovate!', name)
    if role == 'CONTRACTOR':
        body += _paragraph('Complete your business profile to start receiving inspection invites.')
    else:
        body += _paragraph('Submit your first renovation request and let contractors compete for it.')
    return _wrap(body)
