"""
Invoice PDF rendering.

The page is described as a list of drawing operations in top-down page
coordinates (points, origin at the top-left corner of an A4 sheet), then
painted onto a reportlab canvas. Keeping the layout as data lets callers and
tests inspect the text of an invoice without parsing the PDF.
"""
import logging
import os
from collections import namedtuple
from decimal import Decimal
from io import BytesIO

from django.conf import settings
from django.utils import timezone
from django.utils.formats import date_format
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from core.money import format_currency

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 50
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN
HEADER_HEIGHT = 130
RIGHT_COLUMN_X = 400
AMOUNT_X = 480
TOTAL_BOX_X = 345
TOTAL_BOX_WIDTH = 200
FOOTER_MAX_Y = 700
FOOTER_HEIGHT = 112
LOGO_WIDTH = 70

BLUE = '#0066cc'
LIGHT_BLUE = '#d6e9ff'
PALE_BLUE = '#f0f7ff'
GREEN = '#009900'
INK = '#000000'
NAVY = '#000033'

LONG_DATE = 'F j, Y'
LONG_DATETIME = 'F j, Y, H:i'

TERMS = (
    '1. Payment is non-refundable once the course has started.',
    '2. This receipt is evidence of payment and must be presented for any payment-related queries.',
    '3. A late fee of 5% will be charged on payments received after the due date.',
    '4. Batch timings and schedules are subject to change with prior notification.',
    '5. Students are required to maintain 80% attendance to qualify for certification.',
    '6. All disputes are subject to jurisdiction of local courts only.',
)

Text = namedtuple('Text', ['x', 'y', 'text', 'font', 'size', 'color', 'align'])
Rect = namedtuple('Rect', ['x', 'y', 'width', 'height', 'fill', 'stroke'])
Line = namedtuple('Line', ['x1', 'y1', 'x2', 'y2', 'color', 'width'])
Image = namedtuple('Image', ['path', 'x', 'y', 'width'])

# What an invoice is about: a real payment, or the synthetic sum of several.
InvoiceLine = namedtuple(
    'InvoiceLine',
    ['id', 'amount', 'payment_date', 'payment_method', 'reference', 'notes', 'next_payment_due_date'],
)


def line_from_payment(payment):
    return InvoiceLine(
        id=payment.id,
        amount=payment.amount,
        payment_date=payment.payment_date,
        payment_method=payment.payment_method,
        reference=payment.reference,
        notes=payment.notes,
        next_payment_due_date=payment.next_payment_due_date,
    )


def consolidated_line(payments, generated_at):
    """
    One synthetic line for all of a student's payments: id 0, summed amount,
    dated on generation, annotated with the span of the underlying payment dates.
    Method comes from the earliest payment, next-due date from the latest.
    """
    ordered = sorted(payments, key=lambda p: (p.payment_date, p.id))
    if not ordered:
        raise ValueError('A consolidated invoice needs at least one payment')
    total = sum((p.amount for p in ordered), Decimal('0.00'))
    first, last = ordered[0], ordered[-1]
    next_due = [p.next_payment_due_date for p in ordered if p.next_payment_due_date]
    return InvoiceLine(
        id=0,
        amount=total,
        payment_date=timezone.localtime(generated_at).date(),
        payment_method=first.payment_method,
        reference='Consolidated Invoice',
        notes=(
            f'Includes {len(ordered)} payment(s) made between '
            f'{date_format(first.payment_date, LONG_DATE)} and {date_format(last.payment_date, LONG_DATE)}'
        ),
        next_payment_due_date=max(next_due) if next_due else None,
    )


def method_label(method):
    method = method or 'cash'
    return method[:1].upper() + method[1:].replace('_', ' ')


def resolve_logo_path(logo):
    """Absolute path to an existing logo file, or None. Relative paths are under INVOICE_LOGO_ROOT."""
    if not logo:
        return None
    candidates = [logo] if os.path.isabs(logo) else []
    root = getattr(settings, 'INVOICE_LOGO_ROOT', None) or str(settings.MEDIA_ROOT)
    candidates.append(os.path.join(root, logo.lstrip('/\\')))
    for candidate in candidates:
        if os.path.isfile(candidate):
            return candidate
    logger.info(f"[INVOICE] Logo {logo!r} not found; rendering without it")
    return None


def build_layout(line, student, organization, generated_at):
    """
    Drawing operations for one invoice page.
    student needs id/name/phone/email/batch_name; organization is the
    get_organization_details() record.
    """
    ops = [Rect(0, 0, PAGE_WIDTH, HEADER_HEIGHT, fill=PALE_BLUE, stroke=None)]

    logo_path = resolve_logo_path(organization.get('logo'))
    if logo_path:
        ops.append(Image(logo_path, MARGIN, 40, LOGO_WIDTH))

    ops += [
        Text(RIGHT_COLUMN_X, 40, 'INVOICE', 'Helvetica-Bold', 28, BLUE, 'left'),
        Text(RIGHT_COLUMN_X, 80, f'Invoice #: {line.id}', 'Helvetica', 11, INK, 'left'),
        Text(RIGHT_COLUMN_X, 95, f'Date: {date_format(line.payment_date, LONG_DATE)}', 'Helvetica', 11, INK, 'left'),
        Text(RIGHT_COLUMN_X, 110, 'Payment Status: Completed', 'Helvetica-Bold', 11, GREEN, 'left'),
    ]

    y = 150
    ops.append(Text(MARGIN, y, organization['name'], 'Helvetica-Bold', 16, INK, 'left'))
    y += 20
    ops.append(Text(MARGIN, y, organization['address'], 'Helvetica', 10, INK, 'left'))
    y += 15
    ops.append(Text(MARGIN, y, f"Phone: {organization['phone']}", 'Helvetica', 10, INK, 'left'))
    y += 15
    ops.append(Text(MARGIN, y, f"Email: {organization['email']}", 'Helvetica', 10, INK, 'left'))
    y += 15
    if organization.get('website'):
        ops.append(Text(MARGIN, y, f"Website: {organization['website']}", 'Helvetica', 10, INK, 'left'))
        y += 15
    if organization.get('gstin'):
        ops.append(Text(MARGIN, y, f"GSTIN: {organization['gstin']}", 'Helvetica', 10, BLUE, 'left'))
        y += 15
    ops.append(Line(MARGIN, y, PAGE_WIDTH - MARGIN, y, BLUE, 1))

    y += 20
    ops.append(Text(MARGIN, y, 'Bill To:', 'Helvetica-Bold', 14, BLUE, 'left'))
    y += 20
    ops.append(Text(MARGIN, y, student.name, 'Helvetica-Bold', 12, INK, 'left'))
    y += 15
    ops.append(Text(MARGIN, y, f'ID: {student.id}', 'Helvetica', 10, INK, 'left'))
    y += 15
    for label, value in (('Phone', student.phone), ('Email', student.email), ('Batch', student.batch_name)):
        if value:
            ops.append(Text(MARGIN, y, f'{label}: {value}', 'Helvetica', 10, INK, 'left'))
            y += 15

    y += 25
    ops.append(Text(MARGIN, y, 'Payment Details', 'Helvetica-Bold', 14, BLUE, 'left'))
    y += 30
    ops += [
        Rect(MARGIN, y, CONTENT_WIDTH, 30, fill=LIGHT_BLUE, stroke=BLUE),
        Text(MARGIN + 10, y + 10, 'Description', 'Helvetica-Bold', 10, NAVY, 'left'),
        Text(AMOUNT_X, y + 10, 'Amount', 'Helvetica-Bold', 10, NAVY, 'left'),
    ]
    y += 40
    amount_text = format_currency(line.amount)
    ops += [
        Text(MARGIN + 10, y, f'Fee Payment ({method_label(line.payment_method)})', 'Helvetica', 10, INK, 'left'),
        Text(AMOUNT_X, y, amount_text, 'Helvetica-Bold', 10, INK, 'left'),
    ]
    y += 25
    if line.notes:
        ops.append(Text(MARGIN, y, f'Notes: {line.notes}', 'Helvetica', 10, INK, 'left'))
        y += 25

    y += 30
    ops += [
        Rect(TOTAL_BOX_X, y, TOTAL_BOX_WIDTH, 35, fill=LIGHT_BLUE, stroke=None),
        Text(TOTAL_BOX_X + 10, y + 12, 'Total Amount:', 'Helvetica-Bold', 12, NAVY, 'left'),
        Text(AMOUNT_X, y + 12, amount_text, 'Helvetica-Bold', 12, NAVY, 'left'),
    ]

    if line.next_payment_due_date:
        y += 60
        ops.append(Text(
            MARGIN, y, f'Next Payment Due: {date_format(line.next_payment_due_date, LONG_DATE)}',
            'Helvetica', 10, BLUE, 'left',
        ))

    y += 50
    ops.append(Text(MARGIN, y, 'Terms & Conditions:', 'Helvetica-Bold', 11, BLUE, 'left'))
    y += 20
    for term in TERMS:
        ops.append(Text(MARGIN, y, term, 'Helvetica', 9, INK, 'left'))
        y += 15

    footer_y = min(y + 30, FOOTER_MAX_Y)
    center = PAGE_WIDTH / 2
    generated = date_format(timezone.localtime(generated_at), LONG_DATETIME)
    ops += [
        Rect(0, footer_y, PAGE_WIDTH, FOOTER_HEIGHT, fill=PALE_BLUE, stroke=None),
        Text(center, footer_y + 20, 'Thank you for your business!', 'Helvetica-Bold', 10, INK, 'center'),
        Text(center, footer_y + 40, f'Generated on {generated}', 'Helvetica', 8, INK, 'center'),
        Text(center, footer_y + 55, f"{organization['name']} - {organization['phone']}", 'Helvetica', 8, INK, 'center'),
    ]
    return ops


def layout_text(ops):
    """Text of a layout in drawing order."""
    return [op.text for op in ops if isinstance(op, Text)]


def paint(ops, title='Invoice', author=''):
    """Draw operations onto a single A4 page and return the PDF bytes."""
    buffer = BytesIO()
    # invariant=1 pins creation date and document id so equal layouts give equal bytes
    pdf = canvas.Canvas(buffer, pagesize=A4, invariant=1)
    pdf.setTitle(title)
    pdf.setAuthor(author)

    for op in ops:
        if isinstance(op, Rect):
            if op.fill:
                pdf.setFillColor(colors.HexColor(op.fill))
            if op.stroke:
                pdf.setStrokeColor(colors.HexColor(op.stroke))
            pdf.rect(op.x, PAGE_HEIGHT - op.y - op.height, op.width, op.height,
                     fill=1 if op.fill else 0, stroke=1 if op.stroke else 0)
        elif isinstance(op, Line):
            pdf.setStrokeColor(colors.HexColor(op.color))
            pdf.setLineWidth(op.width)
            pdf.line(op.x1, PAGE_HEIGHT - op.y1, op.x2, PAGE_HEIGHT - op.y2)
        elif isinstance(op, Image):
            try:
                image = ImageReader(op.path)
                img_w, img_h = image.getSize()
                height = op.width * img_h / img_w if img_w else op.width
                pdf.drawImage(image, op.x, PAGE_HEIGHT - op.y - height, width=op.width, height=height,
                              preserveAspectRatio=True, mask='auto')
            except Exception as exc:
                # Unreadable logo: keep going without it
                logger.warning(f"[INVOICE] Could not draw logo {op.path!r}: {exc}")
        elif isinstance(op, Text):
            pdf.setFillColor(colors.HexColor(op.color))
            pdf.setFont(op.font, op.size)
            baseline = PAGE_HEIGHT - op.y - op.size
            if op.align == 'center':
                pdf.drawCentredString(op.x, baseline, op.text)
            else:
                pdf.drawString(op.x, baseline, op.text)

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def render_invoice(payment, student, organization, generated_at=None):
    """PDF bytes for a single payment."""
    generated_at = generated_at or timezone.now()
    ops = build_layout(line_from_payment(payment), student, organization, generated_at)
    pdf = paint(ops, title=f'Invoice #{payment.id}', author=organization['name'])
    logger.info(f"[INVOICE] Rendered invoice payment_id={payment.id} student_id={student.id} bytes={len(pdf)}")
    return pdf


def render_consolidated_invoice(payments, student, organization, generated_at=None):
    """PDF bytes summarising every payment of a student as one total. Raises ValueError when empty."""
    generated_at = generated_at or timezone.now()
    line = consolidated_line(list(payments), generated_at)
    ops = build_layout(line, student, organization, generated_at)
    pdf = paint(ops, title=f'Consolidated Invoice - {student.name}', author=organization['name'])
    logger.info(
        f"[INVOICE] Rendered consolidated invoice student_id={student.id} total={line.amount} bytes={len(pdf)}"
    )
    return pdf
