"""Invoice PDF generation for orders."""

from decimal import Decimal
from io import BytesIO
from typing import Dict, Any, List

from reportlab.lib.pagesizes import A4
from reportlab.lib import colors
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_CENTER

from laundry.models import Order, DiscountType
from laundry.utils.formatters import money_in, date_in, weight_kg
from laundry.utils.number_format import to_decimal, money


def _invoice_rows(order: Order, symbol: str) -> List[List[str]]:
    """Item table rows: one per line item, or a single weight line for kg orders."""
    rows = [['Item / Service', 'Qty', 'Unit Price', 'Total']]

    if order.is_item_priced:
        for line in order.line_items:
            rows.append([
                f"{line.item_name}: {line.notes}" if line.notes else line.item_name,
                str(line.quantity),
                money_in(line.price_per_item, symbol),
                money_in(line.total_price, symbol)
            ])
    else:
        service = order.service_type
        rate = service.price_per_kg if service else None
        label = f"{service.name} ({order.items})" if service else order.items
        rows.append([
            label,
            weight_kg(order.total_weight),
            f"{money_in(rate, symbol)}/kg" if rate is not None else '-',
            money_in(order.subtotal, symbol)
        ])
        for entry in order.items_detail or []:
            tags = f" [{', '.join(entry.get('tags') or [])}]" if entry.get('tags') else ''
            notes = f": {entry['notes']}" if entry.get('notes') else ''
            rows.append([f"  - {entry.get('name')}{tags}{notes}", '', '', ''])

    return rows


def _order_info_rows(order: Order) -> List[List[str]]:
    """Order and customer details. The quality score shows once an inspection set it."""
    score = ['Quality Score:', f"{order.quality_score}%"] if (order.quality_score or 0) > 0 else ['', '']
    return [
        ['Order Number:', order.order_number or '-', 'Customer:', order.customer_name],
        ['Date:', date_in(order.date_received), 'Phone:', order.customer_phone or '-'],
        ['Due Date:', date_in(order.due_date), 'Priority:', (order.priority or '').upper()],
        ['Status:', (order.status or '').upper(), *score],
    ]


def _discount_label(order: Order) -> str:
    if order.discount_type == DiscountType.PERCENTAGE.value:
        return f"Discount ({to_decimal(order.discount).normalize():f}%):"
    return 'Discount:'


def generate_invoice_pdf(order: Order, business_info: Dict[str, Any]) -> BytesIO:
    """
    Render an order invoice.

    business_info keys: name, address, phone, email, currency_symbol (all
    optional). The built-in PDF fonts have no rupee glyph, so the symbol
    defaults to 'Rs. '.
    """
    symbol = business_info.get('currency_symbol') or 'Rs. '
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=0.75*inch,
        leftMargin=0.75*inch,
        topMargin=0.75*inch,
        bottomMargin=0.75*inch
    )

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'InvoiceTitle',
        parent=styles['Heading1'],
        fontSize=24,
        textColor=colors.HexColor('#2C3E50'),
        spaceAfter=12,
        alignment=TA_CENTER,
        fontName='Helvetica-Bold'
    )

    header_style = ParagraphStyle(
        'InvoiceHeader',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.HexColor('#7F8C8D'),
        alignment=TA_CENTER,
        spaceAfter=6
    )

    # 1. Title and business header
    elements.append(Paragraph("INVOICE", title_style))

    if business_info.get('name'):
        elements.append(Paragraph(f"<b>{business_info['name']}</b>", header_style))
    if business_info.get('address'):
        elements.append(Paragraph(business_info['address'], header_style))

    contact_parts = []
    if business_info.get('phone'):
        contact_parts.append(f"Phone: {business_info['phone']}")
    if business_info.get('email'):
        contact_parts.append(f"Email: {business_info['email']}")
    if contact_parts:
        elements.append(Paragraph(" | ".join(contact_parts), header_style))

    elements.append(Spacer(1, 0.3*inch))

    # 2. Order and customer details
    info_table = Table(_order_info_rows(order), colWidths=[1.3*inch, 2*inch, 1*inch, 2.4*inch])
    info_table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTNAME', (2, 0), (2, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('TEXTCOLOR', (0, 0), (-1, -1), colors.HexColor('#34495E')),
    ]))
    elements.append(info_table)
    elements.append(Spacer(1, 0.3*inch))

    # 3. Items table
    items_table = Table(_invoice_rows(order, symbol), colWidths=[3.4*inch, 0.8*inch, 1.2*inch, 1.3*inch])
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#3498DB')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 12),
        ('ALIGN', (1, 1), (1, -1), 'CENTER'),
        ('ALIGN', (2, 1), (-1, -1), 'RIGHT'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#BDC3C7')),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#ECF0F1')]),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 0.2*inch))

    # 4. Pricing breakdown
    subtotal = money(order.subtotal or order.amount)
    discount_value = subtotal - money(order.amount)
    totals_data = [['Subtotal:', money_in(subtotal, symbol)]]
    if to_decimal(order.discount) > 0 and not order.amount_is_manual:
        totals_data.append([_discount_label(order), f"-{money_in(max(Decimal('0'), discount_value), symbol)}"])
    totals_data.append(['TOTAL:', money_in(order.amount, symbol)])

    totals_table = Table(totals_data, colWidths=[5.4*inch, 1.3*inch])
    totals_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('FONTSIZE', (0, 0), (-1, -2), 10),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, -1), (-1, -1), 14),
        ('TEXTCOLOR', (0, -1), (-1, -1), colors.HexColor('#27AE60')),
        ('LINEABOVE', (0, -1), (-1, -1), 1.5, colors.HexColor('#27AE60')),
    ]))
    elements.append(totals_table)
    elements.append(Spacer(1, 0.4*inch))

    footer_style = ParagraphStyle('Footer', parent=styles['Normal'], fontSize=9, textColor=colors.HexColor('#95A5A6'), alignment=TA_CENTER)
    elements.append(Paragraph("Thank you for your business!", footer_style))

    doc.build(elements)
    buffer.seek(0)
    return buffer
