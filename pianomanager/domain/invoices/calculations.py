"""Invoice arithmetic"""

from typing import Iterable, Union

from .schemas import InvoiceItem


def _cents(value: float) -> float:
    return round(value, 2)


def calculate_totals(items: Iterable[Union[InvoiceItem, dict]]) -> dict:
    """
    subtotal = sum(quantity * unitPrice)
    tax_amount = sum(quantity * unitPrice * taxRate / 100)
    total = subtotal + tax_amount

    Each figure is rounded to cents after summing the unrounded line amounts.
    """
    subtotal = 0.0
    tax_amount = 0.0
    for item in items:
        if isinstance(item, dict):
            item = InvoiceItem(**item)
        line = item.quantity * item.unitPrice
        subtotal += line
        tax_amount += line * item.taxRate / 100

    subtotal = _cents(subtotal)
    tax_amount = _cents(tax_amount)
    return {"subtotal": subtotal, "tax_amount": tax_amount, "total": _cents(subtotal + tax_amount)}


def format_invoice_number(prefix: str, year: int, sequence: int) -> str:
    return f"{prefix}-{year}-{sequence:04d}"


def parse_sequence(invoice_number: str) -> int:
    """Trailing sequence of ``PREFIX-YEAR-SEQ``; 0 for numbers in another format"""
    tail = invoice_number.rsplit("-", 1)[-1]
    return int(tail) if tail.isdigit() else 0
