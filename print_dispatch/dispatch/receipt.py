"""
Receipt composition for ESC/POS-compatible receipt printers.

Turns an unordered list of receipt lines into a single command stream:
- Lines are grouped by category and groups are ordered with a
  CategoryOrderingTable (stable, so unknown categories keep input order)
- Kitchen tickets focus on preparation (quantities, modifiers, no totals)
- Customer receipts carry line prices, a subtotal and an optional payment block
- The stream starts with a printer initialize and ends with a configurable
  feed and cut

Commands are produced by python-escpos against a Dummy printer, which buffers
the stream instead of sending it anywhere. Money is tracked in integer minor
units and formatted only when emitted. Composition is pure: no I/O and no
dependency on the job store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from escpos.printer import Dummy

from .categories import CategoryOrderingTable

OTHER_ITEMS = "Other Items"


class ReceiptKind(str, Enum):
    KITCHEN = "kitchen"
    CUSTOMER = "customer"


class CutMode(str, Enum):
    PARTIAL = "partial"
    FULL = "full"
    NONE = "none"


# python-escpos cut modes; NONE leaves the paper uncut.
CUT_MODES: Dict[CutMode, Optional[str]] = {
    CutMode.PARTIAL: "PART",
    CutMode.FULL: "FULL",
    CutMode.NONE: None,
}


@dataclass(frozen=True)
class Modifier:
    name: str
    price_delta: int = 0


@dataclass
class ReceiptLine:
    """One item to print. Prices are minor currency units (cents/øre)."""

    name: str
    quantity: int = 1
    unit_price: int = 0
    modifiers: List[Union[str, Modifier]] = field(default_factory=list)
    category_id: Optional[str] = None
    category_name: Optional[str] = None

    def __post_init__(self) -> None:
        self.modifiers = [m if isinstance(m, Modifier) else Modifier(str(m)) for m in self.modifiers]

    def line_total(self) -> int:
        deltas = sum(m.price_delta for m in self.modifiers)  # type: ignore[union-attr]
        return self.quantity * (self.unit_price + deltas)


@dataclass
class PaymentSummary:
    method: str
    amount_tendered: int
    change_given: int = 0
    tip: int = 0
    transaction_id: Optional[str] = None


@dataclass
class ReceiptOptions:
    kind: ReceiptKind = ReceiptKind.CUSTOMER
    order_reference: Optional[str] = None
    customer_name: Optional[str] = None
    header_text: Optional[str] = None
    footer_text: Optional[str] = None
    show_prices: Optional[bool] = None
    payment: Optional[PaymentSummary] = None
    printed_at: Optional[datetime] = None
    cut: CutMode = CutMode.PARTIAL
    feed_lines: int = 3
    paper_width: int = 48
    codepage: str = "cp437"
    currency_symbol: str = "$"

    @property
    def is_kitchen(self) -> bool:
        return ReceiptKind(self.kind) is ReceiptKind.KITCHEN

    @property
    def prices_visible(self) -> bool:
        if self.show_prices is None:
            return not self.is_kitchen
        return bool(self.show_prices)


def format_amount(minor: int, symbol: str = "$") -> str:
    """Format integer minor units as a two-decimal amount, e.g. 1250 -> $12.50."""
    sign = "-" if minor < 0 else ""
    units, cents = divmod(abs(int(minor)), 100)
    return f"{sign}{symbol}{units}.{cents:02d}"


def format_line(left: str, right: str = "", width: int = 48) -> str:
    """Left text padded so `right` ends at the paper edge; left is truncated if needed."""
    if len(left) + len(right) >= width:
        room = width - len(right) - 1
        if not right or room <= 0:
            return (right or left)[:width]
        return f"{left[:room]} {right}"
    return left + " " * (width - len(left) - len(right)) + right


class _ReceiptPrinter(Dummy):
    """
    Dummy printer that writes text in one fixed code page.

    Styling, initialize and cut go through python-escpos; text bypasses its
    automatic code page switching so the stream stays in `codepage`.
    """

    def __init__(self, codepage: str) -> None:
        super().__init__()
        self.codepage = codepage

    def line(self, s: str = "") -> None:
        self._raw((s + "\n").encode(self.codepage, errors="replace"))

    def blank(self, count: int) -> None:
        if count > 0:
            self._raw(b"\n" * count)


def group_lines(
    lines: Iterable[ReceiptLine],
    table: CategoryOrderingTable,
) -> List[Tuple[str, List[ReceiptLine]]]:
    """
    Group lines by category and order the groups by sort key.

    Returns (heading, lines) pairs. Groups sharing a sort key (including all
    unknown categories) keep first-appearance order; items inside a group
    keep caller order.
    """
    groups: Dict[Any, List[ReceiptLine]] = {}
    for item in lines:
        key = item.category_id if item.category_id not in (None, "") else (item.category_name or None)
        groups.setdefault(key, []).append(item)

    def _key(entry: Tuple[Any, List[ReceiptLine]]) -> float:
        first = entry[1][0]
        return table.sort_key(first.category_id, first.category_name)

    ordered = sorted(groups.items(), key=_key)
    result: List[Tuple[str, List[ReceiptLine]]] = []
    for _, items in ordered:
        first = items[0]
        order = table.resolve(first.category_id, first.category_name)
        heading = order.heading or first.category_name or (str(first.category_id) if first.category_id else OTHER_ITEMS)
        result.append((heading.upper(), items))
    return result


def subtotal(lines: Iterable[ReceiptLine]) -> int:
    return sum(item.line_total() for item in lines)


def _title(options: ReceiptOptions) -> str:
    if options.header_text:
        return options.header_text
    return "*** KITCHEN ORDER ***" if options.is_kitchen else "*** RECEIPT ***"


def _emit_banner(p: _ReceiptPrinter, title: str) -> None:
    p.hw("INIT")
    p.set(align="center", double_width=True, double_height=True)
    p.line(title)
    p.set(align="left", normal_textsize=True)
    p.line()


def _emit_bold(p: _ReceiptPrinter, s: str) -> None:
    p.set(bold=True)
    p.line(s)
    p.set(bold=False)


def _emit_order_info(p: _ReceiptPrinter, options: ReceiptOptions) -> None:
    w = options.paper_width
    p.line("-" * w)
    if options.order_reference:
        p.line(format_line("Order:", options.order_reference, w))
    if options.customer_name:
        p.line(format_line("Customer:", options.customer_name, w))
    if options.printed_at is not None:
        p.line(format_line("Time:", options.printed_at.strftime("%H:%M:%S"), w))
    if options.is_kitchen:
        _emit_bold(p, format_line("Type:", "KITCHEN COPY", w))
    p.line("-" * w)
    p.line()


def _emit_item(p: _ReceiptPrinter, item: ReceiptLine, options: ReceiptOptions) -> None:
    w = options.paper_width
    money = options.currency_symbol
    label = f"{item.quantity}x {item.name}"
    if options.is_kitchen:
        _emit_bold(p, label)
        for mod in item.modifiers:
            p.line(f"   + {mod.name}")  # type: ignore[union-attr]
        if options.prices_visible:
            p.line(format_line("", format_amount(item.line_total(), money), w))
        return

    if options.prices_visible:
        p.line(format_line(label, format_amount(item.quantity * item.unit_price, money), w))
    else:
        p.line(label)
    for mod in item.modifiers:
        text = f"   + {mod.name}"  # type: ignore[union-attr]
        delta = mod.price_delta * item.quantity  # type: ignore[union-attr]
        if options.prices_visible and delta:
            p.line(format_line(text, format_amount(delta, money), w))
        else:
            p.line(text)


def _emit_totals(p: _ReceiptPrinter, lines: Sequence[ReceiptLine], options: ReceiptOptions) -> None:
    w = options.paper_width
    money = options.currency_symbol
    sub = subtotal(lines)
    p.line("-" * w)
    _emit_bold(p, format_line("SUBTOTAL:", format_amount(sub, money), w))

    pay = options.payment
    if pay is None:
        p.line(format_line("TOTAL:", format_amount(sub, money), w))
        p.line()
        return
    if pay.tip > 0:
        p.line(format_line("Tip:", format_amount(pay.tip, money), w))
    _emit_bold(p, format_line("TOTAL:", format_amount(sub + max(pay.tip, 0), money), w))
    p.line()
    p.line(format_line("Payment:", pay.method, w))
    p.line(format_line("Amount Paid:", format_amount(pay.amount_tendered, money), w))
    if pay.change_given > 0:
        p.line(format_line("Change:", format_amount(pay.change_given, money), w))
    if pay.transaction_id:
        p.line(format_line("Transaction:", pay.transaction_id, w))
    p.line()


def _emit_centered(p: _ReceiptPrinter, *texts: str) -> None:
    p.set(align="center")
    for s in texts:
        p.line(s)
    p.set(align="left")


def _emit_cut(p: _ReceiptPrinter, options: ReceiptOptions) -> None:
    p.blank(max(0, int(options.feed_lines)))
    mode = CUT_MODES[CutMode(options.cut)]
    if mode:
        p.cut(mode=mode)


def compose_receipt(
    lines: Iterable[ReceiptLine],
    options: Optional[ReceiptOptions] = None,
    table: Optional[CategoryOrderingTable] = None,
) -> bytes:
    """
    Compose a receipt command stream.

    An empty line list yields a minimal receipt: the header followed by the
    feed and cut. Unknown categories are printed last.
    """
    options = options or ReceiptOptions()
    table = table or CategoryOrderingTable.builtin()
    items = list(lines)

    p = _ReceiptPrinter(options.codepage)
    _emit_banner(p, _title(options))
    if not items:
        _emit_cut(p, options)
        return p.output

    _emit_order_info(p, options)
    for heading, group in group_lines(items, table):
        p.set(bold=True, underline=1)
        p.line(heading)
        p.set(bold=False, underline=0)
        p.line("." * options.paper_width)
        for item in group:
            _emit_item(p, item, options)
        p.line()

    if options.prices_visible and not options.is_kitchen:
        _emit_totals(p, items, options)
    footer = options.footer_text or (None if options.is_kitchen else "Thank you for your order!")
    if footer:
        _emit_centered(p, footer)
    _emit_cut(p, options)
    return p.output


def build_test_receipt(printed_at: Optional[datetime] = None, options: Optional[ReceiptOptions] = None) -> bytes:
    """Printer test page."""
    options = options or ReceiptOptions()
    w = options.paper_width
    p = _ReceiptPrinter(options.codepage)
    _emit_banner(p, "*** PRINTER TEST ***")
    p.line("-" * w)
    if printed_at is not None:
        p.line(format_line("Date:", printed_at.strftime("%Y-%m-%d"), w))
        p.line(format_line("Time:", printed_at.strftime("%H:%M:%S"), w))
        p.line("-" * w)
    p.line()
    _emit_centered(p, "Test successful!", "Printer is working correctly.")
    _emit_cut(p, options)
    return p.output


__all__ = [
    "CUT_MODES",
    "CutMode",
    "Modifier",
    "PaymentSummary",
    "ReceiptKind",
    "ReceiptLine",
    "ReceiptOptions",
    "build_test_receipt",
    "compose_receipt",
    "format_amount",
    "format_line",
    "group_lines",
    "subtotal",
]
