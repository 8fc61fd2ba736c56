from datetime import datetime, timezone

from escpos.printer import Dummy

from print_dispatch.dispatch.categories import DEFAULT_SORT_KEY, CategoryOrderingTable
from print_dispatch.dispatch.receipt import (
    CutMode,
    Modifier,
    PaymentSummary,
    ReceiptKind,
    ReceiptLine,
    ReceiptOptions,
    build_test_receipt,
    compose_receipt,
    format_amount,
    format_line,
    group_lines,
    subtotal,
)


def _escpos(build) -> bytes:
    p = Dummy()
    build(p)
    return p.output


PART_CUT = _escpos(lambda p: p.cut(mode="PART"))
FULL_CUT = _escpos(lambda p: p.cut(mode="FULL"))


def _kitchen(**kw) -> ReceiptOptions:
    return ReceiptOptions(kind=ReceiptKind.KITCHEN, **kw)


def test_kitchen_ticket_orders_starter_before_beverage():
    table = CategoryOrderingTable({"Starter": 1, "Beverage": 4})
    lines = [
        ReceiptLine(name="Coffee", quantity=2, unit_price=3500, category_name="Beverage"),
        ReceiptLine(name="Salad", quantity=1, unit_price=8900, category_name="Starter"),
    ]
    out = compose_receipt(lines, _kitchen(), table)

    assert out.startswith(_escpos(lambda p: p.hw("INIT")))
    assert out.index(b"STARTER") < out.index(b"BEVERAGE")
    assert out.index(b"1x Salad") < out.index(b"2x Coffee")
    assert b"KITCHEN ORDER" in out
    # Kitchen tickets carry no money.
    assert b"$" not in out
    assert b"SUBTOTAL" not in out
    assert out.endswith(PART_CUT)


def test_groups_follow_sort_key_not_input_order():
    table = CategoryOrderingTable({"dessert": 3, "main": 2, "starter": 1})
    lines = [
        ReceiptLine(name="Cake", category_id="dessert"),
        ReceiptLine(name="Steak", category_id="main"),
        ReceiptLine(name="Soup", category_id="starter"),
    ]
    out = compose_receipt(lines, _kitchen(), table)
    assert out.index(b"Soup") < out.index(b"Steak") < out.index(b"Cake")


def test_every_line_lands_under_its_heading():
    table = CategoryOrderingTable({"drinks": 4, "mains": 2})
    lines = [
        ReceiptLine(name="Cola", category_name="Drinks"),
        ReceiptLine(name="Burger", category_name="Mains"),
        ReceiptLine(name="Water", category_name="Drinks"),
    ]
    groups = group_lines(lines, table)
    assert [h for h, _ in groups] == ["MAINS", "DRINKS"]
    assert [i.name for i in groups[1][1]] == ["Cola", "Water"]


def test_unknown_categories_sort_last_in_first_seen_order():
    table = CategoryOrderingTable({"starters": 1})
    lines = [
        ReceiptLine(name="Mystery A", category_name="Specials"),
        ReceiptLine(name="Bread", category_name="Starters"),
        ReceiptLine(name="Mystery B", category_name="Kids"),
        ReceiptLine(name="Loose item"),
    ]
    headings = [h for h, _ in group_lines(lines, table)]
    assert headings == ["STARTERS", "SPECIALS", "KIDS", "OTHER ITEMS"]
    assert table.sort_key(category_name="Specials") == DEFAULT_SORT_KEY


def test_category_id_wins_over_name():
    table = CategoryOrderingTable({"7": 5, "starters": 1})
    assert table.sort_key(7, "Starters") == 5
    assert table.sort_key(None, "  STARTERS ") == 1


def test_configured_heading_overrides_category_name():
    table = CategoryOrderingTable({"12": {"sort_key": 1, "heading": "Forretter"}})
    out = compose_receipt([ReceiptLine(name="Sild", category_id="12", category_name="cat-12")], _kitchen(), table)
    assert b"FORRETTER" in out
    assert b"CAT-12" not in out


def test_builtin_table_knows_danish_and_english_names():
    table = CategoryOrderingTable.builtin()
    assert table.sort_key(category_name="Forretter") < table.sort_key(category_name="Hovedretter")
    assert table.sort_key(category_name="Desserts") < table.sort_key(category_name="Drinks")
    merged = CategoryOrderingTable.from_config({"drinks": 0.5})
    assert merged.sort_key(category_name="drinks") == 0.5
    assert "forretter" in merged


def test_customer_receipt_with_payment():
    lines = [
        ReceiptLine(name="Coffee", quantity=2, unit_price=350, category_name="Beverage"),
        ReceiptLine(name="Salad", quantity=1, unit_price=890, category_name="Starter"),
    ]
    pay = PaymentSummary(method="CASH", amount_tendered=2000, change_given=410)
    opts = ReceiptOptions(kind=ReceiptKind.CUSTOMER, payment=pay, order_reference="A-17")
    out = compose_receipt(lines, opts)

    assert subtotal(lines) == 1590
    assert format_line("SUBTOTAL:", "$15.90").encode() in out
    assert format_line("Change:", "$4.10").encode() in out
    assert format_line("Amount Paid:", "$20.00").encode() in out
    assert format_line("Order:", "A-17").encode() in out
    assert out.index(b"SUBTOTAL") < out.index(b"Change:")
    assert b"Thank you for your order!" in out


def test_no_change_line_when_exact_payment():
    lines = [ReceiptLine(name="Tea", unit_price=300)]
    opts = ReceiptOptions(payment=PaymentSummary(method="CARD", amount_tendered=300))
    out = compose_receipt(lines, opts)
    assert b"Change:" not in out
    assert b"Payment:" in out


def test_tip_is_added_to_total():
    lines = [ReceiptLine(name="Lunch", unit_price=1000)]
    opts = ReceiptOptions(payment=PaymentSummary(method="CARD", amount_tendered=1200, tip=200))
    out = compose_receipt(lines, opts)
    assert format_line("Tip:", "$2.00").encode() in out
    assert format_line("TOTAL:", "$12.00").encode() in out


def test_modifier_deltas_count_per_item():
    line = ReceiptLine(name="Latte", quantity=2, unit_price=400, modifiers=["oat milk", Modifier("extra shot", 50)])
    assert line.line_total() == 900
    out = compose_receipt([line], ReceiptOptions())
    assert b"   + oat milk" in out
    assert format_line("   + extra shot", "$1.00").encode() in out


def test_empty_receipt_is_header_and_cut():
    out = compose_receipt([], _kitchen())
    assert out.startswith(_escpos(lambda p: p.hw("INIT")))
    assert b"KITCHEN ORDER" in out
    assert b"Order:" not in out
    assert out.endswith(b"\n\n\n" + PART_CUT)


def test_header_text_override_and_cut_variants():
    out = compose_receipt([ReceiptLine(name="Soup")], _kitchen(header_text="Bar ticket", cut=CutMode.FULL, feed_lines=0))
    assert b"Bar ticket" in out
    assert b"BAR TICKET" not in out
    assert b"KITCHEN ORDER" not in out
    assert out.endswith(FULL_CUT)

    uncut = compose_receipt([ReceiptLine(name="Soup")], _kitchen(cut=CutMode.NONE))
    assert not uncut.endswith(PART_CUT)
    assert uncut.endswith(b"\n\n\n")


def test_show_prices_override_on_kitchen_ticket():
    out = compose_receipt([ReceiptLine(name="Soup", unit_price=650)], _kitchen(show_prices=True))
    assert b"$6.50" in out
    assert b"SUBTOTAL" not in out


def test_order_info_block_on_kitchen_ticket():
    when = datetime(2024, 5, 1, 18, 30, 5, tzinfo=timezone.utc)
    out = compose_receipt([ReceiptLine(name="Soup")], _kitchen(customer_name="Jensen", printed_at=when))
    assert format_line("Customer:", "Jensen").encode() in out
    assert format_line("Time:", "18:30:05").encode() in out
    assert format_line("Type:", "KITCHEN COPY").encode() in out


def test_format_helpers():
    assert format_amount(1250) == "$12.50"
    assert format_amount(-5, "kr ") == "-kr 0.05"
    assert format_line("A", "B", 5) == "A   B"
    long = format_line("x" * 60, "$1.00", 20)
    assert len(long) == 20 and long.endswith(" $1.00")


def test_build_test_receipt():
    when = datetime(2024, 1, 2, 3, 4, 5)
    out = build_test_receipt(when)
    assert out.startswith(_escpos(lambda p: p.hw("INIT")))
    assert b"PRINTER TEST" in out
    assert b"2024-01-02" in out
    assert out.endswith(PART_CUT)


def test_styles_come_from_escpos():
    out = compose_receipt([ReceiptLine(name="Soup", category_name="Starters")], _kitchen())
    heading_on = _escpos(lambda p: p.set(bold=True, underline=1))
    heading_off = _escpos(lambda p: p.set(bold=False, underline=0))
    assert heading_on + b"STARTERS\n" + heading_off in out
    assert _escpos(lambda p: p.set(align="center", double_width=True, double_height=True)) in out


def test_text_is_written_in_configured_codepage():
    out = compose_receipt([ReceiptLine(name="Rødgrød")], ReceiptOptions(codepage="cp865"))
    assert "1x Rødgrød".encode("cp865") in out
