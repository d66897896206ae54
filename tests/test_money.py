import unittest
from datetime import date
from decimal import Decimal

from invoice_print.errors import InputError
from invoice_print.money import (
    build_document,
    normalize_item,
    normalize_items,
    parse_price,
    parse_quantity,
)


class PriceParsingTests(unittest.TestCase):
    def test_strips_currency_symbols_and_separators(self) -> None:
        self.assertEqual(parse_price("$10.00"), Decimal("10.00"))
        self.assertEqual(parse_price("€1,250.50"), Decimal("1250.50"))
        self.assertEqual(parse_price("USD -3.25"), Decimal("-3.25"))

    def test_accepts_numbers_directly(self) -> None:
        self.assertEqual(parse_price(5), Decimal("5"))
        self.assertEqual(parse_price(2.5), Decimal("2.5"))

    def test_reads_leading_number_like_parse_float(self) -> None:
        self.assertEqual(parse_price("1.2.3"), Decimal("1.2"))

    def test_malformed_values_default_to_zero(self) -> None:
        for value in ("abc", "", "-", "$", None, True, float("nan"), float("inf"), "NaN", [], {}):
            with self.subTest(value=value):
                self.assertEqual(parse_price(value), Decimal("0"))

    def test_zero_string_is_zero(self) -> None:
        self.assertEqual(parse_price("0.00"), Decimal("0"))


class QuantityParsingTests(unittest.TestCase):
    def test_parses_integer_prefix(self) -> None:
        self.assertEqual(parse_quantity("2"), 2)
        self.assertEqual(parse_quantity(" 3 pcs"), 3)
        self.assertEqual(parse_quantity("2.9"), 2)
        self.assertEqual(parse_quantity(4.7), 4)

    def test_malformed_values_default_to_zero(self) -> None:
        for value in ("abc", "", None, False, float("nan"), "x2"):
            with self.subTest(value=value):
                self.assertEqual(parse_quantity(value), 0)

    def test_negative_quantities_clamp_to_zero(self) -> None:
        self.assertEqual(parse_quantity("-5"), 0)
        self.assertEqual(parse_quantity(-1), 0)


class NormalizationTests(unittest.TestCase):
    def test_widget_and_gadget_scenario(self) -> None:
        items, total = normalize_items(
            [
                {"name": "Widget", "price": "$10.00", "quantity": "2"},
                {"name": "Gadget", "price": 5, "quantity": "3"},
            ]
        )

        self.assertEqual([item.subtotal for item in items], ["20.00", "15.00"])
        self.assertEqual(total, "35.00")

    def test_total_matches_sum_of_subtotals_for_mixed_inputs(self) -> None:
        items, total = normalize_items(
            [
                {"name": "A", "price": "$0.10", "quantity": "3"},
                {"name": "B", "price": 0.2, "quantity": 7},
                {"name": "C", "price": "19.999", "quantity": "1"},
                {"name": "D", "price": "bad", "quantity": "9"},
            ]
        )

        expected = sum(Decimal(item.subtotal) for item in items)
        self.assertEqual(total, f"{expected:.2f}")
        self.assertEqual([item.subtotal for item in items], ["0.30", "1.40", "20.00", "0.00"])

    def test_item_fields_are_canonical_strings(self) -> None:
        item = normalize_item({"name": "  Widget ", "price": "12", "quantity": "2"})

        self.assertEqual(item.name, "Widget")
        self.assertEqual(item.price, "12.00")
        self.assertEqual(item.quantity, 2)
        self.assertEqual(item.subtotal, "24.00")

    def test_missing_fields_normalize_to_zero(self) -> None:
        item = normalize_item({})

        self.assertEqual((item.name, item.price, item.quantity, item.subtotal), ("", "0.00", 0, "0.00"))

    def test_empty_items_total_zero(self) -> None:
        items, total = normalize_items([])

        self.assertEqual(items, [])
        self.assertEqual(total, "0.00")

    def test_missing_items_is_input_error(self) -> None:
        with self.assertRaises(InputError):
            normalize_items(None)

    def test_non_list_items_is_input_error(self) -> None:
        with self.assertRaises(InputError):
            normalize_items("bad")

    def test_non_object_item_is_input_error(self) -> None:
        with self.assertRaises(InputError):
            normalize_items([{"name": "ok"}, "bad"])


class LargeValueTests(unittest.TestCase):
    def test_large_float_price_keeps_every_digit(self) -> None:
        item = normalize_item({"name": "Big", "price": 1e30, "quantity": 1})

        self.assertEqual(item.price, "1" + "0" * 30 + ".00")
        self.assertEqual(item.subtotal, item.price)

    def test_long_price_string_multiplies_exactly(self) -> None:
        item = normalize_item({"name": "Big", "price": "$" + "9" * 30, "quantity": "2"})

        self.assertEqual(item.price, "9" * 30 + ".00")
        self.assertEqual(item.subtotal, "1" + "9" * 29 + "8.00")

    def test_huge_quantity_string(self) -> None:
        item = normalize_item({"name": "Many", "price": "1.00", "quantity": "9" * 29})

        self.assertEqual(item.quantity, int("9" * 29))
        self.assertEqual(item.subtotal, "9" * 29 + ".00")

    def test_total_of_large_subtotals_is_exact(self) -> None:
        _, total = normalize_items(
            [
                {"name": "Big", "price": "9" * 30, "quantity": 1},
                {"name": "Small", "price": "0.01", "quantity": 1},
            ]
        )

        self.assertEqual(total, "1" + "0" * 30 + ".00")

    def test_unconvertible_values_default_to_zero(self) -> None:
        self.assertEqual(parse_quantity(Decimal("NaN")), 0)
        self.assertEqual(parse_quantity(float("inf")), 0)
        self.assertEqual(parse_price(Decimal("-Infinity")), Decimal("0"))


class BuildDocumentTests(unittest.TestCase):
    def test_builds_document_with_today_date(self) -> None:
        document = build_document(
            {"invoiceId": "INV-1", "customerName": "Ada", "items": []},
            today=date(2026, 1, 15),
        )

        self.assertEqual(document.invoice_id, "INV-1")
        self.assertEqual(document.customer_name, "Ada")
        self.assertEqual(document.date, "Jan 15, 2026")
        self.assertEqual(document.items, ())
        self.assertEqual(document.total, "0.00")

    def test_uses_payload_date_when_given(self) -> None:
        document = build_document(
            {"invoiceId": 42, "customerName": "Ada", "date": "2025-03-14", "items": []},
        )

        self.assertEqual(document.invoice_id, "42")
        self.assertEqual(document.date, "Mar 14, 2025")

    def test_requires_invoice_id_and_customer(self) -> None:
        with self.assertRaises(InputError):
            build_document({"customerName": "Ada", "items": []})
        with self.assertRaises(InputError):
            build_document({"invoiceId": "INV-1", "customerName": "  ", "items": []})

    def test_document_is_immutable(self) -> None:
        document = build_document({"invoiceId": "INV-1", "customerName": "Ada", "items": []})

        with self.assertRaises(AttributeError):
            document.total = "1.00"  # type: ignore[misc]


if __name__ == "__main__":
    unittest.main()
