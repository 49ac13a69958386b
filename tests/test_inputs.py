from decimal import Decimal

import pytest

from debtplanner.amounts import parse_amount
from debtplanner.errors import SimulationError
from debtplanner.minimums import suggested_minimum
from debtplanner.normalizer import normalize_debts


@pytest.mark.parametrize(
    "raw, expected",
    [
        (250, Decimal("250")),
        ("  250.5 ", Decimal("250.5")),
        ("12abc", Decimal("12")),
        (".5", Decimal("0.5")),
        ("-40", Decimal("-40")),
        ("1e3", Decimal("1E+3")),
        ("", None),
        ("   ", None),
        (None, None),
        ("abc", None),
        ("nan", None),
        (float("nan"), None),
        (float("inf"), None),
        (True, None),
        ("1e400", None),
        ("1e1000000", None),
        (10**400, None),
    ],
)
def test_parse_amount(raw, expected):
    assert parse_amount(raw) == expected


def test_suggested_minimum_uses_percent_above_floor():
    assert suggested_minimum(30000, 5) == Decimal("1500")
    assert suggested_minimum(20000, 5) == Decimal("1000")


def test_suggested_minimum_floor_and_small_balances():
    assert suggested_minimum(10000, 5) == Decimal("500")
    assert suggested_minimum(400, 5) == Decimal("400")
    assert suggested_minimum(0, 5) == Decimal("0")
    assert suggested_minimum("", 5) == Decimal("0")


def test_suggested_minimum_with_blank_percent_falls_to_floor():
    assert suggested_minimum(50000, "") == Decimal("500")


def test_normalize_drops_debts_without_balance():
    debts = normalize_debts(
        [
            {"id": 1, "name": "Blank", "balance": "", "rate": 10},
            {"id": 2, "name": "Zero", "balance": 0, "rate": 10},
            {"id": 3, "name": "Negative", "balance": "-50", "rate": 10},
            {"id": 4, "name": "Card", "balance": "1200", "rate": "19.9"},
        ],
        5,
    )

    assert [debt.id for debt in debts] == [4]
    card = debts[0]
    assert card.balance == Decimal("1200")
    assert card.rate == Decimal("19.9")
    assert card.min_payment == Decimal("500")
    assert card.position == 4


def test_normalize_resolves_minimum_payment():
    debts = normalize_debts(
        [
            {"id": "a", "name": "Explicit", "balance": 20000, "rate": 5, "minPay": "750"},
            {"id": "b", "name": "Blank", "balance": 20000, "rate": 5, "minPay": ""},
            {"id": "c", "name": "Zero", "balance": 20000, "rate": 5, "minPay": 0},
            {"id": "d", "name": "Junk", "balance": 20000, "rate": "x", "minPay": "?"},
            {"id": "e", "name": "Negative", "balance": 20000, "rate": 5, "minPay": "-100"},
        ],
        5,
    )

    assert [debt.min_payment for debt in debts] == [
        Decimal("750"),
        Decimal("1000"),
        Decimal("1000"),
        Decimal("1000"),
        Decimal("1000"),
    ]
    assert debts[3].rate == Decimal("0")


def test_normalize_assigns_fresh_ids_when_missing():
    debts = normalize_debts([{"name": "First", "balance": 100}, {"id": "", "balance": 200}])
    assert [debt.id for debt in debts] == [1, 2]
    assert debts[1].name == ""


def test_normalize_missing_id_does_not_take_an_existing_one():
    debts = normalize_debts(
        [
            {"name": "NoId", "balance": 1000, "rate": 10},
            {"id": 1, "name": "HasId", "balance": 2000, "rate": 20},
            {"id": "4", "name": "Text", "balance": 3000, "rate": 5},
            {"name": "Another", "balance": 500, "rate": 1},
        ]
    )
    assert [debt.id for debt in debts] == [5, 1, "4", 6]


def test_normalize_rejects_duplicate_ids():
    with pytest.raises(SimulationError):
        normalize_debts(
            [
                {"id": 1, "name": "First", "balance": 1000, "rate": 10},
                {"id": 1, "name": "Second", "balance": 2000, "rate": 20},
            ]
        )
    with pytest.raises(SimulationError):
        normalize_debts(
            [
                {"id": 3, "name": "Number", "balance": 1000, "rate": 10},
                {"id": "3", "name": "Text", "balance": 2000, "rate": 20},
            ]
        )
