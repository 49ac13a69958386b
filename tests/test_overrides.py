from decimal import Decimal

import pytest

from debtplanner.overrides import OverrideStore


def test_active_values_are_parsed():
    store = OverrideStore()
    store.set_total(1, " 2500 ")
    store.set_debt_payment(1, 7, "300.50")

    active = store.active_overrides_for(1)
    assert active.total == Decimal("2500")
    assert active.payment_for(7) == Decimal("300.50")
    assert active.payment_for("7") == Decimal("300.50")
    assert store.touched_months() == [1]


@pytest.mark.parametrize("raw", ["", None, "abc", "-10", float("nan"), "1e400", "1e1000000"])
def test_inactive_values_are_absent_not_zero(raw):
    store = OverrideStore()
    store.set_total(2, raw)
    store.set_debt_payment(2, 1, raw)

    active = store.active_overrides_for(2)
    assert active.total is None
    assert active.payment_for(1) is None
    assert store.touched_months() == []
    assert store.is_empty()


def test_zero_is_an_active_value():
    store = OverrideStore()
    store.set_debt_payment(3, 1, "0")
    assert store.active_overrides_for(3).payment_for(1) == Decimal("0")
    assert store.touched_months() == [3]


def test_blanking_a_slot_removes_it():
    store = OverrideStore()
    store.set_total(4, "1000")
    store.set_debt_payment(4, 1, "200")

    store.set_total(4, "")
    assert store.active_overrides_for(4).total is None
    assert store.touched_months() == [4]

    store.set_debt_payment(4, 1, "")
    assert store.touched_months() == []


def test_clear_slot_and_month():
    store = OverrideStore()
    store.set_total(5, "1000")
    store.set_debt_payment(5, 1, "200")
    store.set_debt_payment(5, 2, "300")

    store.clear(5, "total")
    store.clear(5, 1)
    active = store.active_overrides_for(5)
    assert active.total is None
    assert active.debts == {"2": Decimal("300")}

    store.clear(5)
    assert store.is_empty()
    store.clear(9)


def test_touched_months_are_sorted():
    store = OverrideStore()
    store.set_total(12, "1")
    store.set_debt_payment(3, 1, "1")
    store.set_total(7, "")
    assert store.touched_months() == [3, 12]


def test_returned_overrides_are_copies():
    store = OverrideStore()
    store.set_debt_payment(1, 1, "100")
    store.active_overrides_for(1).debts["1"] = Decimal("999")
    assert store.active_overrides_for(1).payment_for(1) == Decimal("100")


@pytest.mark.parametrize("month", [0, -1, "x", 1.5, None])
def test_invalid_months_are_rejected(month):
    with pytest.raises(ValueError):
        OverrideStore().set_total(month, "100")


def test_wire_format():
    store = OverrideStore.from_dict(
        {
            "1": {"total": "5000"},
            "2": {"debts": {"3": "250", "4": ""}},
            "3": {"total": "", "debts": {}},
        }
    )

    assert store.touched_months() == [1, 2]
    assert store.to_dict() == {"1": {"total": "5000"}, "2": {"debts": {"3": "250"}}}
    assert OverrideStore.from_dict(None).is_empty()


def test_wire_format_rejects_non_objects():
    with pytest.raises(ValueError):
        OverrideStore.from_dict(["1"])
    with pytest.raises(ValueError):
        OverrideStore.from_dict({"1": 5})


def test_reset_drops_everything():
    store = OverrideStore()
    store.set_total(1, "10")
    store.set_debt_payment(2, 1, "20")
    store.reset()
    assert store.is_empty()
    assert store.to_dict() == {}
