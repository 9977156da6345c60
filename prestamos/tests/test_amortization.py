# prestamos/tests/test_amortization.py
from datetime import date, datetime
from decimal import Decimal

import pytest

from prestamos.services.amortization import (
    AmortizationError,
    InputValidationError,
    InvalidScheduleError,
    generate_schedule,
    solve_implied_rate,
)
from prestamos.utils.money import CENT
from prestamos.utils.quincenas import first_quincena, is_quincena, last_day_of_month, next_quincena


# ---------- calendario quincenal ----------
@pytest.mark.parametrize("given, expected", [
    (date(2024, 1, 10), date(2024, 1, 15)),
    (date(2024, 1, 1), date(2024, 1, 15)),
    (date(2024, 1, 15), date(2024, 1, 31)),
    (date(2024, 1, 20), date(2024, 2, 15)),
    (date(2024, 1, 31), date(2024, 2, 15)),
    (date(2024, 2, 15), date(2024, 2, 29)),   # bisiesto
    (date(2023, 2, 15), date(2023, 2, 28)),
    (date(2024, 4, 15), date(2024, 4, 30)),
    (date(2024, 12, 15), date(2024, 12, 31)),
    (date(2024, 12, 20), date(2025, 1, 15)),  # cambio de año
    (date(2024, 12, 31), date(2025, 1, 15)),
])
def test_next_quincena(given, expected):
    assert next_quincena(given) == expected


def test_next_quincena_ignores_time_of_day():
    assert next_quincena(datetime(2024, 3, 15, 23, 59)) == date(2024, 3, 31)


def test_first_quincena_is_inclusive_on_the_15th():
    assert first_quincena(date(2024, 3, 15)) == date(2024, 3, 15)
    assert first_quincena(date(2024, 3, 2)) == date(2024, 3, 15)
    assert first_quincena(date(2024, 3, 16)) == date(2024, 3, 31)
    assert first_quincena(date(2024, 2, 29)) == date(2024, 2, 29)


def test_is_quincena_and_last_day():
    assert is_quincena(date(2024, 6, 15))
    assert is_quincena(date(2024, 6, 30))
    assert not is_quincena(date(2024, 6, 29))
    assert last_day_of_month(date(2100, 2, 3)) == date(2100, 2, 28)


# ---------- solver ----------
def _pv(c, n, r):
    return sum(c / (1 + r) ** i for i in range(1, n + 1))


def test_solver_finds_rate_that_discounts_to_principal():
    rate = solve_implied_rate(Decimal("1000.00"), Decimal("93.33"), 12)
    assert 0 < rate < 1
    assert abs(_pv(93.33, 12, rate) - 1000.0) < 1e-6


def test_solver_zero_interest_converges_to_zero():
    rate = solve_implied_rate(1000, 100, 10)
    assert rate < 1e-9


def test_solver_is_deterministic():
    a = solve_implied_rate("1500.00", "140.50", 12)
    b = solve_implied_rate("1500.00", "140.50", 12)
    assert a == b


def test_solver_rejects_installment_that_cannot_amortize():
    with pytest.raises(InvalidScheduleError):
        solve_implied_rate(1000, 50, 12)


def test_solver_rejects_bad_periods():
    with pytest.raises(InputValidationError):
        solve_implied_rate(1000, 100, 0)
    with pytest.raises(InputValidationError):
        solve_implied_rate(1000, 100, True)


# ---------- generador ----------
def _assert_row_invariants(plan, principal, target):
    rows = list(plan)
    assert rows[0].opening_balance == principal
    assert rows[-1].closing_balance == Decimal("0.00")
    for prev, row in zip(rows, rows[1:]):
        assert row.opening_balance == prev.closing_balance
        assert row.due_date > prev.due_date
        assert row.period_index == prev.period_index + 1
    for row in rows:
        assert row.interest_portion >= 0
        assert row.capital_portion >= 0
        assert row.closing_balance >= 0
        assert row.closing_balance == row.opening_balance - row.capital_portion
        assert abs(row.interest_portion + row.capital_portion - row.installment_amount) <= Decimal("0.01")
    assert plan.total_capital == principal
    # el interés total se aparta a lo sumo 1 centavo por quincena del deseado
    assert abs(plan.total_interest - target) <= CENT * len(plan)


def test_reference_schedule():
    plan = generate_schedule(Decimal("1000.00"), Decimal("120.00"), 12, date(2024, 1, 10))

    assert len(plan) == 12
    assert plan.installment_amount == Decimal("93.33")
    assert plan[0].due_date == date(2024, 1, 15)
    assert plan[0].opening_balance == Decimal("1000.00")
    assert plan[3].due_date == date(2024, 2, 29)
    assert plan[11].due_date == date(2024, 6, 30)
    assert plan[11].closing_balance == Decimal("0.00")
    assert plan[11].capital_portion == plan[11].opening_balance
    assert abs(plan.total_capital - Decimal("1000.00")) <= Decimal("0.12")
    assert abs(plan.total_interest - Decimal("120.00")) <= Decimal("0.12")
    # interés decreciente, capital creciente (anualidad)
    assert plan[0].interest_portion > plan[10].interest_portion
    assert plan[0].capital_portion < plan[10].capital_portion
    _assert_row_invariants(plan, Decimal("1000.00"), Decimal("120.00"))


def test_single_period_schedule():
    plan = generate_schedule(100, 10, 1, date(2024, 5, 2))
    assert len(plan) == 1
    row = plan[0]
    assert row.due_date == date(2024, 5, 15)
    assert row.installment_amount == Decimal("110.00")
    assert row.capital_portion == Decimal("100.00")
    assert row.interest_portion == Decimal("10.00")
    assert row.closing_balance == Decimal("0.00")


def test_first_due_on_15th_is_kept_then_month_end():
    plan = generate_schedule("500.00", "50.00", 4, date(2024, 3, 15))
    assert [r.due_date for r in plan] == [
        date(2024, 3, 15), date(2024, 3, 31), date(2024, 4, 15), date(2024, 4, 30),
    ]


def test_first_due_after_15th_goes_to_month_end():
    plan = generate_schedule("500.00", "50.00", 2, date(2024, 11, 20))
    assert [r.due_date for r in plan] == [date(2024, 11, 30), date(2024, 12, 15)]


def test_zero_interest_last_row_absorbs_rounding():
    plan = generate_schedule("100.00", "0", 3, date(2024, 1, 1))
    assert plan.installment_amount == Decimal("33.33")
    assert [r.capital_portion for r in plan] == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
    last = plan[2]
    assert last.interest_portion == Decimal("0.00")
    assert last.installment_amount == Decimal("33.34")
    assert plan.total_interest == Decimal("0.00")
    _assert_row_invariants(plan, Decimal("100.00"), Decimal("0.00"))


@pytest.mark.parametrize("principal, interest, n", [
    ("2500.00", "300.00", 24),
    ("750.55", "80.10", 6),
    ("10000.00", "0.00", 48),
    ("1.00", "0.05", 2),
    ("100.00", "150.00", 1),
    ("100.00", "1000.00", 2),
])
def test_row_invariants_hold(principal, interest, n):
    plan = generate_schedule(principal, interest, n, date(2025, 7, 7))
    assert len(plan) == n
    _assert_row_invariants(plan, Decimal(principal), Decimal(interest))


def test_generation_is_deterministic():
    a = generate_schedule("1234.56", "150.00", 18, date(2024, 8, 1))
    b = generate_schedule("1234.56", "150.00", 18, date(2024, 8, 1))
    assert a.rows == b.rows
    assert a.implied_rate == b.implied_rate


@pytest.mark.parametrize("principal, interest, n", [
    (0, 10, 12),
    (-100, 10, 12),
    (100, -1, 12),
    (100, 10, 0),
    (100, 10, 2.5),
    (100, 10, True),
    ("abc", 10, 12),
    ("Infinity", 10, 12),
])
def test_invalid_inputs_fail_before_iterating(principal, interest, n):
    with pytest.raises(InputValidationError):
        generate_schedule(principal, interest, n, date(2024, 1, 1))


def test_single_period_with_interest_above_principal():
    # la tasa implícita supera el 100%: la bisección queda en el límite y la cuota cierra igual
    plan = generate_schedule(Decimal("100.00"), Decimal("150.00"), 1, date(2024, 1, 10))
    assert len(plan) == 1
    row = plan[0]
    assert row.due_date == date(2024, 1, 15)
    assert row.installment_amount == Decimal("250.00")
    assert row.capital_portion == Decimal("100.00")
    assert row.interest_portion == Decimal("150.00")
    assert row.closing_balance == Decimal("0.00")
    assert plan.implied_rate <= 1.0


def test_solver_handles_very_long_schedules():
    # (1 + r) ** n desborda un float con miles de quincenas
    rate = solve_implied_rate(1000, 2, 2000)
    assert 0 < rate < 1
    assert abs(_pv(2.0, 2000, rate) - 1000.0) < 1e-6


def test_generator_handles_very_long_schedules():
    plan = generate_schedule("2000.00", "0", 2000, date(2024, 1, 10))
    assert len(plan) == 2000
    assert plan.installment_amount == Decimal("1.00")
    assert plan[-1].closing_balance == Decimal("0.00")
    _assert_row_invariants(plan, Decimal("2000.00"), Decimal("0.00"))


def test_engine_errors_share_a_base():
    with pytest.raises(AmortizationError):
        generate_schedule(100, 10, 0, date(2024, 1, 1))
    with pytest.raises(ValueError):
        generate_schedule(100, 10, 0, date(2024, 1, 1))
