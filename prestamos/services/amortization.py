# prestamos/services/amortization.py
"""
Motor de amortización quincenal.

Dado un capital, un interés total deseado y una cantidad de quincenas,
calcula una cuota fija y el desglose interés/capital de cada quincena:

  1) cuota = round2((capital + interés) / quincenas)
  2) tasa implícita por quincena: bisección sobre el valor presente de la anualidad
  3) recorrido período a período, redondeando a centavos (HALF_UP) y forzando
     saldo 0 exacto en la última cuota

Todo es puro y sincrónico: no toca la base ni depende de la fecha actual.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterator, List

from prestamos.utils.money import CENT, ZERO, money, to_decimal
from prestamos.utils.quincenas import first_quincena, next_quincena

# Iteraciones fijas (sin corte por tolerancia) → salida reproducible bit a bit
BISECTION_ITERATIONS = 200
RATE_LOWER_BOUND = 0.0
RATE_UPPER_BOUND = 1.0


class AmortizationError(Exception):
    """Base de los errores del motor de amortización."""


class InputValidationError(AmortizationError, ValueError):
    """Capital no positivo, interés negativo o cantidad de quincenas inválida."""


class InvalidScheduleError(AmortizationError):
    """La cuota no alcanza para amortizar el capital ni con tasa 0."""


class RoundingReconciliationError(AmortizationError):
    """El ajuste final dejó montos negativos; nunca debería persistirse un plan así."""


@dataclass(frozen=True)
class AmortizationPlanRequest:
    principal: Decimal
    target_interest: Decimal
    period_count: int
    first_due_date: date

    @classmethod
    def build(cls, principal, target_interest, period_count, first_due_date) -> "AmortizationPlanRequest":
        try:
            p = money(principal)
            t = money(target_interest)
        except (TypeError, ValueError, ArithmeticError) as exc:
            raise InputValidationError(str(exc)) from exc

        if not p.is_finite() or p <= 0:
            raise InputValidationError(f"El capital debe ser mayor a 0 (recibido: {principal})")
        if not t.is_finite() or t < 0:
            raise InputValidationError(f"El interés deseado no puede ser negativo (recibido: {target_interest})")
        if isinstance(period_count, bool) or not isinstance(period_count, int):
            raise InputValidationError(f"La cantidad de quincenas debe ser un entero (recibido: {period_count!r})")
        if period_count < 1:
            raise InputValidationError(f"La cantidad de quincenas debe ser >= 1 (recibido: {period_count})")
        if isinstance(first_due_date, datetime):
            first_due_date = first_due_date.date()
        if not isinstance(first_due_date, date):
            raise InputValidationError("first_due_date debe ser una fecha")

        return cls(principal=p, target_interest=t, period_count=period_count, first_due_date=first_due_date)


@dataclass(frozen=True)
class InstallmentRow:
    period_index: int
    due_date: date
    installment_amount: Decimal
    interest_portion: Decimal
    capital_portion: Decimal
    opening_balance: Decimal
    closing_balance: Decimal


@dataclass(frozen=True)
class AmortizationPlanResult:
    rows: tuple
    installment_amount: Decimal
    implied_rate: float  # interno: no se persiste

    def __iter__(self) -> Iterator[InstallmentRow]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def __getitem__(self, idx):
        return self.rows[idx]

    @property
    def total_interest(self) -> Decimal:
        return sum((r.interest_portion for r in self.rows), ZERO)

    @property
    def total_capital(self) -> Decimal:
        return sum((r.capital_portion for r in self.rows), ZERO)


def _annuity_pv(installment: float, periods: int, rate: float) -> float:
    # factor de descuento acumulado: con muchas quincenas tiende a 0 en vez de desbordar
    pv = 0.0
    df = 1.0
    for _ in range(periods):
        df /= 1 + rate
        pv += installment * df
    return pv


def solve_implied_rate(principal, installment_amount, periods: int,
                       iterations: int = BISECTION_ITERATIONS) -> float:
    """
    Tasa periódica r tal que Σ cuota/(1+r)^i (i=1..n) == capital.

    Bisección en [0, 1] con cantidad fija de iteraciones. Si el VP en el punto
    medio supera al capital la tasa es baja (sube el límite inferior); si no,
    baja el límite superior.
    """
    if isinstance(periods, bool) or not isinstance(periods, int) or periods < 1:
        raise InputValidationError(f"La cantidad de períodos debe ser un entero >= 1 (recibido: {periods!r})")

    p = to_decimal(principal)
    c = to_decimal(installment_amount)
    if p <= 0:
        raise InputValidationError("El capital debe ser mayor a 0")
    if c <= 0:
        raise InputValidationError("La cuota debe ser mayor a 0")

    # Ni con tasa 0 se cubre el capital (comparado a centavos)
    if money(c * periods) < money(p):
        raise InvalidScheduleError(
            f"Una cuota de {money(c)} en {periods} quincenas no alcanza para amortizar {money(p)}"
        )

    # Si la raíz queda por encima del 100% la bisección se asienta en el límite
    # superior; la última cuota igual cierra el saldo en 0.
    p_f = float(p)
    c_f = float(c)

    low, high = RATE_LOWER_BOUND, RATE_UPPER_BOUND
    for _ in range(iterations):
        mid = (low + high) / 2
        if _annuity_pv(c_f, periods, mid) > p_f:
            low = mid
        else:
            high = mid
    return (low + high) / 2


def _check_row(row: InstallmentRow) -> None:
    for field in ("interest_portion", "capital_portion", "opening_balance", "closing_balance"):
        if getattr(row, field) < 0:
            raise RoundingReconciliationError(
                f"Quincena {row.period_index}: {field} negativo ({getattr(row, field)})"
            )
    if row.closing_balance != row.opening_balance - row.capital_portion:
        raise RoundingReconciliationError(f"Quincena {row.period_index}: saldo final inconsistente")


def build_plan(request: AmortizationPlanRequest) -> AmortizationPlanResult:
    n = request.period_count
    level = (request.principal + request.target_interest) / Decimal(n)
    installment = money(level)

    # El solver recibe la cuota sin redondear (siempre factible con entradas válidas)
    rate = solve_implied_rate(request.principal, level, n)
    r = Decimal(rate)

    # Deriva de redondeo tolerada en la última cuota: 1 centavo por quincena
    drift_limit = CENT * n

    rows: List[InstallmentRow] = []
    opening = request.principal
    due = first_quincena(request.first_due_date)

    for i in range(1, n + 1):
        row_installment = installment
        interest = money(opening * r)
        capital = money(installment - interest)
        closing = money(opening - capital)

        # el redondeo no puede dejar saldo negativo
        if capital > opening:
            capital = opening
            closing = ZERO
            interest = money(installment - capital)

        # última quincena: cierra en 0 siempre, aunque el cálculo ya haya dado 0
        if i == n:
            capital = opening
            closing = ZERO
            interest = money(installment - capital)
            if interest < 0:
                if -interest > drift_limit:
                    raise RoundingReconciliationError(
                        f"La última cuota no cubre el saldo ({opening} > {installment})"
                    )
                # la última cuota absorbe los centavos acumulados
                interest = ZERO
                row_installment = capital

        row = InstallmentRow(
            period_index=i,
            due_date=due,
            installment_amount=row_installment,
            interest_portion=interest,
            capital_portion=capital,
            opening_balance=opening,
            closing_balance=closing,
        )
        _check_row(row)
        rows.append(row)

        opening = closing
        due = next_quincena(due)

    return AmortizationPlanResult(rows=tuple(rows), installment_amount=installment, implied_rate=rate)


def generate_schedule(principal, target_interest, period_count: int, first_due_date: date) -> AmortizationPlanResult:
    """Punto de entrada: valida (falla antes de iterar) y arma el plan completo."""
    request = AmortizationPlanRequest.build(principal, target_interest, period_count, first_due_date)
    return build_plan(request)
