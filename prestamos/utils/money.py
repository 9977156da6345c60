# prestamos/utils/money.py
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(x) -> Decimal:
    """Convierte int/float/str/Decimal a Decimal sin pasar por la representación binaria del float."""
    if x is None:
        return Decimal("0")
    if isinstance(x, Decimal):
        return x
    if isinstance(x, bool):
        raise TypeError("Un booleano no es un monto")
    try:
        return Decimal(str(x).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Monto inválido: {x!r}") from exc


def money(x) -> Decimal:
    """Siempre devuelve un Decimal de 2 decimales con redondeo HALF_UP."""
    return to_decimal(x).quantize(CENT, rounding=ROUND_HALF_UP)
