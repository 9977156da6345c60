# prestamos/utils/quincenas.py
import calendar
from datetime import date, datetime


def _as_date(d: date | datetime) -> date:
    # La hora no importa: siempre comparamos a medianoche
    if isinstance(d, datetime):
        return d.date()
    return d


def last_day_of_month(d: date | datetime) -> date:
    d = _as_date(d)
    return date(d.year, d.month, calendar.monthrange(d.year, d.month)[1])


def is_quincena(d: date | datetime) -> bool:
    """True si la fecha cae en un punto de cobro (día 15 o último día del mes)."""
    d = _as_date(d)
    return d.day == 15 or d == last_day_of_month(d)


def next_quincena(d: date | datetime) -> date:
    """
    Próxima fecha de cobro quincenal:
      - día < 15  → 15 del mismo mes
      - día == 15 → último día del mismo mes
      - día > 15  → 15 del mes siguiente (diciembre → enero del año siguiente)
    """
    d = _as_date(d)
    if d.day < 15:
        return date(d.year, d.month, 15)
    if d.day == 15:
        return last_day_of_month(d)
    if d.month == 12:
        return date(d.year + 1, 1, 15)
    return date(d.year, d.month + 1, 15)


def first_quincena(d: date | datetime) -> date:
    """
    Primera fecha de cobro en o después de `d` (límite inferior inclusivo).
    A diferencia de next_quincena, un día 15 se queda en el 15.
    """
    d = _as_date(d)
    if d.day <= 15:
        return date(d.year, d.month, 15)
    return last_day_of_month(d)
