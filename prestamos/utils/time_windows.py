from datetime import datetime, date, time, timedelta, timezone
from zoneinfo import ZoneInfo

from prestamos.config import LOCAL_TZ_NAME

LOCAL_TZ = ZoneInfo(LOCAL_TZ_NAME)

def today_local(tz: ZoneInfo = LOCAL_TZ) -> date:
    """Fecha de hoy en la zona del negocio (no la del servidor)."""
    return datetime.now(tz).date()

def local_dates_to_utc_window(dfrom: date, dto: date, tz: ZoneInfo = LOCAL_TZ):
    """
    Recibe fechas (locales) y devuelve (start_utc, end_utc_exclusive) aware.
    [dfrom 00:00:00 local, dto 24:00:00 local) → UTC
    """
    start_local = datetime.combine(dfrom, time.min).replace(tzinfo=tz)
    end_local_excl = datetime.combine(dto, time.min).replace(tzinfo=tz) + timedelta(days=1)

    return start_local.astimezone(timezone.utc), end_local_excl.astimezone(timezone.utc)

def parse_local_date(s: str | None) -> date | None:
    """
    Acepta 'YYYY-MM-DD' o ISO-8601 completo (admite 'Z').
    Devuelve la fecha LOCAL; None si no se puede parsear.
    """
    if not s:
        return None
    s = s.strip()
    try:
        if len(s) == 10:
            return date.fromisoformat(s)
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
        if dt.tzinfo is not None:
            dt = dt.astimezone(LOCAL_TZ)
        return dt.date()
    except ValueError:
        return None
