"""
Ciclus RD - Shared Utilities
Common helper functions
"""

import calendar
import re
from datetime import datetime, date
from typing import Optional, Tuple


def day_key(value: datetime) -> str:
    """Calendar day of a timestamp as YYYY-MM-DD (time of day ignored)"""
    return value.date().isoformat()


def month_key(value: date) -> str:
    """Year-month of a date or timestamp as YYYY-MM"""
    return value.strftime("%Y-%m")


def parse_month(value: str) -> Tuple[int, int]:
    """
    Parse YYYY-MM (or YYYY-M, or a longer YYYY-MM-DD) into (year, month)
    """
    match = re.match(r'^(\d{4})-(\d{1,2})(?:-\d{1,2})?$', (value or "").strip())
    if not match:
        raise ValueError(f"Mês inválido: {value!r}. Esperado: AAAA-MM")
    year, month_num = int(match.group(1)), int(match.group(2))
    if not 1 <= month_num <= 12:
        raise ValueError(f"Mês inválido: {value!r}")
    return year, month_num


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_days(year: int, month: int):
    """All calendar days of a month, in order"""
    return [date(year, month, d) for d in range(1, days_in_month(year, month) + 1)]


def combine_date_time(day: str, time_of_day: str) -> datetime:
    """
    Combine YYYY-MM-DD and HH:MM into a datetime
    """
    return datetime.strptime(f"{day} {normalize_time(time_of_day)}", "%Y-%m-%d %H:%M")


def normalize_time(value: str) -> str:
    """
    Normalize time to HH:MM format
    """
    value = (value or "").strip()

    if re.match(r'^\d{1,2}:\d{2}$', value):
        hour, minute = value.split(':')
        hour = int(hour)
        minute = int(minute)

        if not (0 <= hour <= 23 and 0 <= minute <= 59):
            raise ValueError(f"Hora inválida: {value}")

        return f"{hour:02d}:{minute:02d}"

    raise ValueError(f"Formato de hora inválido: {value}. Esperado: HH:MM")


def format_date_display(value: datetime) -> str:
    """Format date for display (DD/MM/YYYY)"""
    return value.strftime("%d/%m/%Y")


def format_time_display(value: datetime) -> str:
    return value.strftime("%H:%M")


def format_number(value: float, decimals: int = 0) -> str:
    """Format number pt-BR style (1.950,5)"""
    text = f"{value:,.{decimals}f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def sanitize_path_segment(value: str) -> str:
    """Sanitize a storage path segment"""
    sanitized = re.sub(r'[<>:"\\|?*\s]', '_', value)
    sanitized = re.sub(r'\.\.+', '_', sanitized)
    sanitized = sanitized.strip('./ ')
    return sanitized or "unnamed"


def registration_to_email(registration: str, domain: str) -> str:
    """Login identity for a registration number"""
    registration = registration.strip()
    if "@" in registration:
        return registration.lower()
    return f"{registration}@{domain}".lower()


def clean_text(value: Optional[str]) -> str:
    """Flatten free text for single-line export cells"""
    return (value or "").replace(";", ",").replace("\n", " ").strip()
