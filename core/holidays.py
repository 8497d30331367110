"""
Brazilian national holidays.

Pure Python, NO Django imports. Used to seed the Holiday table.
"""

from datetime import date, timedelta

FIXED_NATIONAL_HOLIDAYS = (
    (1, 1, "Confraternização Universal"),
    (4, 21, "Tiradentes"),
    (5, 1, "Dia do Trabalho"),
    (9, 7, "Independência do Brasil"),
    (10, 12, "Nossa Senhora Aparecida"),
    (11, 2, "Finados"),
    (11, 15, "Proclamação da República"),
    (11, 20, "Dia Nacional de Zumbi e da Consciência Negra"),
    (12, 25, "Natal"),
)

# Offsets in days from Easter Sunday
MOVEABLE_NATIONAL_HOLIDAYS = (
    (-48, "Carnaval (segunda-feira)"),
    (-47, "Carnaval (terça-feira)"),
    (-2, "Sexta-feira Santa"),
    (60, "Corpus Christi"),
)


def easter_sunday(year: int) -> date:
    """Easter Sunday for a Gregorian year (anonymous Gregorian algorithm)."""
    a = year % 19
    b, c = divmod(year, 100)
    d, e = divmod(b, 4)
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i, k = divmod(c, 4)
    l = (32 + 2 * e + 2 * i - h - k) % 7  # noqa: E741
    m = (a + 11 * h + 22 * l) // 451
    month, day = divmod(h + l - 7 * m + 114, 31)
    return date(year, month, day + 1)


def national_holidays(year: int) -> list[tuple[date, str]]:
    """
    National holidays observed by the courts in a given year.

    Args:
        year: Calendar year

    Returns:
        List of (date, name) tuples sorted by date
    """
    easter = easter_sunday(year)
    holidays = [(date(year, month, day), name) for month, day, name in FIXED_NATIONAL_HOLIDAYS]
    holidays.extend((easter + timedelta(days=offset), name) for offset, name in MOVEABLE_NATIONAL_HOLIDAYS)
    return sorted(holidays)
