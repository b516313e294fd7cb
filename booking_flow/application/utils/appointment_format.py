from __future__ import annotations

from datetime import datetime

WEEKDAY_NAMES = {
    "pt": (
        "segunda-feira",
        "terça-feira",
        "quarta-feira",
        "quinta-feira",
        "sexta-feira",
        "sábado",
        "domingo",
    ),
    "en": (
        "Monday",
        "Tuesday",
        "Wednesday",
        "Thursday",
        "Friday",
        "Saturday",
        "Sunday",
    ),
}

MONTH_NAMES = {
    "pt": (
        "janeiro",
        "fevereiro",
        "março",
        "abril",
        "maio",
        "junho",
        "julho",
        "agosto",
        "setembro",
        "outubro",
        "novembro",
        "dezembro",
    ),
    "en": (
        "January",
        "February",
        "March",
        "April",
        "May",
        "June",
        "July",
        "August",
        "September",
        "October",
        "November",
        "December",
    ),
}


def format_appointment_date(when: datetime, language: str = "pt") -> str:
    """Describe an appointment instant for the confirmation screen."""
    lang = language if language in WEEKDAY_NAMES else "pt"
    weekday = WEEKDAY_NAMES[lang][when.weekday()]
    month = MONTH_NAMES[lang][when.month - 1]
    clock = when.strftime("%H:%M")

    if lang == "en":
        return f"{weekday}, {month} {when.day}, {when.year} at {clock}"
    return f"{weekday}, {when.day:02d} de {month} de {when.year}, às {clock}h"
