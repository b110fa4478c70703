# common/utils/global_functions.py
from datetime import date, datetime
from typing import Iterable, Optional, Sequence, Tuple, Union


def calculate_age(date_of_birth: Optional[date], today: Optional[date] = None) -> Optional[int]:
    """
    Whole years elapsed since ``date_of_birth``.

    One year is subtracted when the birthday has not yet come round this year,
    so a person born on 29 February turns a year older on 1 March in common years.
    """
    if date_of_birth is None:
        return None
    if isinstance(date_of_birth, datetime):
        date_of_birth = date_of_birth.date()

    today = today or date.today()
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def mean_of(values: Iterable[Optional[Union[int, float]]]) -> Optional[float]:
    """Arithmetic mean of the non-null values, or None when there are none."""
    readings = [float(v) for v in values if v is not None]
    if not readings:
        return None
    return sum(readings) / len(readings)


def format_blood_pressure(systolic: Optional[int], diastolic: Optional[int]) -> Optional[str]:
    if systolic is None or diastolic is None:
        return None
    return f"{systolic}/{diastolic}"


def split_blood_pressure(reading: str) -> Tuple[int, int]:
    systolic, diastolic = reading.split("/", 1)
    return int(systolic), int(diastolic)


def average_blood_pressure(readings: Sequence[Optional[str]]) -> Optional[str]:
    """Average composite "systolic/diastolic" readings component by component."""
    pairs = [split_blood_pressure(r) for r in readings if r]
    if not pairs:
        return None
    systolic = round(mean_of(s for s, _ in pairs))
    diastolic = round(mean_of(d for _, d in pairs))
    return f"{systolic}/{diastolic}"


def round_or_none(value: Optional[float], digits: Optional[int] = None):
    if value is None:
        return None
    return round(value, digits) if digits is not None else round(value)
