"""Expansion of common data-carrying templates (dates, ages, conversions).

Only templates whose text can be computed from their own arguments are
handled here; anything that needs the wiki's template definitions is left
to the caller.
"""

from datetime import date
from typing import Callable, Dict, List, Optional, Tuple

from .nested import split_arguments

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

CONVERSIONS: Dict[Tuple[str, str], float] = {
    ("km", "mi"): 0.621371,
    ("mi", "km"): 1.60934,
    ("m", "ft"): 3.28084,
    ("ft", "m"): 0.3048,
    ("cm", "in"): 0.393701,
    ("in", "cm"): 2.54,
    ("mm", "in"): 0.0393701,
    ("in", "mm"): 25.4,
    ("yd", "m"): 0.9144,
    ("m", "yd"): 1.09361,
    ("kg", "lb"): 2.20462,
    ("lb", "kg"): 0.453592,
    ("g", "oz"): 0.035274,
    ("oz", "g"): 28.3495,
    ("t", "lb"): 2204.62,
    ("km2", "sqmi"): 0.386102,
    ("sqmi", "km2"): 2.58999,
    ("ha", "acre"): 2.47105,
    ("acre", "ha"): 0.404686,
    ("m2", "sqft"): 10.7639,
    ("sqft", "m2"): 0.092903,
    ("km/h", "mph"): 0.621371,
    ("mph", "km/h"): 1.60934,
    ("m/s", "km/h"): 3.6,
    ("l", "gal"): 0.264172,
    ("gal", "l"): 3.78541,
}

TEMPERATURES = {"c": "°C", "°c": "°C", "f": "°F", "°f": "°F"}

UNIT_DISPLAY = {"km2": "km²", "m2": "m²", "sqmi": "sq mi", "sqft": "sq ft"}


def _int(value: Optional[str]) -> int:
    try:
        return int(value.strip()) if value else 0
    except ValueError:
        return 0


def _number(value: float) -> str:
    rounded = round(value, 1)
    return str(int(rounded)) if rounded == int(rounded) else f"{rounded:.1f}"


def format_date(year: int, month: int = 0, day: int = 0, day_first: bool = False) -> str:
    """``January 2, 1900`` (or ``2 January 1900``); missing parts are omitted."""
    if not 1 <= month <= 12:
        return str(year)
    name = MONTH_NAMES[month - 1]
    if day <= 0:
        return f"{name} {year}"
    return f"{day} {name} {year}" if day_first else f"{name} {day}, {year}"


def age_on(year: int, month: int, day: int, reference: date) -> int:
    """Completed years between a birth date and ``reference``."""
    age = reference.year - year
    if (reference.month, reference.day) < (month or 1, day or 1):
        age -= 1
    return age


class _Args:
    """Positional and named arguments of one template."""

    def __init__(self, content: str):
        self.positional: List[str] = []
        self.named: Dict[str, str] = {}
        for part in split_arguments(content)[1:]:
            key, sep, value = part.partition("=")
            if sep and key.strip() and "{{" not in key and "[[" not in key:
                self.named[key.strip().lower()] = value.strip()
            else:
                self.positional.append(part.strip())

    def ints(self, start: int = 0, count: int = 3) -> List[int]:
        values = [_int(v) for v in self.positional[start:start + count]]
        return values + [0] * (count - len(values))

    @property
    def day_first(self) -> bool:
        return self.named.get("df", "").lower() in ("y", "yes")


class TemplateExpander:
    """Reduces date, age, unit and era templates to their display text.

    Ages are computed against ``reference_date`` (today by default).
    """

    def __init__(self, reference_date: Optional[date] = None):
        self.reference_date = reference_date or date.today()
        self._handlers: Dict[str, Callable[[_Args], str]] = {}
        for names, handler in (
            (("birth date", "birthdate", "death date", "deathdate", "start date", "startdate",
              "end date", "enddate", "date"), self._date),
            (("birth date and age", "birthdate and age"), self._date_and_age),
            (("death date and age", "deathdate and age"), self._death_date_and_age),
            (("age",), self._age),
            (("convert", "cvt"), self._convert),
            (("circa", "c."), self._circa),
            (("floruit", "fl."), self._floruit),
            (("reign", "r."), self._reign),
            (("marriage", "married"), self._marriage),
            (("played years",), self._year_range),
        ):
            for name in names:
                self._handlers[name] = handler

    def handles(self, name: str) -> bool:
        return name in self._handlers

    def expand(self, name: str, content: str) -> str:
        """Display text for template ``name`` (normalized) with inner ``content``."""
        args = _Args(content)
        if not args.positional:
            return ""
        return self._handlers[name](args)

    def _date(self, args: _Args) -> str:
        year, month, day = args.ints()
        if not year:
            return args.positional[0]
        return format_date(year, month, day, args.day_first)

    def _date_and_age(self, args: _Args) -> str:
        year, month, day = args.ints()
        if not year:
            return args.positional[0]
        age = age_on(year, month, day, self.reference_date)
        return f"{format_date(year, month, day, args.day_first)} (age {age})"

    def _death_date_and_age(self, args: _Args) -> str:
        death = args.ints(0, 3)
        birth = args.ints(3, 3)
        if not death[0]:
            return args.positional[0]
        text = format_date(*death, day_first=args.day_first)
        if not birth[0]:
            return text
        try:
            reference = date(death[0], death[1] or 12, death[2] or 28)
        except ValueError:
            return text
        return f"{text} (aged {age_on(*birth, reference)})"

    def _age(self, args: _Args) -> str:
        year, month, day = args.ints()
        return str(age_on(year, month, day, self.reference_date)) if year else ""

    def _convert(self, args: _Args) -> str:
        try:
            value = float(args.positional[0].replace(",", ""))
        except ValueError:
            return args.positional[0]
        units = args.positional[1:3] + ["", ""]
        source, target = ("".join(u.split()) for u in units[:2])
        if not source:
            return _number(value)
        temperatures = (TEMPERATURES.get(source.lower()), TEMPERATURES.get(target.lower()))
        if all(temperatures) and temperatures[0] != temperatures[1]:
            converted = value * 9 / 5 + 32 if temperatures[0] == "°C" else (value - 32) * 5 / 9
            return f"{_number(value)} {temperatures[0]} ({round(converted)} {temperatures[1]})"
        shown = UNIT_DISPLAY.get(source, source)
        factor = CONVERSIONS.get((source, target))
        if factor is None:
            return f"{_number(value)} {shown}"
        return f"{_number(value)} {shown} ({_number(value * factor)} {UNIT_DISPLAY.get(target, target)})"

    def _circa(self, args: _Args) -> str:
        if len(args.positional) >= 2:
            return f"c. {args.positional[0]} – c. {args.positional[1]}"
        return f"c. {args.positional[0]}"

    def _floruit(self, args: _Args) -> str:
        if len(args.positional) >= 2:
            return f"fl. {args.positional[0]}–{args.positional[1]}"
        return f"fl. {args.positional[0]}"

    def _reign(self, args: _Args) -> str:
        if len(args.positional) < 2:
            return f"r. {args.positional[0]}"
        return f"r. {args.positional[0]}–{args.positional[1]}"

    def _marriage(self, args: _Args) -> str:
        name, start, end = (args.positional + ["", ""])[:3]
        if end:
            reason = args.named.get("reason", "").lower()
            label = {"widowed": "wid.", "wid": "wid.", "died": "d.", "d": "d."}.get(reason, "div.")
            return f"{name} (m. {start}; {label} {end})"
        if start:
            return f"{name} (m. {start})"
        return name

    def _year_range(self, args: _Args) -> str:
        if len(args.positional) < 2:
            return args.positional[0]
        return f"{args.positional[0]}–{args.positional[1]}"
