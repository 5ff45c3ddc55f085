"""
Venue Operating Hours

Pure scheduling rules for a venue's day. Nothing in this module touches
the database; it turns the ``Venue.operating_hours`` JSON document into
an ``OperatingWindow`` for a date and enumerates candidate slots inside it.

Layers, highest priority first:
- special_dates: one-off overrides keyed by ISO date
- seasonal: date ranges (inclusive) with their own weekly hours
- regular: the weekly schedule
- default window: used only when no weekly schedule is configured
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Mapping

from shared.domain.value_objects import TimeRange

WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

DEFAULT_OPERATING_PERIOD = ("06:00", "23:00")

MINUTES_PER_DAY = 24 * 60


class ScheduleError(ValueError):
    """Raised for a malformed operating-hours document."""


def parse_clock(value: Any, *, key: str) -> int:
    """Parse ``HH:MM`` into minutes after midnight. ``24:00`` is accepted."""

    if not isinstance(value, str):
        raise ScheduleError(f"{key}: expected a 'HH:MM' string, got {value!r}")
    hours, sep, minutes = value.strip().partition(":")
    if not sep or not hours.isdigit() or not minutes.isdigit() or len(minutes) != 2:
        raise ScheduleError(f"{key}: expected a 'HH:MM' string, got {value!r}")
    total = int(hours) * 60 + int(minutes)
    if int(minutes) > 59 or total > MINUTES_PER_DAY:
        raise ScheduleError(f"{key}: {value!r} is not a valid time of day")
    return total


def format_hour(hour: int) -> str:
    return f"{hour:02d}:00"


def local_instant(day: date, hour: int, tz: tzinfo) -> datetime:
    """
    Wall-clock ``hour`` on ``day`` in ``tz`` as a UTC instant

    ``24`` is midnight at the end of ``day``. A wall time skipped by a DST
    change resolves with the offset in force before the change, so it lands
    on the same instant as the first hour after it.
    """

    wall = datetime.combine(day, time.min) + timedelta(hours=hour)
    return wall.replace(tzinfo=tz).astimezone(timezone.utc)


@dataclass(frozen=True)
class Period:
    """Whole-hour open period ``[open_hour, close_hour)``."""

    open_hour: int
    close_hour: int

    @classmethod
    def from_minutes(cls, open_minutes: int, close_minutes: int) -> Period | None:
        # Slots start on the hour: round the opening up and the closing down.
        open_hour = -(-open_minutes // 60)
        close_hour = close_minutes // 60
        if open_hour >= close_hour:
            return None
        return cls(open_hour, close_hour)

    @property
    def span(self) -> int:
        return self.close_hour - self.open_hour

    def contains(self, start_hour: int, end_hour: int) -> bool:
        return self.open_hour <= start_hour and end_hour <= self.close_hour

    def to_dict(self) -> dict:
        return {"open": format_hour(self.open_hour), "close": format_hour(self.close_hour)}


@dataclass(frozen=True)
class BookingRules:
    min_duration: int | None = None
    max_duration: int | None = None

    @classmethod
    def from_config(cls, raw: Any) -> BookingRules | None:
        if raw is None:
            return None
        if not isinstance(raw, Mapping):
            raise ScheduleError("booking_rules: expected an object")
        values = {}
        for name in ("min_duration", "max_duration"):
            value = raw.get(name)
            if value is None:
                values[name] = None
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ScheduleError(f"booking_rules.{name}: expected a positive whole number of hours")
            values[name] = value
        rules = cls(**values)
        if rules.min_duration and rules.max_duration and rules.min_duration > rules.max_duration:
            raise ScheduleError("booking_rules: min_duration is greater than max_duration")
        if rules.min_duration is None and rules.max_duration is None:
            return None
        return rules

    def violation(self, duration: int) -> str | None:
        """Return a message when ``duration`` breaks a rule, otherwise None."""

        if self.min_duration is not None and duration < self.min_duration:
            return f"Minimum booking duration is {self.min_duration} hour(s)."
        if self.max_duration is not None and duration > self.max_duration:
            return f"Maximum booking duration is {self.max_duration} hour(s)."
        return None


@dataclass(frozen=True)
class OperatingWindow:
    """Resolved open periods for one venue on one date."""

    periods: tuple[Period, ...]
    is_open: bool = True
    is_custom: bool = False
    is_special: bool = False
    reason: str | None = None

    @classmethod
    def closed(cls, reason: str, *, is_custom: bool = False, is_special: bool = False) -> OperatingWindow:
        return cls(periods=(), is_open=False, is_custom=is_custom, is_special=is_special, reason=reason)

    @property
    def longest_span(self) -> int:
        return max((period.span for period in self.periods), default=0)

    @property
    def open_label(self) -> str | None:
        return format_hour(self.periods[0].open_hour) if self.periods else None

    @property
    def close_label(self) -> str | None:
        return format_hour(self.periods[-1].close_hour) if self.periods else None

    def fits(self, start_hour: int, end_hour: int) -> bool:
        """True when ``[start_hour, end_hour)`` lies inside a single period."""

        return self.is_open and any(period.contains(start_hour, end_hour) for period in self.periods)

    def to_dict(self) -> dict:
        return {
            "open": self.open_label,
            "close": self.close_label,
            "periods": [period.to_dict() for period in self.periods],
            "is_open": self.is_open,
            "is_custom": self.is_custom,
            "is_special": self.is_special,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class Slot:
    start_hour: int
    end_hour: int

    @property
    def duration(self) -> int:
        return self.end_hour - self.start_hour

    @property
    def start_label(self) -> str:
        return format_hour(self.start_hour)

    @property
    def end_label(self) -> str:
        return format_hour(self.end_hour)

    def exists_on(self, day: date, tz: tzinfo) -> bool:
        """False when a DST change stretches or shrinks the slot on ``day``."""

        elapsed = local_instant(day, self.end_hour, tz) - local_instant(day, self.start_hour, tz)
        return elapsed == timedelta(hours=self.duration)

    def to_range(self, day: date, tz: tzinfo) -> TimeRange:
        """Anchor the slot on ``day`` in the venue's timezone, as UTC instants."""

        return TimeRange(
            start=local_instant(day, self.start_hour, tz),
            end=local_instant(day, self.end_hour, tz),
        )


def _parse_day(entry: Any, *, key: str) -> tuple[Period, ...] | None:
    """Parse one day entry. ``None`` means closed."""

    if entry is None:
        return None
    if not isinstance(entry, Mapping):
        raise ScheduleError(f"{key}: expected an object")
    if entry.get("is_open", True) is False:
        return None

    if "periods" in entry:
        raw_periods = entry["periods"]
        if not isinstance(raw_periods, list):
            raise ScheduleError(f"{key}.periods: expected a list")
    elif "open" in entry or "close" in entry:
        raw_periods = [entry]
    else:
        raise ScheduleError(f"{key}: expected 'periods' or an 'open'/'close' pair")

    spans = []
    for index, raw in enumerate(raw_periods):
        item_key = f"{key}.periods[{index}]" if "periods" in entry else key
        if not isinstance(raw, Mapping):
            raise ScheduleError(f"{item_key}: expected an object")
        opens = parse_clock(raw.get("open"), key=f"{item_key}.open")
        closes = parse_clock(raw.get("close"), key=f"{item_key}.close")
        if opens >= closes:
            raise ScheduleError(f"{item_key}: open must be before close")
        spans.append((opens, closes))

    spans.sort()
    for (_, previous_close), (next_open, _) in zip(spans, spans[1:]):
        if next_open < previous_close:
            raise ScheduleError(f"{key}: periods overlap")

    periods = tuple(
        period
        for period in (Period.from_minutes(opens, closes) for opens, closes in spans)
        if period is not None
    )
    return periods or None


def _parse_week(raw: Any, *, key: str) -> dict[str, tuple[Period, ...] | None]:
    if not isinstance(raw, Mapping):
        raise ScheduleError(f"{key}: expected an object keyed by weekday")
    week: dict[str, tuple[Period, ...] | None] = {}
    for name, entry in raw.items():
        weekday = str(name).lower()
        if weekday not in WEEKDAYS:
            raise ScheduleError(f"{key}: unknown weekday {name!r}")
        week[weekday] = _parse_day(entry, key=f"{key}.{weekday}")
    return week


def _parse_date(value: Any, *, key: str) -> date:
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ScheduleError(f"{key}: expected an ISO date, got {value!r}") from None


@dataclass(frozen=True)
class Season:
    name: str
    start_date: date
    end_date: date
    hours: dict[str, tuple[Period, ...] | None]

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class SpecialDate:
    day: date
    periods: tuple[Period, ...] | None
    reason: str | None = None


@dataclass(frozen=True)
class OperatingHours:
    """Parsed operating-hours document for a venue."""

    regular: dict[str, tuple[Period, ...] | None] | None = None
    seasons: tuple[Season, ...] = ()
    special_dates: dict[date, SpecialDate] = field(default_factory=dict)
    booking_rules: BookingRules | None = None
    default_periods: tuple[Period, ...] = ()

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Any] | None,
        default: tuple[str, str] = DEFAULT_OPERATING_PERIOD,
    ) -> OperatingHours:
        opens = parse_clock(default[0], key="default.open")
        closes = parse_clock(default[1], key="default.close")
        default_period = Period.from_minutes(opens, closes)
        default_periods = (default_period,) if default_period else ()

        if not config:
            return cls(default_periods=default_periods)
        if not isinstance(config, Mapping):
            raise ScheduleError("operating_hours: expected an object")

        regular = None
        if config.get("regular") is not None:
            regular = _parse_week(config["regular"], key="regular")

        seasons = []
        raw_seasons = config.get("seasonal") or []
        if not isinstance(raw_seasons, list):
            raise ScheduleError("seasonal: expected a list")
        for index, raw in enumerate(raw_seasons):
            key = f"seasonal[{index}]"
            if not isinstance(raw, Mapping):
                raise ScheduleError(f"{key}: expected an object")
            season = Season(
                name=str(raw.get("name") or f"Season {index + 1}"),
                start_date=_parse_date(raw.get("start_date"), key=f"{key}.start_date"),
                end_date=_parse_date(raw.get("end_date"), key=f"{key}.end_date"),
                hours=_parse_week(raw.get("hours") or {}, key=f"{key}.hours"),
            )
            if season.start_date > season.end_date:
                raise ScheduleError(f"{key}: start_date is after end_date")
            seasons.append(season)

        special_dates = {}
        raw_special = config.get("special_dates") or {}
        if not isinstance(raw_special, Mapping):
            raise ScheduleError("special_dates: expected an object keyed by ISO date")
        for raw_day, entry in raw_special.items():
            key = f"special_dates.{raw_day}"
            day = _parse_date(raw_day, key=key)
            reason = entry.get("reason") if isinstance(entry, Mapping) else None
            special_dates[day] = SpecialDate(day=day, periods=_parse_day(entry, key=key), reason=reason)

        return cls(
            regular=regular,
            seasons=tuple(seasons),
            special_dates=special_dates,
            booking_rules=BookingRules.from_config(config.get("booking_rules")),
            default_periods=default_periods,
        )

    def resolve(self, day: date) -> OperatingWindow:
        weekday = WEEKDAYS[day.weekday()]
        closed_reason = f"Closed on {weekday.capitalize()}"

        special = self.special_dates.get(day)
        if special is not None:
            if special.periods is None:
                return OperatingWindow.closed(
                    special.reason or "Closed for a special date",
                    is_custom=True,
                    is_special=True,
                )
            return OperatingWindow(special.periods, is_custom=True, is_special=True, reason=special.reason)

        for season in self.seasons:
            if not season.covers(day) or weekday not in season.hours:
                continue
            periods = season.hours[weekday]
            if periods is None:
                return OperatingWindow.closed(closed_reason, is_custom=True)
            return OperatingWindow(periods, is_custom=True, reason=season.name)

        if self.regular is None:
            if not self.default_periods:
                return OperatingWindow.closed(closed_reason)
            return OperatingWindow(self.default_periods)

        periods = self.regular.get(weekday)
        if periods is None:
            return OperatingWindow.closed(closed_reason)
        return OperatingWindow(periods)


def resolve_operating_window(
    config: Mapping[str, Any] | None,
    day: date,
    default: tuple[str, str] = DEFAULT_OPERATING_PERIOD,
) -> OperatingWindow:
    """Resolve the open periods of ``day`` from a raw operating-hours document."""

    return OperatingHours.from_config(config, default).resolve(day)


def enumerate_slots(window: OperatingWindow, duration: int) -> list[Slot]:
    """
    Candidate slots of ``duration`` hours, ordered by start

    For each period ``[open, close)`` the start hours run from ``open`` to
    ``close - duration`` inclusive. A slot never spans the gap between two
    periods.
    """

    if duration <= 0 or not window.is_open:
        return []
    slots = []
    for period in window.periods:
        for hour in range(period.open_hour, period.close_hour - duration + 1):
            slots.append(Slot(hour, hour + duration))
    slots.sort(key=lambda slot: slot.start_hour)
    return slots
