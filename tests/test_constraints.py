import pytest

from chronopick.errors import InvalidConfiguration
from chronopick.models.schemas import Bounds, CalendarMode, CanonicalDate
from chronopick.services.constraint_service import (
    disabled_for_mode,
    is_disabled,
    is_in_bounds,
    is_selectable,
    make_bounds,
    months_fully_disabled,
    normalize,
    validate_bounds,
    years_fully_disabled,
)

FMT = "YYYY-MM-DD"
FEBRUARY_2024 = [f"2024-02-{day:02d}" for day in range(1, 30)]


def test_normalize_accepts_single_value_or_list():
    assert normalize("2024-02-01", FMT) == frozenset({CanonicalDate(2024, 1, 1)})
    assert normalize(["2024-02-01", "junk", {"year": 2024, "month": 1, "day": 2}], FMT) == frozenset(
        {CanonicalDate(2024, 1, 1), CanonicalDate(2024, 1, 2)}
    )
    assert normalize(None, FMT) == frozenset()


def test_normalize_is_idempotent():
    once = normalize(["2024-02-01", "2024-02-01", "2024-13-01", "2024-02-03"], FMT)
    assert normalize(once, FMT) == once
    assert normalize(frozenset(), FMT) == frozenset()


def test_bounds_scenario():
    bounds = make_bounds("2024-01-10", "2024-01-20", FMT)
    assert not is_selectable(CanonicalDate(2024, 0, 5), bounds, frozenset())
    assert is_selectable(CanonicalDate(2024, 0, 15), bounds, frozenset())
    assert is_selectable(CanonicalDate(2024, 0, 10), bounds, frozenset())
    assert is_selectable(CanonicalDate(2024, 0, 20), bounds, frozenset())


def test_absent_bound_is_unbounded():
    assert is_in_bounds(CanonicalDate(1900, 0, 1), Bounds(max_date=CanonicalDate(2024, 0, 1)))
    assert is_in_bounds(CanonicalDate(2999, 0, 1), Bounds(min_date=CanonicalDate(2024, 0, 1)))
    assert is_in_bounds(CanonicalDate(2999, 0, 1), None)


def test_bounds_compare_at_mode_granularity():
    bounds = make_bounds("2024-01-10", "2024-01-20", FMT)
    assert is_in_bounds(CanonicalDate(2024, 0, 1), bounds, CalendarMode.MONTH)
    assert not is_in_bounds(CanonicalDate(2024, 0, 1), bounds, CalendarMode.DAY)
    assert is_in_bounds(CanonicalDate(year=2024), bounds, CalendarMode.YEAR)


def test_inverted_bounds_are_invalid_configuration():
    with pytest.raises(InvalidConfiguration):
        make_bounds("2024-01-20", "2024-01-10", FMT)


def test_validate_bounds_over_parsed_dates():
    assert validate_bounds(None, CanonicalDate(2024, 0, 1)).min_date is None
    # partial limits compare on the fields they share
    with pytest.raises(InvalidConfiguration):
        validate_bounds(CanonicalDate(year=2025), CanonicalDate(2024, 11, 31))


def test_unparseable_bound_is_unbounded():
    bounds = make_bounds("not a date", "2024-01-20", FMT)
    assert bounds.min_date is None
    assert bounds.max_date == CanonicalDate(2024, 0, 20)


def test_whole_month_disabled():
    disabled = normalize(FEBRUARY_2024, FMT)
    assert (2024, 1) in months_fully_disabled(disabled)
    assert (2024, 1) not in months_fully_disabled(normalize(FEBRUARY_2024[:-1], FMT))


def test_timed_entry_disables_its_whole_day_only_at_day_granularity():
    disabled = normalize("2024-02-01 10:30", "YYYY-MM-DD HH:mm")
    day = CanonicalDate(2024, 1, 1)
    assert is_disabled(day, disabled, CalendarMode.DAY)
    assert is_disabled(CanonicalDate(2024, 1, 1, 10), disabled, CalendarMode.HOUR)
    assert not is_disabled(CanonicalDate(2024, 1, 1, 11), disabled, CalendarMode.HOUR)
    assert not is_disabled(CanonicalDate(2024, 1, 1, 10, 31), disabled, CalendarMode.MINUTE)
    assert not is_disabled(CanonicalDate(2024, 1, 2), disabled, CalendarMode.DAY)


def test_month_only_entry_disables_every_day_of_that_month():
    disabled = normalize("02-2024", "MM-YYYY")
    assert (2024, 1) in months_fully_disabled(disabled)
    assert not is_selectable(CanonicalDate(2024, 1, 14), None, disabled)


def test_bounds_and_disabled_days_combine():
    disabled = normalize(FEBRUARY_2024[:14], FMT)
    narrow = make_bounds(None, "2024-02-14", FMT)
    wide = make_bounds(None, "2024-03-31", FMT)
    assert (2024, 1) in months_fully_disabled(disabled, narrow)
    assert (2024, 1) not in months_fully_disabled(disabled, wide)


def test_widening_bounds_never_grows_derived_sets():
    disabled = normalize(FEBRUARY_2024[:20] + ["2023-06-01"], FMT)
    windows = [
        ("2024-02-10", "2024-02-20"),
        ("2024-02-01", "2024-02-25"),
        ("2023-06-01", "2024-12-31"),
        (None, None),
    ]
    years = [2023, 2024]
    previous_months = previous_years = None
    for low, high in windows:
        bounds = make_bounds(low, high, FMT)
        months = months_fully_disabled(disabled, bounds, years)
        found_years = years_fully_disabled(disabled, bounds, years)
        if previous_months is not None:
            assert months <= previous_months
            assert found_years <= previous_years
        previous_months, previous_years = months, found_years


def test_adding_disabled_entries_never_shrinks_derived_sets():
    bounds = make_bounds("2024-02-10", "2024-12-31", FMT)
    raw = []
    previous = frozenset()
    for day in FEBRUARY_2024:
        raw.append(day)
        months = months_fully_disabled(normalize(raw, FMT), bounds)
        assert previous <= months
        previous = months
    assert (2024, 1) in previous


def test_year_fully_disabled_by_bounds():
    assert 2024 in years_fully_disabled(frozenset(), make_bounds("2025-01-01", None, FMT), [2024])
    assert 2024 not in years_fully_disabled(frozenset(), make_bounds("2024-06-01", None, FMT), [2024])


def test_year_fully_disabled_by_entries():
    every_month = [f"{month:02d}-2024" for month in range(1, 13)]
    disabled = normalize(every_month, "MM-YYYY")
    assert years_fully_disabled(disabled) == frozenset({2024})
    assert not is_selectable(CanonicalDate(year=2024), None, disabled, CalendarMode.YEAR)
    assert years_fully_disabled(normalize(every_month[:-1], "MM-YYYY")) == frozenset()


def test_month_selectable_when_some_day_remains():
    disabled = normalize(FEBRUARY_2024[:-1], FMT)
    assert is_selectable(CanonicalDate(2024, 1), None, disabled, CalendarMode.MONTH)
    disabled = normalize(FEBRUARY_2024, FMT)
    assert not is_selectable(CanonicalDate(2024, 1), None, disabled, CalendarMode.MONTH)


def test_disabled_for_mode_shapes():
    disabled = normalize(FEBRUARY_2024, FMT)
    assert disabled_for_mode(CalendarMode.DAY, disabled) == disabled
    assert disabled_for_mode(CalendarMode.MONTH, disabled) == frozenset({(2024, 1)})
    assert disabled_for_mode(CalendarMode.YEAR, disabled) == frozenset()
