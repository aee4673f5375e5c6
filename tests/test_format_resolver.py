import pytest

from chronopick.errors import InvalidConfiguration
from chronopick.models.schemas import FormatSpec
from chronopick.services.format_service import TIME_FORMAT, resolve_format, resolve_format_spec


def test_composes_date_divider_and_24h_time():
    assert resolve_format("DD-MM-YYYY", " ", "24") == "DD-MM-YYYY HH:mm"


def test_composes_12h_time_with_custom_divider():
    assert resolve_format("YYYY/MM/DD", " @ ", "12") == "YYYY/MM/DD @ hh:mm A"


def test_date_time_format_overrides_composition():
    fmt = resolve_format("DD-MM-YYYY", " ", "12", date_time_format="YYYY-MM-DD[T]HH:mm")
    assert fmt == "YYYY-MM-DD[T]HH:mm"


def test_empty_date_time_format_does_not_override():
    assert resolve_format("DD-MM-YYYY", "|", "24", date_time_format="") == "DD-MM-YYYY|HH:mm"


def test_resolve_from_spec_recomputes_on_every_change():
    spec = FormatSpec(date_format="DD.MM.YYYY", time_format="24", divider=" ")
    assert resolve_format_spec(spec) == "DD.MM.YYYY HH:mm"
    spec = FormatSpec(date_format="DD.MM.YYYY", time_format="ampm", divider=" ")
    assert resolve_format_spec(spec) == "DD.MM.YYYY hh:mm a"


def test_unknown_time_format_is_invalid_configuration():
    with pytest.raises(InvalidConfiguration):
        resolve_format("DD-MM-YYYY", " ", "36")


def test_time_format_table_covers_both_clocks():
    assert TIME_FORMAT["24"] == "HH:mm"
    assert TIME_FORMAT["12"] == "hh:mm A"
