import pytest

from utils.misc import iso8601_to_unix, parse_time_bound, percent, unix_to_iso8601
from utils.model_parser import model_parser, to_plain
from model.metrics import ContainerLogs, LogLine


@pytest.mark.parametrize(
    "value,expected",
    [
        (None, None),
        ("", None),
        (1704067200, 1704067200),
        ("1704067200", 1704067200),
        ("2024-01-01T00:00:00Z", 1704067200),
        ("2024-01-01T01:00:00+01:00", 1704067200),
        ("2024-01-01T00:00:00", 1704067200),
    ],
)
def test_parse_time_bound(value, expected):
    assert parse_time_bound(value) == expected


def test_parse_time_bound_rejects_garbage():
    with pytest.raises(ValueError):
        parse_time_bound("last tuesday")


def test_percent_handles_zero_total():
    assert percent(5, 0) == 0.0
    assert percent(1, 3) == pytest.approx(33.33)


def test_unix_and_iso8601_convert_both_ways():
    assert unix_to_iso8601(1704067200) == "2024-01-01T00:00:00.000Z"
    assert iso8601_to_unix("2024-01-01T00:00:00.000Z") == pytest.approx(1704067200)


def test_model_parser_flattens_nested_dataclasses():
    logs = ContainerLogs(logs=[LogLine(timestamp="t", stream="stdout", message="hi")], total_lines=1)

    assert model_parser(logs) == {
        "logs": [{"timestamp": "t", "stream": "stdout", "message": "hi"}],
        "total_lines": 1,
    }
    assert to_plain([logs])[0]["total_lines"] == 1


def test_model_parser_rejects_non_dataclasses():
    with pytest.raises(TypeError):
        model_parser({"not": "a dataclass"})
