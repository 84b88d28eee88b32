import pytest

from klogcore.severity import CHAR, NUM_SEVERITY, Severity, by_name


def test_chars_follow_severity_order():
    names = ["info", "warning", "error", "fatal"]
    assert "".join(by_name(name).char() for name in names) == "IWEF"
    assert CHAR == "IWEF"


def test_names_match_source_names():
    names = ["info", "warning", "error", "fatal"]
    assert [by_name(name).name for name in names] == ["INFO", "WARNING", "ERROR", "FATAL"]


def test_ordering_is_increasing():
    assert by_name("INFO") < by_name("WARNING") < by_name("ERROR") < by_name("FATAL")
    assert NUM_SEVERITY == len(list(Severity))
    assert NUM_SEVERITY == 4


@pytest.mark.parametrize("severity", list(Severity))
def test_by_name_round_trip(severity):
    assert by_name(severity.name) is severity
    assert by_name(severity.name.lower()) is severity
    assert by_name(severity.name.capitalize()) is severity


def test_by_name_mixed_case():
    assert by_name("wArNiNg") is Severity.WARNING


@pytest.mark.parametrize("name", ["", "bogus", "INFOS", "warn"])
def test_by_name_unknown_raises(name):
    with pytest.raises(ValueError):
        by_name(name)