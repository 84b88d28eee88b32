import json
from dataclasses import dataclass

import pytest

from klogcore.serialize import (
    MISSING_VALUE,
    Formatter,
    error_to_string,
    generate_json,
    kv_format,
    kv_list_format,
    marshaler_to_value,
    merge_and_format_kvs,
    merge_kvs,
    stringer_to_string,
    with_values,
)


class Named:
    def __init__(self, text):
        self.text = text

    def __str__(self):
        return self.text


class BrokenStr:
    def __str__(self):
        raise RuntimeError("boom")


class Marshal:
    def __init__(self, value):
        self.value = value

    def marshal_log(self):
        return self.value


class BrokenMarshal:
    def marshal_log(self):
        raise RuntimeError("boom")


class Writer:
    def write_text(self):
        return '"ns/name"'


class BrokenWriter:
    def write_text(self):
        raise RuntimeError("boom")


class Valuer:
    def __init__(self, value):
        self.value = value

    def log_value(self):
        return self.value


@dataclass
class Point:
    x: int
    y: str
    _hidden: int = 0


def _value_part(rendered, key):
    prefix = f" {key}="
    assert rendered.startswith(prefix)
    return rendered[len(prefix):]


def test_with_values_empty_new_keeps_old():
    assert with_values(["a", 1], []) == ["a", 1]


def test_with_values_pads_missing_value():
    old = ["a", 1]
    result = with_values(old, ["b"])
    assert result == ["a", 1, "b", MISSING_VALUE]
    assert old == ["a", 1]


def test_merge_kvs_empty():
    assert merge_kvs([], []) == []


def test_merge_kvs_second_used_directly():
    assert merge_kvs([], ["a", 1, "b", 2]) == ["a", 1, "b", 2]


def test_merge_kvs_overrides_and_pads():
    result = merge_kvs(["a", 1, "b", 2], ["b", 3, "c"])
    assert result == ["a", 1, "b", 3, "c", MISSING_VALUE]
    assert len(result) % 2 == 0


def test_simple_string_quoted():
    assert json.loads(_value_part(kv_format("key", "hello world"), "key")) == "hello world"


def test_multiline_string_without_trailing_newline():
    assert kv_format("k", "line 1\nline 2") == " k=<\n\tline 1\n\tline 2\n >"


def test_multiline_string_with_trailing_newline():
    assert kv_format("k", "line 1\n") == " k=<\n\tline 1\n >"


def test_control_characters_escaped():
    part = _value_part(kv_format("k", "a\tb"), "k")
    assert "\t" not in part
    assert json.loads(part) == "a\tb"


def test_stringer_value():
    assert kv_format("k", Named("ns/name")) == kv_format("k", "ns/name")


def test_stringer_panic_reported():
    assert "<panic: boom>" in kv_format("k", BrokenStr())
    assert stringer_to_string(BrokenStr()) == "<panic: boom>"


def test_exception_value():
    assert kv_format("err", ValueError("bad thing")) == kv_format("err", "bad thing")
    assert error_to_string(ValueError("bad thing")) == "bad thing"


def test_marshaler_returning_string_is_treated_as_string():
    assert kv_format("k", Marshal("a\nb")) == kv_format("k", "a\nb")


def test_marshaler_returning_structure_is_json():
    data = {"a": [1, 2], "b": None}
    assert json.loads(_value_part(kv_format("k", Marshal(data)), "k")) == data


def test_marshaler_panic():
    assert marshaler_to_value(BrokenMarshal()) == "<panic: boom>"


def test_text_writer():
    assert kv_format("obj", Writer()) == ' obj="ns/name"'


def test_text_writer_panic():
    assert kv_format("obj", BrokenWriter()) == ' obj="<panic: boom>"'


def test_bytes_printable():
    assert kv_format("b", b"abc") == kv_format("b", "abc")


def test_bytes_invalid_utf8_escaped():
    assert kv_format("b", b"\xff") == ' b="\\xff"'


def test_bytes_non_ascii_escaped_as_unicode():
    part = _value_part(kv_format("b", "é".encode()), "b")
    assert part.isascii()
    assert json.loads(part) == "é"


@pytest.mark.parametrize("value", [42, None, True, [1, "x"], {"z": 1, "a": 2}, 0.5])
def test_plain_values_are_json(value):
    assert json.loads(_value_part(kv_format("k", value), "k")) == value


def test_dict_keys_sorted():
    part = _value_part(kv_format("k", {"z": 1, "a": 2}), "k")
    assert list(json.loads(part)) == ["a", "z"]


def test_dataclass_skips_private_fields():
    part = _value_part(kv_format("p", Point(1, "two")), "p")
    assert json.loads(part) == {"x": 1, "y": "two"}


def test_integral_float_has_no_fraction():
    part = _value_part(kv_format("f", 3.0), "f")
    assert json.loads(part) == 3
    assert "." not in part


def test_small_float_exponent_cleanup():
    text = generate_json(1e-7)
    assert json.loads(text) == 1e-7
    assert "e-0" not in text


def test_html_characters_escaped_in_json():
    part = _value_part(kv_format("k", {"a": "<b>&"}), "k")
    assert "<" not in part and "&" not in part
    assert json.loads(part) == {"a": "<b>&"}


def test_unsupported_value_reports_internal_error():
    assert "<internal error:" in kv_format("k", float("nan"))
    assert "<internal error:" in kv_format("k", lambda: None)


def test_cycle_reports_internal_error():
    data = []
    data.append(data)
    assert "<internal error:" in kv_format("k", data)


def test_hook_replaces_json():
    formatter = Formatter(any_to_string_hook=lambda value: "HOOK")
    assert formatter.kv_format("k", {"a": 1}) == " k=HOOK"
    assert formatter.kv_format("k", "text") == kv_format("k", "text")


def test_non_string_key():
    assert kv_format(7, "v").startswith(" 7=")


def test_log_valuer_string():
    assert kv_format("k", Valuer("a\nb")) == kv_format("k", "a\nb")


def test_log_valuer_group_keeps_order():
    part = _value_part(kv_format("ref", Valuer({"name": "n", "namespace": "ns"})), "ref")
    assert list(json.loads(part).items()) == [("name", "n"), ("namespace", "ns")]


def test_kv_list_format_pairs_and_missing():
    result = kv_list_format("a", 1, "b")
    assert result == kv_format("a", 1) + kv_format("b", MISSING_VALUE)
    assert result.endswith('="(MISSING)"')


def test_merge_and_format_kvs_empty():
    assert merge_and_format_kvs([], []) == ""


def test_merge_and_format_kvs_matches_merge_kvs():
    first = ["a", 1, "b", 2]
    second = ["b", 3, "c"]
    expected = kv_list_format(*merge_kvs(first, second))
    assert merge_and_format_kvs(first, second) == expected


def test_merge_and_format_kvs_second_only():
    assert merge_and_format_kvs([], ["x", "y"]) == kv_format("x", "y")


def test_generate_json_prefers_strings():
    assert json.loads(generate_json(Named("hi"))) == "hi"
    assert json.loads(generate_json(ValueError("oops"))) == "oops"
    assert json.loads(generate_json(Marshal([1, 2]))) == [1, 2]


def test_generate_json_single_line():
    text = generate_json("a\nb")
    assert "\n" not in text
    assert json.loads(text) == "a\nb"


def test_generate_json_nested_group():
    text = generate_json(Valuer({"outer": Valuer({"inner": 1})}))
    assert json.loads(text) == {"outer": {"inner": 1}}
    assert "\n" not in text