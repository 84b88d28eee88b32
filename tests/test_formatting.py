import json
from dataclasses import dataclass

from klogcore.formatting import FormatAny, format_value
from klogcore.serialize import kv_format


@dataclass
class TypeMeta:
    Kind: str

    def __str__(self):
        return "kind is " + self.Kind

    def marshal_log(self):
        return self.Kind


@dataclass
class Config(TypeMeta):
    RealField: int = 0


PRETTY = '{\n  "Kind": "config",\n  "RealField": 42\n}\n'


def make_config():
    return Config(Kind="config", RealField=42)


def test_format_string_form():
    obj = make_config()
    assert str(obj) == "kind is config"
    assert str(format_value(obj)) == PRETTY


def test_format_marshal_log_has_no_string_method():
    marshaled = format_value(make_config()).marshal_log()
    assert "kind is config" not in str(marshaled)


def test_format_marshal_log_json():
    marshaled = format_value(make_config()).marshal_log()
    assert json.dumps(marshaled, separators=(",", ":")) == '{"Kind":"config","RealField":42}'


def test_format_value_returns_wrapper():
    obj = make_config()
    assert format_value(obj) == FormatAny(obj)


def test_format_sorts_mapping_keys():
    text = str(format_value({"b": 1, "a": [1, 2]}))
    assert text == '{\n  "a": [\n    1,\n    2\n  ],\n  "b": 1\n}\n'


def test_format_escapes_html():
    assert str(format_value("<a&b>")) == '"\\u003ca\\u0026b\\u003e"\n'


def test_format_error_for_unsupported_value():
    assert str(format_value({1.5: "x"})).startswith("error marshaling FormatAny to JSON:")
    assert str(format_value(float("nan"))).startswith("error marshaling FormatAny to JSON:")


def test_format_round_trip_through_json():
    value = {"list": [1, "two", None, True], "nested": {"k": "v"}}
    assert json.loads(str(format_value(value))) == value


def test_format_logged_as_multiline_block():
    expected = ' obj=<\n\t{\n\t  "Kind": "config",\n\t  "RealField": 42\n\t}\n >'
    assert kv_format("obj", format_value(make_config())) == expected