"""Tests for the buffered command printer and formatting helpers."""

import io
import json

import pytest

from collabctl.api.models import Post
from collabctl.printer import FORMAT_JSON, Printer, format_timestamp


@pytest.fixture
def json_printer(out: io.StringIO, err: io.StringIO) -> Printer:
    return Printer(format=FORMAT_JSON, stream=out, error_stream=err)


# ============================================================================
# PLAIN FORMAT
# ============================================================================


@pytest.mark.unit
def test_nothing_written_before_flush(printer, out):
    printer.print("hello")

    assert out.getvalue() == ""

    printer.flush()

    assert out.getvalue() == "hello\n"
    assert printer.lines == []


@pytest.mark.unit
def test_template_uses_model_fields_and_extras(printer, out):
    post = Post(id="p1", message="hi {there}")

    printer.print_template("{id} [{username}] {message}", post, username="al{ice}")
    printer.flush()

    # Braces inside values are not re-interpreted as template fields
    assert out.getvalue() == "p1 [al{ice}] hi {there}\n"


@pytest.mark.unit
def test_template_accepts_plain_mappings(printer, out):
    printer.print_template("{a}-{b}", {"a": 1}, b=2)
    printer.flush()

    assert out.getvalue() == "1-2\n"


@pytest.mark.unit
def test_quiet_suppresses_output_but_not_errors(printer, out, err):
    printer.quiet = True

    printer.print("hidden")
    printer.print_error("Error: boom")
    printer.flush()

    assert out.getvalue() == ""
    assert err.getvalue() == "Error: boom\n"


@pytest.mark.unit
def test_flush_with_nothing_queued_writes_nothing(printer, out):
    printer.flush()

    assert out.getvalue() == ""


# ============================================================================
# JSON FORMAT
# ============================================================================


@pytest.mark.unit
def test_json_template_queues_the_value_not_the_rendering(json_printer, out):
    json_printer.print_template("[{username}] {message}", Post(id="p1", message="hi"), username="x")
    json_printer.flush()

    document = json.loads(out.getvalue())
    assert isinstance(document, list)
    assert document[0]["id"] == "p1"
    assert document[0]["message"] == "hi"
    assert "username" not in document[0]


@pytest.mark.unit
def test_json_single_prints_lone_object(json_printer, out):
    json_printer.single = True
    json_printer.print(Post(id="p1"))
    json_printer.flush()

    document = json.loads(out.getvalue())
    assert isinstance(document, dict)
    assert document["id"] == "p1"


@pytest.mark.unit
def test_json_single_with_several_values_prints_array(json_printer, out):
    json_printer.single = True
    json_printer.print(Post(id="p1"))
    json_printer.print(Post(id="p2"))
    json_printer.flush()

    document = json.loads(out.getvalue())
    assert [item["id"] for item in document] == ["p1", "p2"]


@pytest.mark.unit
def test_json_each_flush_is_its_own_document(json_printer, out):
    json_printer.single = True
    json_printer.print({"n": 1})
    json_printer.flush()
    json_printer.print({"n": 2})
    json_printer.flush()

    first, second = out.getvalue().strip().split("\n}\n")
    assert json.loads(first + "\n}") == {"n": 1}
    assert json.loads(second) == {"n": 2}


# ============================================================================
# HELPERS
# ============================================================================


@pytest.mark.unit
def test_format_timestamp():
    assert format_timestamp(0) == "-"
    assert format_timestamp(None) == "-"
    assert format_timestamp(1_700_000_000_000) == "2023-11-14 22:13:20"
