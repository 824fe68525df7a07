import io

import pytest

from tinyunix.fmt import format_message, fprintf, printf


def test_plain_text_passes_through():
    assert format_message("init: starting sh\n") == "init: starting sh\n"


def test_signed_decimal():
    assert format_message("%d", -42) == "-42"
    assert format_message("%d", 0) == "0"


def test_long_modifiers_match_plain_decimal():
    assert format_message("%ld", 7) == format_message("%d", 7)
    assert format_message("%lld", 7) == format_message("%d", 7)


def test_values_pass_through_32_bits():
    assert format_message("%d", 2**32 + 5) == format_message("%d", 5)


def test_hex_uses_upper_case_digits():
    assert format_message("%x", 255) == "FF"


def test_unsigned_of_negative():
    assert format_message("%u", -1) == "4294967295"


def test_pointer_is_zero_padded():
    assert format_message("%p", 0x1234) == "0x0000000000001234"


def test_pointer_width_is_constant():
    assert len(format_message("%p", 0)) == len(format_message("%p", 2**64 - 1))


def test_string_and_null():
    assert format_message("cat: cannot open %s\n", "x") == "cat: cannot open x\n"
    assert format_message("%s", None) == "(null)"


def test_percent_and_unknown_directive():
    assert format_message("100%%") == "100%"
    assert format_message("%q") == "%q"
    assert format_message("%l") == "%l"


def test_trailing_percent_is_dropped():
    assert format_message("abc%") == "abc"


def test_arguments_consumed_in_order():
    assert format_message("%d %s %d", 1, "two", 3) == "1 two 3"


def test_missing_argument_raises():
    with pytest.raises(TypeError):
        format_message("%d %d", 1)


def test_fprintf_writes_to_stream():
    stream = io.StringIO()
    fprintf(stream, "ls: cannot open %s\n", "dir")
    assert stream.getvalue() == "ls: cannot open dir\n"


def test_printf_writes_to_stdout(capsys):
    printf("%d %d %d %s\n", 1, 2, 3, "file")
    assert capsys.readouterr().out == "1 2 3 file\n"