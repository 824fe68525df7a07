import io

import pytest

from tinyunix.grep import grep, main, match


@pytest.mark.parametrize(
    "pattern,text,expected",
    [
        ("^ab", "abc", True),
        ("^ab", "cab", False),
        ("a*b", "xb", True),
        ("c$", "abc", True),
        ("c$", "cab", False),
        ("x.z", "wxyz", True),
        ("", "", True),
        ("q", "abc", False),
    ],
)
def test_match(pattern, text, expected):
    assert match(pattern, text) is expected


def test_grep_filters_lines():
    out = io.StringIO()
    grep("o", io.StringIO("one\ntwo\nthree\nfour"), out)
    assert out.getvalue() == "one\ntwo\n"


def test_main_errors(tmp_path, capsys):
    assert main([]) == 1
    assert main(["x", str(tmp_path / "missing")]) == 1
    assert "cannot open" in capsys.readouterr().out


def test_main_file(tmp_path, capsys):
    f = tmp_path / "f"
    f.write_text("apple\nbanana\n")
    assert main(["^b", str(f)]) == 0
    assert capsys.readouterr().out == "banana\n"