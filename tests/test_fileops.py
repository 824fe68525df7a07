import io

from tinyunix.fileops import fmtname, kill_main, ln_main, ls, mkdir_main, rm_main


def test_fmtname_pads_and_keeps_long():
    assert fmtname("a/b/cat") == "cat" + " " * 11
    assert fmtname("x/12345678901234567") == "12345678901234567"


def test_ls_file_and_dir(tmp_path):
    f = tmp_path / "data"
    f.write_bytes(b"12345")
    out = io.StringIO()
    ls(str(f), out)
    fields = out.getvalue().split()
    assert fields[0] == "data"
    assert fields[1] == "2"
    assert fields[3] == "5"
    out = io.StringIO()
    ls(str(tmp_path), out)
    names = [line.split()[0] for line in out.getvalue().splitlines()]
    assert names == [".", "..", "data"]


def test_mkdir_ln_rm(tmp_path, capsys):
    d = tmp_path / "d"
    assert mkdir_main([str(d)]) == 0
    assert d.is_dir()
    assert mkdir_main([str(d)]) == 0
    assert "failed to create" in capsys.readouterr().err
    a = tmp_path / "a"
    a.write_text("x")
    assert ln_main([str(a), str(tmp_path / "b")]) == 0
    assert (tmp_path / "b").read_text() == "x"
    assert rm_main([str(a)]) == 0
    assert not a.exists()


def test_usage_errors():
    assert ln_main(["one"]) == 1
    assert rm_main([]) == 1
    assert mkdir_main([]) == 1
    assert kill_main([]) == 1