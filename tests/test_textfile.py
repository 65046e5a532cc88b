import pytest

from mugenkit.textfile import KeyValue, TextFile, parse_key_value, strip_comment


def test_strip_comment_cuts_at_semicolon():
    assert strip_comment("key = value ; comment") == "key = value "


def test_strip_comment_keeps_quoted_semicolon():
    assert strip_comment('name = "a;b" ; c') == 'name = "a;b" '


def test_strip_comment_without_comment():
    assert strip_comment("plain line") == "plain line"


def test_parse_key_value_trims():
    assert parse_key_value("  name = Kung Fu Man  ") == KeyValue("name", "Kung Fu Man")


def test_parse_key_value_quoted():
    assert parse_key_value('name = "KFM"') == KeyValue("name", "KFM")


def test_parse_key_value_rejects_other_lines():
    assert parse_key_value("no equals sign") is None


def test_values_and_sections(tmp_path):
    path = tmp_path / "file.def"
    path.write_text("; header\n[Info]\nname = \"KFM\" ; c\nauthor = someone\n[Files]\nsprite = kfm.sff\n")
    with TextFile(path) as text:
        first = text.next_value()
        assert first == KeyValue("name", "KFM")
        assert text.section == "Info"
        assert text.new_section is True
        second = text.next_value()
        assert second == KeyValue("author", "someone")
        assert text.new_section is False
        third = text.next_value()
        assert third == KeyValue("sprite", "kfm.sff")
        assert text.section == "Files"
        assert text.new_section is True
        assert text.next_value() is None


def test_crlf_lines(tmp_path):
    path = tmp_path / "crlf.def"
    path.write_bytes(b"[Info]\r\nname = x\r\n")
    with TextFile(path) as text:
        pairs = list(text.values())
    assert pairs == [KeyValue("name", "x")]


def test_lines_strip_comments(tmp_path):
    path = tmp_path / "lines.txt"
    path.write_text("[A]\none ; two\nthree")
    with TextFile(path) as text:
        assert list(text.lines()) == ["[A]", "one ", "three"]


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        TextFile(tmp_path / "missing.def")


def test_closed_file_cannot_be_read(tmp_path):
    path = tmp_path / "file.def"
    path.write_text("a = b\n")
    with TextFile(path) as text:
        pass
    with pytest.raises(ValueError):
        text.next_line()