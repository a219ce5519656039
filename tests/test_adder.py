import pytest

from sysprog.adder import main, parse_query, render


def test_parse_query_numbers():
    assert parse_query("15000&213") == (15000, 213)


def test_parse_query_lenient_like_atoi():
    assert parse_query("abc&-4x") == (0, -4)


def test_parse_query_missing_is_zero():
    assert parse_query(None) == (0, 0)


def test_parse_query_without_separator():
    with pytest.raises(ValueError):
        parse_query("15000")


def test_render_sum_and_length():
    output = render("15000&213")
    header, _sep, body = output.partition("\r\n\r\n")
    assert header.startswith("Connection: close\r\n")
    assert f"Content-length: {len(body)}" in header
    assert "The answer is: 15000 + 213 = 15213\r\n<p>" in body
    assert body.startswith("Welcome to add.com: THE Internet addition portal.\r\n<p>")
    assert body.endswith("Thanks for visiting!\r\n")


def test_main_reads_environment(monkeypatch, capsys):
    monkeypatch.setenv("QUERY_STRING", "1&2")
    assert main([]) == 0
    assert capsys.readouterr().out == render("1&2")


def test_main_bad_query(monkeypatch, capsys):
    monkeypatch.setenv("QUERY_STRING", "nothing")
    assert main([]) == 1
    assert capsys.readouterr().out == ""