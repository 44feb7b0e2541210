from __future__ import annotations

from pathlib import Path
import tempfile
from zipfile import ZipFile

import pytest

from epubtxt.cli.epub2txt import main as epub2txt_main

_CONTAINER = (
    '<?xml version="1.0"?>'
    '<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">'
    '<rootfiles><rootfile full-path="OEBPS/content.opf"/></rootfiles></container>'
)

_OPF = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<package xmlns="http://www.idpf.org/2007/opf" version="2.0">'
    '<metadata xmlns:dc="http://purl.org/dc/elements/1.1/">'
    "<dc:title>Книга</dc:title><dc:creator>Автор</dc:creator>"
    '<meta name="calibre:series_index" content="2.0"/>'
    "</metadata>"
    '<manifest><item id="c1" href="c1.xhtml"/><item id="c2" href="c2.xhtml"/></manifest>'
    '<spine><itemref idref="c1"/><itemref idref="c2"/></spine>'
    "</package>"
)


def _write_book(path: Path) -> Path:
    with ZipFile(path, "w") as archive:
        archive.writestr("mimetype", "application/epub+zip")
        archive.writestr("META-INF/container.xml", _CONTAINER)
        archive.writestr("OEBPS/content.opf", _OPF)
        archive.writestr("OEBPS/c1.xhtml", "<html><body><p>Первая глава начинается здесь.</p></body></html>")
        archive.writestr("OEBPS/c2.xhtml", "<html><body><p>Вторая глава.</p></body></html>")
    return path


@pytest.fixture(autouse=True)
def _isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(scratch))
    for name in (
        "EPUBTXT_WIDTH",
        "EPUBTXT_META",
        "EPUBTXT_NOTEXT",
        "EPUBTXT_CALIBRE",
        "EPUBTXT_RAW",
        "EPUBTXT_ASCII",
        "EPUBTXT_SECTION_SEPARATOR",
        "EPUBTXT_EXTRACTOR",
    ):
        monkeypatch.delenv(name, raising=False)


def test_cli_prints_text_in_spine_order(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    book = _write_book(tmp_path / "book.epub")

    exit_code = epub2txt_main([str(book)])
    output = capsys.readouterr().out

    assert exit_code == 0
    assert output == "Первая глава начинается здесь.\nВторая глава.\n"


def test_cli_meta_calibre_separator_and_width(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    book = _write_book(tmp_path / "book.epub")

    exit_code = epub2txt_main([str(book), "--meta", "--calibre", "-s", "***", "-w", "15"])
    output = capsys.readouterr().out

    assert exit_code == 0
    assert output.splitlines() == [
        "Title: Книга",
        "Creator: Автор",
        "Calibre series",
        "index: 2",
        "***",
        "Первая глава",
        "начинается",
        "здесь.",
        "***",
        "Вторая глава.",
    ]


def test_cli_metadata_only(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    book = _write_book(tmp_path / "book.epub")

    exit_code = epub2txt_main([str(book), "-m", "-n"])

    assert exit_code == 0
    assert capsys.readouterr().out == "Title: Книга\nCreator: Автор\n"


def test_cli_continues_after_failed_input_and_exits_nonzero(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    caplog: pytest.LogCaptureFixture,
) -> None:
    book = _write_book(tmp_path / "book.epub")

    exit_code = epub2txt_main([str(tmp_path / "missing.epub"), str(book)])

    assert exit_code == 1
    assert "Вторая глава." in capsys.readouterr().out
    assert "missing.epub" in caplog.text


def test_cli_uses_environment_defaults(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    book = _write_book(tmp_path / "book.epub")
    monkeypatch.setenv("EPUBTXT_META", "yes")
    monkeypatch.setenv("EPUBTXT_NOTEXT", "1")

    assert epub2txt_main([str(book)]) == 0
    assert capsys.readouterr().out == "Title: Книга\nCreator: Автор\n"


def test_cli_rejects_invalid_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    book = _write_book(tmp_path / "book.epub")
    monkeypatch.setenv("EPUBTXT_WIDTH", "wide")

    assert epub2txt_main([str(book)]) == 2
