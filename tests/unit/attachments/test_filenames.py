from __future__ import annotations

import pytest

from aihistory.attachments.filenames import (
    DEFAULT_MIME,
    MAX_FILENAME_CHARS,
    build_data_url,
    file_extension,
    filename_from_url,
    normalize_mime,
    parse_content_disposition_filename,
    refine_mime,
    sanitize_filename,
)

DISPOSITION_CASES = [
    ("attachment; filename*=UTF-8''rapport%20final.pdf", "rapport final.pdf", "rfc 5987"),
    (
        "attachment; filename=\"fallback.pdf\"; filename*=UTF-8''r%C3%A9sum%C3%A9.pdf",
        "résumé.pdf",
        "extended form wins",
    ),
    ("attachment; filename*=ISO-8859-1''caf%E9.pdf", "café.pdf", "latin-1 charset honoured"),
    ("attachment; filename*=windows-1252'fr'%80uro.txt", "€uro.txt", "cp1252 with language tag"),
    ("attachment; filename*=x-unknown''a%20b.pdf", "a b.pdf", "unknown charset falls back to utf-8"),
    ("attachment; filename*=UTF-8''bad%FF.pdf", "bad%FF.pdf", "undecodable bytes kept encoded"),
    ('attachment; filename="my file.txt"', "my file.txt", "quoted plain form"),
    ("attachment; filename=a+b.csv", "a b.csv", "plus as space"),
    ('attachment; filename="../../etc/passwd"', ".._.._etc_passwd", "path separators replaced"),
    ("inline", None, "no filename"),
    ("", None, "empty header"),
]


@pytest.mark.parametrize("header,expected,desc", DISPOSITION_CASES)
def test_parse_content_disposition_filename(header, expected, desc):
    assert parse_content_disposition_filename(header) == expected, desc


URL_NAME_CASES = [
    ("https://x.example/dl?filename=report.pdf", "report.pdf"),
    ("https://x.example/dl?name=n.txt&filename=f.txt", "f.txt"),
    (
        "https://x.example/dl?response-content-disposition=attachment%3B%20filename%3D%22a.pdf%22",
        "a.pdf",
    ),
    ("https://x.example/files/my%20doc.docx", "my doc.docx"),
    ("https://x.example/files/abc", None),
    ("https://x.example/", None),
]


@pytest.mark.parametrize("url,expected", URL_NAME_CASES)
def test_filename_from_url(url, expected):
    assert filename_from_url(url) == expected


def test_sanitize_filename():
    assert sanitize_filename('  "re:port?.pdf"  ') == "re_port_.pdf"
    assert len(sanitize_filename("a" * 300)) == MAX_FILENAME_CHARS


@pytest.mark.parametrize(
    "name,expected",
    [("A.PDF", "pdf"), ("noext", ""), ("weird.ext with space", ""), ("archive.tar.gz", "gz")],
)
def test_file_extension(name, expected):
    assert file_extension(name) == expected


def test_normalize_mime():
    assert normalize_mime("Application/PDF; charset=binary") == "application/pdf"
    assert normalize_mime(None) == DEFAULT_MIME
    assert normalize_mime("  ") == DEFAULT_MIME


REFINE_CASES = [
    ("application/octet-stream", "a.pdf", "application/pdf", "generic replaced"),
    ("", "photo.png", "image/png", "missing replaced"),
    ("text/plain", "data.csv", "text/csv", "plain text narrowed"),
    ("text/plain", "notes.txt", "text/plain", "plain text kept"),
    ("image/png", "a.pdf", "image/png", "specific mime trusted"),
    ("application/octet-stream", "blob.xyz", "application/octet-stream", "unknown extension"),
    ("", None, DEFAULT_MIME, "nothing known"),
]


@pytest.mark.parametrize("mime,filename,expected,desc", REFINE_CASES)
def test_refine_mime(mime, filename, expected, desc):
    assert refine_mime(mime, filename) == expected, desc


def test_build_data_url():
    assert build_data_url("text/plain", b"hi") == "data:text/plain;base64,aGk="
    assert build_data_url("application/pdf", b"hi", "rapport final (1).pdf") == (
        "data:application/pdf;name=rapport%20final%20(1).pdf;base64,aGk="
    )
