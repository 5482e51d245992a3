"""Filename and MIME helpers for downloaded attachments."""

from __future__ import annotations

import base64
import re
from urllib.parse import parse_qsl, quote, unquote, urlsplit

MAX_FILENAME_CHARS = 240
DEFAULT_MIME = "application/octet-stream"

GENERIC_MIMES = frozenset(
    {
        "",
        "application/octet-stream",
        "binary/octet-stream",
        "application/binary",
        "unknown/unknown",
    }
)

EXTENSION_MIMES: dict[str, str] = {
    "pdf": "application/pdf",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "svg": "image/svg+xml",
    "txt": "text/plain",
    "md": "text/markdown",
    "csv": "text/csv",
    "tsv": "text/tab-separated-values",
    "json": "application/json",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "ppt": "application/vnd.ms-powerpoint",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
}

URL_NAME_PARAMS = ("filename", "file", "name")

# Unreserved marks kept literal in data-URL names
_DATA_URL_NAME_SAFE = "!~*'()"

_EDGE_QUOTES_RE = re.compile(r"^[\"']+|[\"']+$")
_UNSAFE_FILENAME_RE = re.compile(r"[\\/:*?\"<>|\x00-\x1f]+")
_EXTENSION_RE = re.compile(r"^[a-z0-9]{1,10}$")


def sanitize_filename(name: str) -> str:
    """Strip quotes, replace path and control characters, cap the length."""
    cleaned = _EDGE_QUOTES_RE.sub("", name.strip())
    cleaned = _UNSAFE_FILENAME_RE.sub("_", cleaned)
    return cleaned.strip()[:MAX_FILENAME_CHARS]


def decode_component(value: str) -> str:
    return unquote(value.replace("+", "%20"))


def decode_extended_value(value: str) -> str:
    """Decode an RFC 5987 ``charset'language'value`` string in its declared charset.

    Unknown charsets and bytes invalid in the declared charset fall back to
    UTF-8, then to the still-encoded text.
    """
    charset, sep, rest = value.partition("'")
    if not sep:
        return unquote(value)
    _language, _, encoded = rest.partition("'")
    for encoding in (charset.strip() or "utf-8", "utf-8"):
        try:
            return unquote(encoded, encoding=encoding, errors="strict")
        except (LookupError, UnicodeDecodeError):
            continue
    return encoded


def parse_content_disposition_filename(header: str) -> str | None:
    """Filename from a Content-Disposition value, preferring RFC 5987 ``filename*``."""
    if not header:
        return None
    parts = [part.strip() for part in header.split(";")]
    for part in parts:
        if not part.lower().startswith("filename*="):
            continue
        value = _EDGE_QUOTES_RE.sub("", part[len("filename*=") :].strip())
        decoded = sanitize_filename(decode_extended_value(value))
        if decoded:
            return decoded
    for part in parts:
        if not part.lower().startswith("filename="):
            continue
        decoded = sanitize_filename(decode_component(part[len("filename=") :].strip()))
        if decoded:
            return decoded
    return None


def filename_from_url(url: str) -> str | None:
    try:
        parsed = urlsplit(url)
    except ValueError:
        return None
    params: dict[str, str] = {}
    for key, value in parse_qsl(parsed.query, keep_blank_values=False):
        params.setdefault(key, value)

    for key in URL_NAME_PARAMS:
        value = params.get(key)
        if value:
            name = sanitize_filename(value)
            if name:
                return name

    disposition = params.get("response-content-disposition")
    if disposition:
        name = parse_content_disposition_filename(disposition)
        if name:
            return name

    segments = [segment for segment in parsed.path.split("/") if segment]
    if segments:
        last = sanitize_filename(decode_component(segments[-1]))
        if "." in last:
            return last
    return None


def file_extension(name: str) -> str:
    clean = name.strip().lower()
    if "." not in clean:
        return ""
    ext = clean.rsplit(".", 1)[1]
    return ext if _EXTENSION_RE.match(ext) else ""


def mime_from_filename(name: str) -> str | None:
    return EXTENSION_MIMES.get(file_extension(name))


def normalize_mime(content_type: str | None) -> str:
    """Bare, lower-cased MIME type from a Content-Type header value."""
    bare = (content_type or "").split(";", 1)[0].strip().lower()
    return bare or DEFAULT_MIME


def is_generic_mime(mime: str) -> bool:
    return mime.strip().lower() in GENERIC_MIMES


def refine_mime(mime: str, filename: str | None) -> str:
    """Replace a placeholder (or plain-text) MIME with one implied by the filename."""
    implied = mime_from_filename(filename) if filename else None
    if implied is None:
        return mime or DEFAULT_MIME
    if is_generic_mime(mime) or (mime == "text/plain" and implied != "text/plain"):
        return implied
    return mime


def build_data_url(mime: str, data: bytes, filename: str | None = None) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    safe_name = sanitize_filename(filename) if filename else ""
    if safe_name:
        return f"data:{mime};name={quote(safe_name, safe=_DATA_URL_NAME_SAFE)};base64,{encoded}"
    return f"data:{mime};base64,{encoded}"


__all__ = [
    "EXTENSION_MIMES",
    "GENERIC_MIMES",
    "build_data_url",
    "file_extension",
    "filename_from_url",
    "is_generic_mime",
    "mime_from_filename",
    "normalize_mime",
    "parse_content_disposition_filename",
    "refine_mime",
    "sanitize_filename",
]
