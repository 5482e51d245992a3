"""Cheap attachment hints from a URL (and its visible label) alone."""

from __future__ import annotations

import re

from aihistory.lib.models import AttachmentKind

from .filenames import EXTENSION_MIMES

FILE_LIKE_EXTENSIONS = frozenset(
    {
        "pdf", "doc", "docx", "ppt", "pptx", "xls", "xlsx", "csv", "txt", "zip", "rar", "7z",
        "json", "md", "png", "jpg", "jpeg", "webp", "gif", "bmp", "svg", "mp3", "mp4", "wav",
    }
)
IMAGE_EXTENSIONS = frozenset({"png", "jpg", "jpeg", "webp", "gif", "bmp", "svg"})

CLOUD_DRIVE_MARKERS = (
    "drive.google.com/file/",
    "drive.google.com/open",
    "docs.google.com/document/",
    "docs.google.com/presentation/",
    "docs.google.com/spreadsheets/",
)

_DATA_URL_MIME_RE = re.compile(r"^data:([^;,]+)[;,]", re.IGNORECASE)
_ESTUARY_RE = re.compile(r"/backend-api/estuary/content", re.IGNORECASE)
_FILE_PATH_RE = re.compile(r"/backend-api/files/|/backend-api/estuary/content|/api/files/|/files/", re.IGNORECASE)
_FILE_QUERY_RE = re.compile(r"[?&](download|filename|attachment)=", re.IGNORECASE)
_IMAGE_LABEL_RE = re.compile(r"\.(png|jpg|jpeg|webp|gif|bmp|svg)\b", re.IGNORECASE)
_IMAGE_FORMAT_MARKERS = tuple(f"format={ext}" for ext in sorted(IMAGE_EXTENSIONS)) + ("mime=image/",)
_PDF_MARKERS = (".pdf", "format=pdf", "mime=application/pdf")


def data_url_mime(url: str) -> str:
    match = _DATA_URL_MIME_RE.match(url) if url.startswith("data:") else None
    return match.group(1).lower() if match else ""


def url_extension(url: str) -> str:
    path = url.split("?", 1)[0].split("#", 1)[0]
    return path.rsplit(".", 1)[-1].lower() if "." in path else ""


def looks_like_cloud_drive_file_url(url: str) -> bool:
    lower = url.lower()
    return any(marker in lower for marker in CLOUD_DRIVE_MARKERS)


def looks_like_pdf_url(url: str) -> bool:
    if data_url_mime(url) == "application/pdf":
        return True
    lower = url.lower()
    return any(marker in lower for marker in _PDF_MARKERS)


def looks_like_image_url(url: str) -> bool:
    if data_url_mime(url).startswith("image/"):
        return True
    lower = url.lower()
    if _ESTUARY_RE.search(lower):
        return True
    if any(marker in lower for marker in _IMAGE_FORMAT_MARKERS):
        return True
    return url_extension(url) in IMAGE_EXTENSIONS


def looks_like_file_url(url: str) -> bool:
    """Whether a link plausibly points at a downloadable file rather than a page."""
    if url_extension(url) in FILE_LIKE_EXTENSIONS:
        return True
    if looks_like_image_url(url) or looks_like_pdf_url(url) or looks_like_cloud_drive_file_url(url):
        return True
    return bool(_FILE_PATH_RE.search(url) or _FILE_QUERY_RE.search(url))


def infer_attachment_kind(url: str, label: str = "") -> AttachmentKind:
    data_mime = data_url_mime(url)
    if data_mime == "application/pdf":
        return AttachmentKind.PDF
    if data_mime.startswith("image/"):
        return AttachmentKind.IMAGE

    lower_label = label.lower()
    lower_url = url.lower()
    # Estuary serves every upload type; only the label or query can tell them apart
    if _ESTUARY_RE.search(lower_url):
        if "pdf" in lower_label or "format=pdf" in lower_url or "mime=application/pdf" in lower_url:
            return AttachmentKind.PDF
        if _IMAGE_LABEL_RE.search(lower_label) or any(m in lower_url for m in _IMAGE_FORMAT_MARKERS):
            return AttachmentKind.IMAGE
        return AttachmentKind.FILE

    if "pdf" in lower_label or looks_like_pdf_url(url):
        return AttachmentKind.PDF
    if looks_like_image_url(url):
        return AttachmentKind.IMAGE
    return AttachmentKind.FILE


def infer_attachment_mime(kind: AttachmentKind, url: str) -> str | None:
    data_mime = data_url_mime(url)
    if data_mime:
        return data_mime
    if kind is AttachmentKind.PDF or looks_like_pdf_url(url):
        return "application/pdf"
    if not looks_like_image_url(url):
        return None
    ext = url_extension(url)
    return EXTENSION_MIMES.get(ext) if ext in IMAGE_EXTENSIONS else None


def infer_kind_from_mime(mime: str | None) -> AttachmentKind | None:
    normalized = (mime or "").strip().lower()
    if normalized.startswith("application/pdf"):
        return AttachmentKind.PDF
    if normalized.startswith("image/"):
        return AttachmentKind.IMAGE
    return None


__all__ = [
    "data_url_mime",
    "infer_attachment_kind",
    "infer_attachment_mime",
    "infer_kind_from_mime",
    "looks_like_cloud_drive_file_url",
    "looks_like_file_url",
    "looks_like_image_url",
    "looks_like_pdf_url",
    "url_extension",
]
