"""Attachment hints: classification, URL discovery and download."""

from __future__ import annotations

from .classify import infer_attachment_kind, infer_attachment_mime, looks_like_file_url
from .discovery import discover_urls, extract_url_candidates_from_text, pick_redirect_url, to_absolute_http_url
from .filenames import build_data_url, filename_from_url, parse_content_disposition_filename
from .resolver import AttachmentResolver

__all__ = [
    "AttachmentResolver",
    "build_data_url",
    "discover_urls",
    "extract_url_candidates_from_text",
    "filename_from_url",
    "infer_attachment_kind",
    "infer_attachment_mime",
    "looks_like_file_url",
    "parse_content_disposition_filename",
    "pick_redirect_url",
    "to_absolute_http_url",
]
