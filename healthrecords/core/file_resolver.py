"""Locate a report's attachment URLs and tell PDFs from images."""

import json
import re
from typing import Any, Dict, List, Optional

from .report_normalizer import dig
from ..utils.normalization import as_list, clean_strings, dedupe, split_url_list
from ..utils.log_utils import get_logger

logger = get_logger(__name__)

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "webp", "bmp", "svg", "tiff", "tif", "heic", "heif", "avif", "jfif")

_PDF_EXTENSION = re.compile(r"\.pdf$", re.IGNORECASE)
_IMAGE_EXTENSION = re.compile(r"\.(" + "|".join(IMAGE_EXTENSIONS) + r")$", re.IGNORECASE)

_PDF_CONTENT_HINTS = ("application/pdf", "content-type=application/pdf", "response-content-type=application/pdf")
_IMAGE_CONTENT_HINTS = ("image/", "content-type=image/", "response-content-type=image/")

FILE_TYPES = ("pdf", "image")


def _strip_query(url: str) -> str:
    return url.split("?")[0].split("#")[0]


def is_pdf_url(url: Any) -> bool:
    if not url or not isinstance(url, str):
        return False
    if _PDF_EXTENSION.search(_strip_query(url)):
        return True
    lowered = url.lower()
    return any(hint in lowered for hint in _PDF_CONTENT_HINTS)


def is_image_url(url: Any) -> bool:
    if not url or not isinstance(url, str):
        return False
    if _IMAGE_EXTENSION.search(_strip_query(url)):
        return True
    lowered = url.lower()
    return any(hint in lowered for hint in _IMAGE_CONTENT_HINTS)


def classify_file_type(url: Any, file_type_hint: Optional[str] = None) -> str:
    """Return "pdf", "image" or "unknown" for a file URL.

    Checks, in order: the report-level ``fileType`` hint, the extension of the
    URL without its query string, content-type hints anywhere in the URL (for
    pre-signed storage URLs), and finally loose keywords in the path.
    """
    if not url or not isinstance(url, str):
        return "unknown"

    if file_type_hint in FILE_TYPES:
        return file_type_hint

    path = _strip_query(url)
    if _PDF_EXTENSION.search(path):
        return "pdf"
    if _IMAGE_EXTENSION.search(path):
        return "image"

    lowered = url.lower()
    if any(hint in lowered for hint in _PDF_CONTENT_HINTS):
        return "pdf"
    if any(hint in lowered for hint in _IMAGE_CONTENT_HINTS):
        return "image"

    path_lower = path.lower()
    if "pdf" in path_lower or "document" in path_lower:
        return "pdf"
    if "image" in path_lower or "photo" in path_lower or "picture" in path_lower:
        return "image"

    return "unknown"


def _from_report_doc(report: Dict[str, Any]) -> List[str]:
    return split_url_list(report.get("reportDoc"))


def _from_report_url(report: Dict[str, Any]) -> List[str]:
    return split_url_list(report.get("reportUrl"))


def _from_report_data_fields(report: Dict[str, Any]) -> List[str]:
    report_data = report.get("reportData")
    if not isinstance(report_data, dict):
        return []
    urls = split_url_list(report_data.get("url"))
    if urls:
        return urls
    for key in ("pdfUrl", "imageUrl"):
        urls = clean_strings([report_data.get(key)])
        if urls:
            return urls
    return []


def _load_shared_payload(report_data: Any) -> Optional[Dict[str, Any]]:
    if isinstance(report_data, dict):
        return report_data
    if isinstance(report_data, str):
        try:
            payload = json.loads(report_data)
        except ValueError:
            return None
        return payload if isinstance(payload, dict) else None
    return None


def _from_shared_payload(report: Dict[str, Any]) -> List[str]:
    if not (report.get("isOmeraldSharedReport") or report.get("isSharedReport")):
        return []
    report_data = report.get("reportData")
    if not report_data:
        return []

    if isinstance(report_data, str):
        direct = report_data.strip()
        if direct.startswith("http://") or direct.startswith("https://"):
            return [direct]

    payload = _load_shared_payload(report_data)
    if payload is None:
        if isinstance(report_data, str):
            logger.debug("Shared reportData is neither a URL nor JSON; skipping")
        return []

    for key in ("url", "directUrl"):
        urls = split_url_list(payload.get(key))
        if urls:
            return urls

    files = payload.get("files")
    if isinstance(files, list):
        file_urls = []
        for entry in files:
            if isinstance(entry, str):
                file_urls.append(entry)
            elif isinstance(entry, dict):
                file_urls.append(entry.get("url") or entry.get("directUrl"))
        return clean_strings(file_urls)

    return []


def _from_component_images(report: Dict[str, Any]) -> List[str]:
    images = []
    for component in as_list(dig(report, "parsedData", "components")):
        if isinstance(component, dict) and isinstance(component.get("images"), list):
            images.extend(component["images"])
    return clean_strings(images)


# Strict priority: the first source that yields any URL wins.
FILE_SOURCES = (
    _from_report_doc,
    _from_report_url,
    _from_report_data_fields,
    _from_shared_payload,
    _from_component_images,
)


def resolve_report_files(report: Any) -> List[str]:
    """Ordered, de-duplicated attachment URLs of a report ([] if none)."""
    if not isinstance(report, dict):
        return []
    for source in FILE_SOURCES:
        urls = source(report)
        if urls:
            return dedupe(urls)
    return []


def has_valid_pdf(report: Any) -> bool:
    """True when ``reportUrl``/``reportDoc`` carries at least one PDF."""
    if not isinstance(report, dict):
        return False
    raw = report.get("reportUrl") or report.get("reportDoc")
    if not raw:
        return False
    hint = report.get("fileType")
    return any(
        is_pdf_url(url) or classify_file_type(url, hint) == "pdf"
        for url in split_url_list(raw)
    )


def describe_files(report: Any, urls: Optional[List[str]] = None) -> List[Dict[str, str]]:
    """Pair each attachment URL with its detected file type."""
    if urls is None:
        urls = resolve_report_files(report)
    hint = report.get("fileType") if isinstance(report, dict) else None
    return [{"url": url, "fileType": classify_file_type(url, hint)} for url in urls]
