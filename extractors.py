"""Turn uploaded files into prompt material.

Documents become plain text; Excel templates become an ordered header row
and, optionally, a small preview of sample rows.
"""

import io
import logging
from pathlib import PurePath
from typing import Any, List, Tuple

import docx
import pdfplumber
from openpyxl import load_workbook

from constants import SAMPLE_ROW_COUNT
from errors import ExtractionError, UnsupportedFileTypeError

logger = logging.getLogger(__name__)


def file_type(file_name: str) -> str:
    """Lower-cased extension without the dot (``"report.PDF"`` -> ``"pdf"``)."""
    return PurePath(file_name).suffix.lower().lstrip(".")


# ---------------------------------------------------------------------------
# Document text
# ---------------------------------------------------------------------------


def extract_pdf_text(content: bytes) -> str:
    """Words of each page joined by spaces, pages joined by newlines."""
    pages: List[str] = []
    with pdfplumber.open(io.BytesIO(content)) as pdf:
        for page in pdf.pages:
            words = page.extract_words()
            pages.append(" ".join(w["text"] for w in words))
    return "\n".join(pages).strip()


def extract_docx_text(content: bytes) -> str:
    document = docx.Document(io.BytesIO(content))
    blocks = [p.text for p in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            for cell in row.cells:
                blocks.append(cell.text)
    return "\n\n".join(blocks)


def extract_txt_text(content: bytes) -> str:
    return content.decode("utf-8", errors="replace")


_EXTRACTORS = {
    "pdf": extract_pdf_text,
    "docx": extract_docx_text,
    "txt": extract_txt_text,
}

# Tabular documents contribute no narrative text to the prompt.
_SKIPPED = {"xlsx", "csv"}


def extract_file_content(file_name: str, content: bytes) -> str:
    """Extract plain text from an uploaded document.

    Raises
    ------
    UnsupportedFileTypeError
        The extension is not one of pdf, docx, txt, xlsx or csv.
    ExtractionError
        The file has a supported extension but could not be read.
    """
    kind = file_type(file_name)
    if kind in _SKIPPED:
        return ""
    extractor = _EXTRACTORS.get(kind)
    if extractor is None:
        raise UnsupportedFileTypeError(
            f"Unsupported file type for content extraction: {file_name}"
        )
    try:
        return extractor(content)
    except Exception as exc:
        logger.exception("Error extracting %s content from %s", kind.upper(), file_name)
        raise ExtractionError(
            f"Failed to extract {kind.upper()} content. Please try again."
        ) from exc


# ---------------------------------------------------------------------------
# Excel templates
# ---------------------------------------------------------------------------


def _is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def _unique_headers(headers: List[str]) -> List[str]:
    """Suffix repeated headers with their occurrence count: ``Steps (2)``."""
    seen: dict = {}
    unique: List[str] = []
    for header in headers:
        seen[header] = seen.get(header, 0) + 1
        unique.append(header if seen[header] == 1 else f"{header} ({seen[header]})")
    return unique


def _read_rows(content: bytes, row_count: int) -> Tuple[int, List[Tuple[Any, ...]]]:
    """Return the first column index and the first ``row_count`` rows of sheet one."""
    workbook = load_workbook(io.BytesIO(content), data_only=True)
    try:
        sheet = workbook.worksheets[0]
        min_col = sheet.min_column or 1
        max_col = sheet.max_column or min_col
        rows = list(
            sheet.iter_rows(
                min_row=1,
                max_row=row_count,
                min_col=min_col,
                max_col=max_col,
                values_only=True,
            )
        )
    finally:
        workbook.close()
    return min_col, rows


def extract_excel_headers(content: bytes) -> List[str]:
    """Return the header row of the template's first sheet.

    Empty cells become ``Column N`` where N is the 1-based column index.
    """
    try:
        min_col, rows = _read_rows(content, 1)
    except Exception as exc:
        logger.exception("Error extracting Excel headers")
        raise ExtractionError("Failed to extract Excel headers. Please try again.") from exc

    first_row = rows[0] if rows else ()
    if all(_is_blank(v) for v in first_row):
        raise ExtractionError("The template has no header row.")

    headers = [
        f"Column {min_col + offset}" if _is_blank(value) else str(value).strip()
        for offset, value in enumerate(first_row)
    ]
    return _unique_headers(headers)


def read_sample_preview(content: bytes) -> Tuple[List[str], List[List[Any]]]:
    """Read the header row and the sample rows beneath it from a template.

    Rows with no values come back as empty lists, so the result always holds
    ``SAMPLE_ROW_COUNT`` rows.
    """
    try:
        _, rows = _read_rows(content, SAMPLE_ROW_COUNT + 1)
    except Exception as exc:
        logger.exception("Error reading sample rows")
        raise ExtractionError("Failed to load sample from Excel.") from exc

    headers = ["" if v is None else str(v) for v in (rows[0] if rows else ())]
    samples = [[] if all(v is None for v in row) else list(row) for row in rows[1:]]
    while len(samples) < SAMPLE_ROW_COUNT:
        samples.append([])
    return headers, samples
