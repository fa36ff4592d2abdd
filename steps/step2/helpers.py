import json
import logging
from typing import Any, Dict, List, Sequence

from openai import OpenAIError

from constants import (
    DOCUMENTS,
    DRAFT_STATUS,
    GENERATION_FOCUS,
    JSON_ONLY_DIRECTIVE,
    SAMPLE_ROW_COUNT,
    SAMPLE_TEST_CASE,
    TEMPLATE_TYPES,
    TEMPLATES,
    TEST_CASES,
)
from errors import (
    ConfigurationError,
    GenerationError,
    UnparseableOutputError,
    UnsupportedFileTypeError,
)
from extractors import (
    extract_excel_headers,
    extract_file_content,
    file_type,
    read_sample_preview,
)
from helpers import call_model
from repair import parse_test_cases
from storage import storage_path

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Upload intake
# ---------------------------------------------------------------------------


def upload_document(
    store,
    file_storage,
    project_id: str,
    file_name: str,
    content: bytes,
    content_type: str | None = None,
) -> Dict:
    """Extract text from an uploaded document, store the file and record it.

    Text is extracted first so an unsupported file is rejected before anything
    is written.
    """
    extracted = extract_file_content(file_name, content)

    path = storage_path(project_id, "documents", file_name)
    file_storage.upload(path, content, content_type)

    document = {
        "projectId": project_id,
        "fileName": file_name,
        "storagePath": path,
        "fileType": file_type(file_name),
        "extractedContent": extracted,
    }
    document_id = store.create(DOCUMENTS, document)
    logger.info("Stored document %s (%d characters extracted)", file_name, len(extracted))
    return {"id": document_id, **document}


def upload_template(
    store,
    file_storage,
    project_id: str,
    file_name: str,
    content: bytes,
    content_type: str | None = None,
) -> Dict:
    """Read the header row of an Excel template, store the file and record it."""
    if file_type(file_name) not in TEMPLATE_TYPES:
        raise UnsupportedFileTypeError(f"Templates must be .xlsx files: {file_name}")

    headers = extract_excel_headers(content)

    path = storage_path(project_id, "templates", file_name)
    file_storage.upload(path, content, content_type)

    template = {
        "projectId": project_id,
        "templateName": file_name,
        "storagePath": path,
        "columnHeaders": headers,
    }
    template_id = store.create(TEMPLATES, template)
    logger.info("Stored template %s with headers %s", file_name, headers)
    return {"id": template_id, **template}


def delete_document(store, document_id: str):
    """Remove a document record. The stored file is left in place."""
    store.delete(DOCUMENTS, document_id)
    logger.info("Deleted document %s", document_id)


def delete_template(store, template_id: str):
    store.delete(TEMPLATES, template_id)
    logger.info("Deleted template %s", template_id)


# ---------------------------------------------------------------------------
# Sample rows
# ---------------------------------------------------------------------------


def _is_blank_row(row: Sequence[Any]) -> bool:
    return not any(cell is not None and str(cell).strip() != "" for cell in row or [])


def build_sample_records(headers: List[str], rows: List[Sequence[Any]]) -> List[Dict]:
    """Turn sample rows into records keyed by the sample's own header row.

    All-blank rows are dropped and missing cells become empty strings.
    """
    records: List[Dict] = []
    for row in rows:
        if _is_blank_row(row):
            continue
        record = {}
        for idx, header in enumerate(headers):
            value = row[idx] if idx < len(row) else None
            record[header] = "" if value is None else value
        records.append(record)
    return records[:SAMPLE_ROW_COUNT]


def load_sample_records(file_storage, template: Dict) -> List[Dict]:
    """Download a template and return its sample rows as records."""
    content = file_storage.download(template["storagePath"])
    headers, rows = read_sample_preview(content)
    return build_sample_records(headers, rows)


# ---------------------------------------------------------------------------
# Prompt construction
# ---------------------------------------------------------------------------


def build_sample_section(sample_records: List[Dict] | None) -> str:
    if not sample_records:
        return ""
    return (
        "\nHere is a sample test case array for reference:\n"
        + json.dumps(sample_records, indent=2, ensure_ascii=False, default=str)
    )


def build_generation_prompt(
    document_texts: List[str],
    template_headers: List[str],
    sample_records: List[Dict] | None = None,
    custom_instructions: str = "",
) -> str:
    """Render the generation prompt. Equal inputs give byte-identical output."""

    sample_section = build_sample_section(sample_records)
    additional = (
        f"\nAdditional instructions:\n{custom_instructions}"
        if custom_instructions and custom_instructions.strip()
        else ""
    )
    documentation = "\n\n".join(document_texts)
    headers = ", ".join(template_headers)
    calibration = json.dumps(SAMPLE_TEST_CASE, indent=2)
    focus = "\n".join(f"- {item}" for item in GENERATION_FOCUS)

    return f"""Based on the following documentation:

{documentation}

And using the following Excel column headers for test cases: {headers}.
{sample_section}
{additional}

Here is a sample test case for reference:
{calibration}

Generate a list of comprehensive software test cases. Each test case should be a JSON object with keys matching the provided headers. Return the entire list as a JSON array.

Focus on:
{focus}

Ensure each test case is detailed and actionable.

{JSON_ONLY_DIRECTIVE}"""


# ---------------------------------------------------------------------------
# Test-case generation
# ---------------------------------------------------------------------------


def generate_test_cases(
    document_texts: List[str],
    template_headers: List[str],
    sample_records: List[Dict] | None = None,
    custom_instructions: str = "",
    client=None,
) -> List[Dict]:
    """Generate a test-case table from documents with a single model call.

    Raises
    ------
    ValueError
        ``template_headers`` contains duplicates.
    GenerationError
        The model call failed or its output could not be parsed. The cause is
        chained on the exception.
    """
    if len(set(template_headers)) != len(template_headers):
        raise ValueError("Template headers must be unique.")

    prompt = build_generation_prompt(
        document_texts, template_headers, sample_records, custom_instructions
    )

    try:
        text = call_model(prompt, client)
        test_cases = parse_test_cases(text)
    except (OpenAIError, ConfigurationError, UnparseableOutputError) as exc:
        logger.error("Error generating test cases: %s", exc)
        raise GenerationError("Failed to generate test cases. Please try again.") from exc

    logger.info("Generated %d test cases", len(test_cases))
    return test_cases


def save_generated_test_cases(
    store,
    project_id: str,
    document_ids: List[str],
    template_id: str,
    test_cases: List[Dict],
) -> str:
    """Persist a freshly generated table as a new draft test-case set."""
    return store.create(
        TEST_CASES,
        {
            "projectId": project_id,
            "generatedFromDocuments": list(document_ids),
            "generatedFromTemplate": template_id,
            "testCaseData": test_cases,
            "status": DRAFT_STATUS,
        },
    )
