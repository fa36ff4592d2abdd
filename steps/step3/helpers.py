import io
import json
import logging
from datetime import date
from typing import Dict, List

import pandas as pd
from openai import OpenAIError

from constants import EXCEL_SHEET_NAME, JSON_ONLY_DIRECTIVE, MODIFICATION_RULES, TEST_CASES
from errors import ConfigurationError, ModificationError, UnparseableOutputError
from helpers import call_model
from repair import parse_test_cases

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Natural-language modification
# ---------------------------------------------------------------------------


def build_modification_prompt(current_records: List[Dict], command: str) -> str:
    """Render the modification prompt.

    The current table is its own schema reference, so no example record is
    included.
    """
    rules = "\n".join(f"- {rule}" for rule in MODIFICATION_RULES)
    current = json.dumps(current_records, indent=2, ensure_ascii=False, default=str)

    return f"""Here are the current test cases in JSON format:
{current}

The user wants to make the following modification: "{command}"

Please return the updated list of test cases in the same JSON array format.
{rules}

{JSON_ONLY_DIRECTIVE}"""


def modify_test_cases(current_records: List[Dict], command: str, client=None) -> List[Dict]:
    """Apply a natural-language command to a test-case table.

    Returns the complete replacement table; records the model omits are
    deleted.

    Raises
    ------
    ValueError
        There is nothing to modify or the command is blank. No model call is
        made in that case.
    ModificationError
        The model call failed or its output could not be parsed.
    """
    if not current_records:
        raise ValueError("There are no test cases to modify.")
    if not command or not command.strip():
        raise ValueError("Please describe the modification.")

    prompt = build_modification_prompt(current_records, command.strip())

    try:
        text = call_model(prompt, client)
        modified = parse_test_cases(text)
    except (OpenAIError, ConfigurationError, UnparseableOutputError) as exc:
        logger.error("Error modifying test cases: %s", exc)
        raise ModificationError("Failed to modify test cases. Please try again.") from exc

    logger.info("Modified test cases: %d -> %d rows", len(current_records), len(modified))
    return modified


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


def latest_test_case_set(store, project_id: str) -> Dict | None:
    """Return the project's most recently modified test-case set, if any."""
    sets = store.list(TEST_CASES, project_id)
    if not sets:
        return None
    return max(sets, key=lambda s: s.get("lastModified", ""))


def save_test_cases(store, set_id: str | None, test_cases: List[Dict]):
    if set_id:
        store.update(TEST_CASES, set_id, {"testCaseData": test_cases})


# ---------------------------------------------------------------------------
# Table helpers
# ---------------------------------------------------------------------------


def column_order(test_cases: List[Dict]) -> List[str]:
    """Keys in first-seen order across all records."""
    columns: List[str] = []
    for case in test_cases:
        for key in case:
            if key not in columns:
                columns.append(key)
    return columns


def to_frame(test_cases: List[Dict]) -> pd.DataFrame:
    return pd.DataFrame(test_cases, columns=column_order(test_cases))


def records_from_frame(df: pd.DataFrame) -> List[Dict]:
    """Convert an edited table back to records, blank cells as empty strings."""
    df = df.astype(object).where(pd.notna(df), "")
    return df.to_dict(orient="records")


def to_excel_bytes(test_cases: List[Dict]) -> bytes:
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        to_frame(test_cases).to_excel(writer, index=False, sheet_name=EXCEL_SHEET_NAME)
    return output.getvalue()


def excel_file_name(project_name: str, on: date | None = None) -> str:
    on = on or date.today()
    return f"{project_name}_TestCases_{on.isoformat()}.xlsx"
