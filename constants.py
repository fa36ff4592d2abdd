from typing import Dict, List

# Central location for constants used across the Streamlit app
# ----------------------------------------------------------

# Fixed example record embedded in every generation prompt so the model can
# calibrate the shape and level of detail of its output.
SAMPLE_TEST_CASE: Dict[str, str] = {
    "Test Case ID": "TC-001",
    "Title": "Login with valid credentials",
    "Steps": "1. Go to login page. 2. Enter valid username and password. 3. Click Login.",
    "Expected Result": "User is logged in and redirected to the dashboard.",
}

# Final directive of every prompt. The repair pipeline expects bare JSON.
JSON_ONLY_DIRECTIVE = (
    "**Return only a valid JSON array, with no extra text, comments, or formatting.**"
)

GENERATION_FOCUS: List[str] = [
    "Functional testing scenarios",
    "Edge cases and error conditions",
    "User workflow testing",
    "Data validation testing",
]

MODIFICATION_RULES: List[str] = [
    "If adding new test cases, ensure they follow the same structure",
    "If modifying existing test cases, preserve the original structure",
    "If deleting test cases, remove them from the array",
    "Maintain the same column headers and data types",
]

# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------

DOCUMENT_TYPES: List[str] = ["pdf", "docx", "txt", "xlsx", "csv"]
TEMPLATE_TYPES: List[str] = ["xlsx"]

# Number of rows below the header row read from a sample template.
SAMPLE_ROW_COUNT = 2

# ---------------------------------------------------------------------------
# Record store collections
# ---------------------------------------------------------------------------

PROJECTS = "projects"
DOCUMENTS = "documents"
TEMPLATES = "templates"
TEST_CASES = "testcases"

DRAFT_STATUS = "Draft"

EXCEL_SHEET_NAME = "Test Cases"
