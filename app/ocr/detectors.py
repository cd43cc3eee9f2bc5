"""Best-effort post-processing passes over extracted text.

Both detectors are heuristics. They never raise and return empty lists when
nothing looks like a table or a labelled value.
"""

import re
from collections import Counter

from app.ocr.models import DetectedFormField, FieldType, TableData, TextBlock

TABLE_CONFIDENCE = 0.8
FORM_FIELD_CONFIDENCE = 0.85
DEFAULT_TOKEN_CONFIDENCE = 0.9

_COLUMN_SEPARATOR = re.compile(r"\s{2,}|\t")

# (field name, pattern, field type); group 1 or 2 carries the value
_FORM_FIELD_PATTERNS: list[tuple[str, re.Pattern[str], FieldType]] = [
    (
        "SSN",
        re.compile(
            r"(?:SSN|Social Security (?:Number|No\.?))[\s:#]*(\d{3}-?\d{2}-?\d{4})\b",
            re.IGNORECASE,
        ),
        "text",
    ),
    (
        "EIN",
        re.compile(
            r"(?:EIN|TIN|Employer (?:ID|Identification) (?:Number|No\.?)|Employer ID)"
            r"[\s:#]*(\d{2}-?\d{7})\b",
            re.IGNORECASE,
        ),
        "text",
    ),
    (
        "Date",
        re.compile(r"\b(\d{1,2}/\d{1,2}/\d{4}|\d{4}-\d{2}-\d{2})\b"),
        "date",
    ),
    (
        "Amount",
        re.compile(
            r"\$\s?(\d[\d,]*(?:\.\d{2})?)"
            r"|(?<![\w$.,/-])(\d{1,3}(?:,\d{3})+(?:\.\d{2})?|\d+\.\d{2})(?![\d/-])"
        ),
        "number",
    ),
    (
        "Name",
        re.compile(
            r"\b(?i:Name|Employee|Recipient|Payer)\s*:\s*([A-Za-z][A-Za-z.'-]*(?:[ \t]+[A-Za-z][A-Za-z.'-]*)*)"
        ),
        "text",
    ),
]

_ENGLISH_STOP_WORDS = frozenset(
    {"the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by"}
)


def blend_confidence(token_confidences: list[float], has_text: bool) -> float:
    """Mean of per-token confidences, 0.9 when the provider reports none."""
    if not has_text:
        return 0.0
    if not token_confidences:
        return DEFAULT_TOKEN_CONFIDENCE
    mean = sum(token_confidences) / len(token_confidences)
    return min(1.0, max(0.0, mean))


def detect_tables(blocks: list[TextBlock], full_text: str) -> list[TableData]:
    """Find runs of lines split into a consistent number of whitespace columns."""
    sources = [block.text for block in blocks if block.text]
    if not sources:
        sources = [full_text]

    tables: list[TableData] = []
    for source in sources:
        table = _analyze_for_table(source.splitlines())
        if table is not None:
            tables.append(table)
    return tables


def _analyze_for_table(lines: list[str]) -> TableData | None:
    if len(lines) < 2:
        return None
    rows = [
        [cell.strip() for cell in _COLUMN_SEPARATOR.split(line.strip())]
        for line in lines
        if line.strip()
    ]
    rows = [row for row in rows if len(row) > 1]
    if len(rows) < 2:
        return None

    most_common_count = Counter(len(row) for row in rows).most_common(1)[0][0]
    consistent = [row for row in rows if len(row) == most_common_count]
    if len(consistent) < 2:
        return None
    return TableData(
        headers=consistent[0],
        rows=consistent[1:],
        confidence=TABLE_CONFIDENCE,
    )


def detect_form_fields(full_text: str) -> list[DetectedFormField]:
    """Run the fixed regex battery and emit one guess per match."""
    fields: list[DetectedFormField] = []
    for name, pattern, field_type in _FORM_FIELD_PATTERNS:
        for index, match in enumerate(pattern.finditer(full_text), start=1):
            value = next((group for group in match.groups() if group), "").strip()
            if not value:
                continue
            fields.append(
                DetectedFormField(
                    name=f"{name}_{index}",
                    value=value,
                    field_type=field_type,
                    confidence=FORM_FIELD_CONFIDENCE,
                )
            )
    return fields


def detect_language(text: str) -> str:
    words = text.lower().split()
    if not words:
        return "unknown"
    english = sum(1 for word in words if word in _ENGLISH_STOP_WORDS)
    return "en" if english > len(words) * 0.1 else "unknown"
