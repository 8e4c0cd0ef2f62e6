"""
Text and CSV extraction for uploaded files.
Raw pass-through only: plain text is returned as-is, CSVs as header + rows.
"""
import csv
import logging
import re
from pathlib import Path

from app.schemas.document import ExtractionMetadata, ExtractionResult
from app.schemas.form import FormField
from app.utils.timestamps import utc_now

logger = logging.getLogger("app.extraction")


def header_to_label(header: str) -> str:
    """'first_name' -> 'First Name'. Only the first letter of each word changes case."""
    spaced = re.sub(r"[_-]", " ", header.strip())
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), spaced)


def fields_from_headers(headers: list[str]) -> list[FormField]:
    return [
        FormField(name=h.strip(), label=header_to_label(h), type="text", required=True)
        for h in headers
    ]


def parse_csv(file_path: Path) -> ExtractionResult:
    # utf-8-sig drops a leading BOM that spreadsheet exports often carry
    with open(file_path, newline="", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        headers = list(reader.fieldnames or [])
        rows = [
            {h: (row.get(h) if row.get(h) is not None else "") for h in headers}
            for row in reader
        ]

    return ExtractionResult(
        headers=headers,
        rows=rows,
        metadata=ExtractionMetadata(
            file_type="csv",
            processed=True,
            extracted_at=utc_now(),
            row_count=len(rows),
            column_count=len(headers),
        ),
    )


def process_text_file(file_path: Path) -> ExtractionResult:
    text = file_path.read_text(encoding="utf-8")
    return ExtractionResult(
        text=text,
        metadata=ExtractionMetadata(
            file_type="text",
            processed=True,
            extracted_at=utc_now(),
            length=len(text),
        ),
    )


def extract_document_data(file_path: Path, filename: str) -> ExtractionResult:
    """Extract whatever the file type allows; failures are reported, not raised."""
    extension = Path(filename).suffix.lower()
    try:
        if extension == ".txt":
            return process_text_file(file_path)
        if extension == ".csv":
            return parse_csv(file_path)
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        logger.warning("Extraction failed for %s: %s", filename, exc)
        return ExtractionResult(
            text="Error processing file",
            metadata=ExtractionMetadata(
                file_type=extension.lstrip(".") or "unknown",
                processed=False,
                error=str(exc),
            ),
        )

    return ExtractionResult(
        text="File uploaded successfully",
        metadata=ExtractionMetadata(
            file_type=extension,
            processed=True,
            extracted_at=utc_now(),
        ),
    )
