from app.models.document import Document
from app.models.csv_import import CsvImport
from app.models.form import Form
from app.models.submission import FormSubmission
from app.models.history import HistoryEntry

__all__ = ["Document", "CsvImport", "Form", "FormSubmission", "HistoryEntry"]
