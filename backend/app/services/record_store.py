"""
Record store for documents, CSV imports, forms and form submissions.

Every write runs under a single process-wide lock and inside one database
transaction, so a form's submission counter and its submission rows always
change together, and a form delete cannot interleave with a submission for
the same form. The stored ``submission_count`` column is the only counter;
it is incremented with each insert and never recomputed from a join.
"""
import logging
import threading
import uuid
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator

import pydantic
from sqlalchemy import func, literal_column
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.models.csv_import import CsvImport
from app.models.document import Document
from app.models.form import Form
from app.models.history import HistoryEntry
from app.models.submission import FormSubmission
from app.schemas.csv_import import CsvImportResponse
from app.schemas.document import DocumentCreate, DocumentResponse, ExtractionResult
from app.schemas.form import FormField, FormResponse
from app.schemas.history import HistoryResponse
from app.schemas.submission import SubmissionResponse
from app.services.errors import NotFoundError, StorageError, ValidationError
from app.services.extraction_service import fields_from_headers
from app.utils.timestamps import utc_now

logger = logging.getLogger("app.store")

FORM_SOURCES = ("manual", "csv", "assistant")


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _document_to_response(doc: Document) -> DocumentResponse:
    return DocumentResponse(
        id=doc.id,
        original_filename=doc.original_filename,
        custom_name=doc.custom_name,
        stored_path=doc.stored_path,
        database_name=doc.database_name,
        extracted_data=ExtractionResult.model_validate(doc.extracted_data) if doc.extracted_data else None,
        uploaded_at=doc.uploaded_at,
        status=doc.status,
        file_size_bytes=doc.file_size_bytes,
        mime_type=doc.mime_type,
    )


def _csv_import_to_response(record: CsvImport) -> CsvImportResponse:
    return CsvImportResponse(
        id=record.id,
        filename=record.filename,
        headers=record.headers,
        rows=record.rows,
        uploaded_at=record.uploaded_at,
        form_generated=bool(record.form_generated),
    )


def _form_to_response(form: Form) -> FormResponse:
    return FormResponse(
        id=form.id,
        name=form.name,
        fields=[FormField.model_validate(f) for f in form.fields],
        database_name=form.database_name,
        web_link=form.web_link,
        created_at=form.created_at,
        source=form.source,
        submission_count=form.submission_count or 0,
    )


def _submission_to_response(
    sub: FormSubmission, form_name: str | None = None, database_name: str | None = None
) -> SubmissionResponse:
    return SubmissionResponse(
        id=sub.id,
        form_id=sub.form_id,
        data=sub.data,
        submitted_at=sub.submitted_at,
        ip_address=sub.ip_address,
        form_name=form_name,
        database_name=database_name,
    )


class RecordStore:
    def __init__(
        self,
        session_factory: sessionmaker,
        databases: Iterable[str],
        public_base_url: str,
        clock: Callable[[], str] = utc_now,
    ):
        self._session_factory = session_factory
        self._databases = list(databases)
        self._public_base_url = public_base_url.rstrip("/")
        self._clock = clock
        self._write_lock = threading.Lock()

    @property
    def databases(self) -> list[str]:
        return list(self._databases)

    # ------------------------------------------------------------------
    # Session handling
    # ------------------------------------------------------------------

    @contextmanager
    def _read(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as exc:
            logger.exception("Read failed")
            raise StorageError("Could not read from the record store") from exc
        finally:
            session.close()

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[Session]:
        with self._write_lock:
            session = self._session_factory()
            try:
                yield session
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception("%s failed", operation)
                raise StorageError(f"{operation} failed") from exc
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    def _record_history(
        self,
        session: Session,
        entity_type: str,
        action: str,
        database_name: str | None,
        details: dict[str, Any],
        timestamp: str,
    ) -> None:
        session.add(HistoryEntry(
            entity_type=entity_type,
            action=action,
            database_name=database_name,
            timestamp=timestamp,
            details=details,
        ))

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _require_database(self, database_name: str | None) -> str:
        if not database_name:
            raise ValidationError("database_name is required")
        if database_name not in self._databases:
            raise ValidationError(
                f"Unknown database '{database_name}'. Must be one of: {', '.join(self._databases)}"
            )
        return database_name

    def _validate_form(
        self, name: str | None, fields: list | None, database_name: str | None
    ) -> list[FormField]:
        if not name or not name.strip():
            raise ValidationError("Form name is required")
        if not fields:
            raise ValidationError("A form needs at least one field")
        self._require_database(database_name)
        try:
            return [FormField.model_validate(f) for f in fields]
        except pydantic.ValidationError as exc:
            raise ValidationError(f"Invalid form field: {exc}") from exc

    def _web_link(self, form_id: str) -> str:
        return f"{self._public_base_url}/form/{form_id}"

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def create_document(self, meta: DocumentCreate) -> DocumentResponse:
        if not meta.stored_path:
            raise ValidationError("stored_path is required")
        self._require_database(meta.database_name)

        extracted = meta.extracted_data
        status = "processed" if extracted and extracted.metadata.processed else "uploaded"
        now = self._clock()
        with self._transaction("create_document") as session:
            doc = Document(
                id=str(uuid.uuid4()),
                original_filename=meta.original_filename,
                custom_name=meta.custom_name or meta.original_filename,
                stored_path=meta.stored_path,
                database_name=meta.database_name,
                extracted_data=extracted.model_dump() if extracted else None,
                uploaded_at=now,
                status=status,
                file_size_bytes=meta.file_size_bytes,
                mime_type=meta.mime_type,
            )
            session.add(doc)
            self._record_history(
                session, "document", "uploaded", doc.database_name,
                {"id": doc.id, "name": doc.custom_name}, now,
            )
        logger.info("Stored document %s (%s) in %s", doc.id, doc.status, doc.database_name)
        return _document_to_response(doc)

    def list_documents(
        self,
        database_name: str | None = None,
        search: str | None = None,
        date_from: str | None = None,
        date_to: str | None = None,
        limit: int | None = None,
    ) -> list[DocumentResponse]:
        with self._read() as session:
            query = session.query(Document)
            if database_name:
                query = query.filter(Document.database_name == database_name)
            if search:
                pattern = f"%{_escape_like(search)}%"
                query = query.filter(
                    Document.custom_name.ilike(pattern, escape="\\")
                    | Document.original_filename.ilike(pattern, escape="\\")
                )
            # Dates are compared on the YYYY-MM-DD prefix, both bounds inclusive.
            if date_from:
                query = query.filter(func.substr(Document.uploaded_at, 1, 10) >= date_from)
            if date_to:
                query = query.filter(func.substr(Document.uploaded_at, 1, 10) <= date_to)
            query = query.order_by(Document.uploaded_at.desc(), literal_column("documents.rowid").desc())
            if limit is not None:
                query = query.limit(limit)
            return [_document_to_response(d) for d in query.all()]

    def count_documents(self, database_name: str | None = None) -> int:
        with self._read() as session:
            query = session.query(func.count(Document.id))
            if database_name:
                query = query.filter(Document.database_name == database_name)
            return query.scalar()

    # ------------------------------------------------------------------
    # CSV imports
    # ------------------------------------------------------------------

    def create_csv_import(
        self, filename: str | None, headers: list[str], rows: list[dict[str, Any]]
    ) -> CsvImportResponse:
        if not filename:
            raise ValidationError("filename is required")

        now = self._clock()
        with self._transaction("create_csv_import") as session:
            record = CsvImport(
                id=str(uuid.uuid4()),
                filename=filename,
                headers=list(headers or []),
                rows=list(rows or []),
                uploaded_at=now,
                form_generated=False,
            )
            session.add(record)
            self._record_history(
                session, "csv_import", "uploaded", None,
                {"id": record.id, "filename": filename, "row_count": len(record.rows)}, now,
            )
        logger.info("Stored CSV import %s with %d columns", record.id, len(record.headers))
        return _csv_import_to_response(record)

    def get_csv_import(self, csv_id: str) -> CsvImportResponse | None:
        with self._read() as session:
            record = session.get(CsvImport, csv_id)
            return _csv_import_to_response(record) if record else None

    def list_csv_imports(self) -> list[CsvImportResponse]:
        with self._read() as session:
            records = (
                session.query(CsvImport)
                .order_by(CsvImport.uploaded_at.desc(), literal_column("csv_imports.rowid").desc())
                .all()
            )
            return [_csv_import_to_response(r) for r in records]

    def derive_form_from_csv(self, csv_import_id: str, database_name: str | None) -> FormResponse:
        self._require_database(database_name)

        now = self._clock()
        with self._transaction("derive_form_from_csv") as session:
            record = session.get(CsvImport, csv_import_id)
            if record is None:
                raise NotFoundError(f"CSV import {csv_import_id} not found")
            if not record.headers:
                raise ValidationError("CSV import has no headers to build a form from")

            form_id = str(uuid.uuid4())
            form = Form(
                id=form_id,
                name=f"Form generated from {record.filename}",
                fields=[f.model_dump() for f in fields_from_headers(record.headers)],
                database_name=database_name,
                web_link=self._web_link(form_id),
                created_at=now,
                source="csv",
                submission_count=0,
            )
            session.add(form)
            if not record.form_generated:
                record.form_generated = True
            self._record_history(
                session, "form", "derived", database_name,
                {"id": form_id, "name": form.name, "csv_id": record.id}, now,
            )
        logger.info("Derived form %s from CSV import %s", form.id, csv_import_id)
        return _form_to_response(form)

    # ------------------------------------------------------------------
    # Forms
    # ------------------------------------------------------------------

    def create_form(
        self,
        name: str | None,
        fields: list | None,
        database_name: str | None,
        source: str = "manual",
    ) -> FormResponse:
        validated = self._validate_form(name, fields, database_name)
        if source not in FORM_SOURCES:
            raise ValidationError(f"Unknown form source '{source}'")

        now = self._clock()
        with self._transaction("create_form") as session:
            form_id = str(uuid.uuid4())
            form = Form(
                id=form_id,
                name=name,
                fields=[f.model_dump() for f in validated],
                database_name=database_name,
                web_link=self._web_link(form_id),
                created_at=now,
                source=source,
                submission_count=0,
            )
            session.add(form)
            self._record_history(
                session, "form", "created", database_name,
                {"id": form_id, "name": name, "source": source}, now,
            )
        logger.info("Created form %s (%s) in %s", form.id, source, database_name)
        return _form_to_response(form)

    def get_form(self, form_id: str) -> FormResponse | None:
        with self._read() as session:
            form = session.get(Form, form_id)
            return _form_to_response(form) if form else None

    def list_forms(self, database_name: str | None = None) -> list[FormResponse]:
        with self._read() as session:
            query = session.query(Form)
            if database_name:
                query = query.filter(Form.database_name == database_name)
            forms = query.order_by(Form.created_at.desc(), literal_column("forms.rowid").desc()).all()
            return [_form_to_response(f) for f in forms]

    def count_forms(self, database_name: str | None = None) -> int:
        with self._read() as session:
            query = session.query(func.count(Form.id))
            if database_name:
                query = query.filter(Form.database_name == database_name)
            return query.scalar()

    def update_form(
        self, form_id: str, name: str | None, fields: list | None, database_name: str | None
    ) -> None:
        validated = self._validate_form(name, fields, database_name)

        now = self._clock()
        with self._transaction("update_form") as session:
            form = session.get(Form, form_id)
            if form is None:
                raise NotFoundError(f"Form {form_id} not found")
            form.name = name
            form.fields = [f.model_dump() for f in validated]
            form.database_name = database_name
            self._record_history(
                session, "form", "updated", database_name, {"id": form_id, "name": name}, now,
            )
        logger.info("Updated form %s", form_id)

    def delete_form(self, form_id: str) -> None:
        now = self._clock()
        with self._transaction("delete_form") as session:
            form = session.get(Form, form_id)
            if form is None:
                raise NotFoundError(f"Form {form_id} not found")
            removed = (
                session.query(FormSubmission)
                .filter(FormSubmission.form_id == form_id)
                .delete(synchronize_session=False)
            )
            session.query(Form).filter(Form.id == form_id).delete(synchronize_session=False)
            self._record_history(
                session, "form", "deleted", form.database_name,
                {"id": form_id, "name": form.name, "submissions_removed": removed}, now,
            )
        logger.info("Deleted form %s and %d submissions", form_id, removed)

    # ------------------------------------------------------------------
    # Submissions
    # ------------------------------------------------------------------

    def record_submission(
        self, form_id: str, payload: dict[str, Any], client_address: str | None
    ) -> SubmissionResponse:
        if not isinstance(payload, dict):
            raise ValidationError("Submission payload must be an object")

        now = self._clock()
        with self._transaction("record_submission") as session:
            form = session.get(Form, form_id)
            if form is None:
                raise NotFoundError(f"Form {form_id} not found")
            sub = FormSubmission(
                form_id=form_id,
                data=payload,
                submitted_at=now,
                ip_address=client_address,
            )
            session.add(sub)
            session.query(Form).filter(Form.id == form_id).update(
                {Form.submission_count: Form.submission_count + 1},
                synchronize_session=False,
            )
            session.flush()
            self._record_history(
                session, "submission", "submitted", form.database_name,
                {"id": sub.id, "form_id": form_id}, now,
            )
            form_name, database_name = form.name, form.database_name
        logger.info("Recorded submission %s for form %s", sub.id, form_id)
        return _submission_to_response(sub, form_name, database_name)

    def list_submissions(
        self,
        form_id: str | None = None,
        database_name: str | None = None,
        limit: int | None = None,
    ) -> list[SubmissionResponse]:
        with self._read() as session:
            if form_id is not None and session.get(Form, form_id) is None:
                raise NotFoundError(f"Form {form_id} not found")
            query = (
                session.query(FormSubmission, Form.name, Form.database_name)
                .join(Form, FormSubmission.form_id == Form.id)
            )
            if form_id is not None:
                query = query.filter(FormSubmission.form_id == form_id)
            if database_name:
                query = query.filter(Form.database_name == database_name)
            query = query.order_by(FormSubmission.submitted_at.desc(), FormSubmission.id.desc())
            if limit is not None:
                query = query.limit(limit)
            return [_submission_to_response(sub, name, db) for sub, name, db in query.all()]

    def count_submissions(self, database_name: str | None = None) -> int:
        with self._read() as session:
            query = session.query(func.count(FormSubmission.id))
            if database_name:
                query = query.join(Form, FormSubmission.form_id == Form.id).filter(
                    Form.database_name == database_name
                )
            return query.scalar()

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def list_history(self, limit: int = 50) -> list[HistoryResponse]:
        with self._read() as session:
            entries = (
                session.query(HistoryEntry)
                .order_by(HistoryEntry.timestamp.desc(), HistoryEntry.id.desc())
                .limit(limit)
                .all()
            )
            return [
                HistoryResponse(
                    id=e.id,
                    entity_type=e.entity_type,
                    action=e.action,
                    database_name=e.database_name,
                    timestamp=e.timestamp,
                    details=e.details,
                )
                for e in entries
            ]
