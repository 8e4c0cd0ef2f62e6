"""
Assistant-facing tool calls.

Each tool is a thin pass-through to the record store. Arguments are checked
against the tool's JSON Schema before dispatch, and every outcome, including
failures, is returned as MCP-style text content rather than raised.
"""
import json
import logging
from typing import Any, Callable

from jsonschema import Draft7Validator

from app.schemas.tool import TextContent, ToolCallResponse, ToolDefinition, ToolsListResponse
from app.services.errors import RecordStoreError
from app.services.record_store import RecordStore
from app.utils.timestamps import utc_now

logger = logging.getLogger("app.tools")

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def _tool_definitions(databases: list[str]) -> list[ToolDefinition]:
    database_enum = {"type": "string", "enum": databases}
    return [
        ToolDefinition(
            name="query_database",
            description="Query documents and form data by database, date range, or content",
            inputSchema={
                "type": "object",
                "properties": {
                    "database": {**database_enum, "description": "Database name"},
                    "query_type": {
                        "type": "string",
                        "enum": ["documents", "forms", "submissions", "all"],
                        "description": "Type of query",
                    },
                    "date_from": {"type": "string", "pattern": DATE_PATTERN,
                                  "description": "Start date filter (YYYY-MM-DD)"},
                    "date_to": {"type": "string", "pattern": DATE_PATTERN,
                                "description": "End date filter (YYYY-MM-DD)"},
                    "search_term": {"type": "string",
                                    "description": "Search in document names"},
                },
                "required": ["database"],
            },
        ),
        ToolDefinition(
            name="get_all_documents",
            description="Get all uploaded documents with their metadata and extracted data",
            inputSchema={
                "type": "object",
                "properties": {
                    "limit": {"type": "integer", "minimum": 1,
                              "description": "Maximum number of documents to return (default: 50)"},
                    "database": {**database_enum, "description": "Filter by specific database"},
                },
            },
        ),
        ToolDefinition(
            name="get_all_forms",
            description="Get all created forms with their fields and submission counts",
            inputSchema={
                "type": "object",
                "properties": {
                    "database": {**database_enum, "description": "Filter by specific database"},
                    "include_fields": {"type": "boolean",
                                       "description": "Include detailed field information (default: true)"},
                },
            },
        ),
        ToolDefinition(
            name="get_form_submissions",
            description="Get all submissions for a specific form or all forms",
            inputSchema={
                "type": "object",
                "properties": {
                    "form_id": {"type": "string", "description": "Specific form ID (optional)"},
                    "database": {**database_enum, "description": "Filter by database"},
                    "limit": {"type": "integer", "minimum": 1,
                              "description": "Maximum submissions to return (default: 100)"},
                },
            },
        ),
        ToolDefinition(
            name="create_form",
            description="Create a new form with specified fields",
            inputSchema={
                "type": "object",
                "properties": {
                    "name": {"type": "string", "minLength": 1, "description": "Form name"},
                    "database": {**database_enum, "description": "Target database"},
                    "fields": {
                        "type": "array",
                        "minItems": 1,
                        "description": "Form fields configuration",
                        "items": {
                            "type": "object",
                            "properties": {
                                "name": {"type": "string"},
                                "label": {"type": "string"},
                                "type": {"type": "string"},
                                "required": {"type": "boolean"},
                                "placeholder": {"type": "string"},
                            },
                            "required": ["name", "label", "type"],
                        },
                    },
                },
                "required": ["name", "database", "fields"],
            },
        ),
        ToolDefinition(
            name="get_system_stats",
            description="Get comprehensive system statistics and analytics",
            inputSchema={
                "type": "object",
                "properties": {
                    "include_details": {"type": "boolean",
                                        "description": "Include detailed breakdown by database (default: true)"},
                },
            },
        ),
    ]


def _query_database(store: RecordStore, args: dict[str, Any]) -> dict[str, Any]:
    database = args["database"]
    query_type = args.get("query_type", "all")
    date_from = args.get("date_from")
    date_to = args.get("date_to")
    search_term = args.get("search_term")

    results: dict[str, list] = {}
    if query_type in ("documents", "all"):
        docs = store.list_documents(
            database_name=database, search=search_term, date_from=date_from, date_to=date_to
        )
        results["documents"] = [d.model_dump() for d in docs]
    if query_type in ("forms", "all"):
        results["forms"] = [f.model_dump() for f in store.list_forms(database_name=database)]
    if query_type in ("submissions", "all"):
        results["submissions"] = [s.model_dump() for s in store.list_submissions(database_name=database)]

    return {
        "database": database,
        "query_type": query_type,
        "filters": {"date_from": date_from, "date_to": date_to, "search_term": search_term},
        "results": results,
        "total_items": sum(len(items) for items in results.values()),
    }


def _get_all_documents(store: RecordStore, args: dict[str, Any]) -> dict[str, Any]:
    docs = store.list_documents(database_name=args.get("database"), limit=args.get("limit", 50))
    return {
        "total_documents": len(docs),
        "documents": [d.model_dump() for d in docs],
    }


def _get_all_forms(store: RecordStore, args: dict[str, Any]) -> dict[str, Any]:
    include_fields = args.get("include_fields", True)
    forms = []
    for form in store.list_forms(database_name=args.get("database")):
        data = form.model_dump()
        if not include_fields:
            data["field_count"] = len(data.pop("fields"))
        forms.append(data)
    return {"total_forms": len(forms), "forms": forms}


def _get_form_submissions(store: RecordStore, args: dict[str, Any]) -> dict[str, Any]:
    submissions = store.list_submissions(
        form_id=args.get("form_id"),
        database_name=args.get("database"),
        limit=args.get("limit", 100),
    )
    return {
        "total_submissions": len(submissions),
        "submissions": [s.model_dump() for s in submissions],
    }


def _create_form(store: RecordStore, args: dict[str, Any]) -> dict[str, Any]:
    form = store.create_form(args["name"], args["fields"], args["database"], source="assistant")
    return {
        "success": True,
        "form": {
            "id": form.id,
            "name": form.name,
            "database": form.database_name,
            "web_link": form.web_link,
            "field_count": len(form.fields),
            "fields": [f.model_dump() for f in form.fields],
        },
        "message": f"Form '{form.name}' created successfully for {form.database_name} database",
    }


def _get_system_stats(store: RecordStore, args: dict[str, Any]) -> dict[str, Any]:
    stats: dict[str, Any] = {
        "overview": {
            "total_documents": store.count_documents(),
            "total_forms": store.count_forms(),
            "total_submissions": store.count_submissions(),
            "last_updated": utc_now(),
        }
    }
    if args.get("include_details", True):
        stats["by_database"] = {
            db: {
                "documents": store.count_documents(db),
                "forms": store.count_forms(db),
                "submissions": store.count_submissions(db),
            }
            for db in store.databases
        }
        stats["recent_activity"] = {
            "recent_documents": [
                {"custom_name": d.custom_name, "database_name": d.database_name, "uploaded_at": d.uploaded_at}
                for d in store.list_documents(limit=5)
            ],
            "recent_forms": [
                {"name": f.name, "database_name": f.database_name, "created_at": f.created_at}
                for f in store.list_forms()[:5]
            ],
        }
    return stats


HANDLERS: dict[str, Callable[[RecordStore, dict[str, Any]], dict[str, Any]]] = {
    "query_database": _query_database,
    "get_all_documents": _get_all_documents,
    "get_all_forms": _get_all_forms,
    "get_form_submissions": _get_form_submissions,
    "create_form": _create_form,
    "get_system_stats": _get_system_stats,
}


def list_tools(store: RecordStore) -> ToolsListResponse:
    return ToolsListResponse(tools=_tool_definitions(store.databases))


def _validate_arguments(arguments: dict[str, Any], schema: dict[str, Any]) -> list[str]:
    validator = Draft7Validator(schema)
    return [f"{e.json_path}: {e.message}" for e in validator.iter_errors(arguments)]


def _error_response(message: str) -> ToolCallResponse:
    return ToolCallResponse(content=[TextContent(text=f"Error: {message}")], isError=True)


def call_tool(store: RecordStore, name: str, arguments: dict[str, Any]) -> ToolCallResponse:
    handler = HANDLERS.get(name)
    if handler is None:
        logger.warning("Unknown tool requested: %s", name)
        return _error_response(f"Unknown tool: {name}")

    definition = next(t for t in _tool_definitions(store.databases) if t.name == name)
    errors = _validate_arguments(arguments, definition.inputSchema)
    if errors:
        logger.warning("Rejected arguments for %s: %s", name, errors)
        return _error_response(f"Invalid arguments: {'; '.join(errors)}")

    try:
        result = handler(store, arguments)
    except RecordStoreError as exc:
        logger.warning("Tool %s failed: %s", name, exc)
        return _error_response(str(exc))

    logger.info("Executed tool %s", name)
    return ToolCallResponse(content=[TextContent(text=json.dumps(result, indent=2))])
