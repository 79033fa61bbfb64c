"""Structured data (JSON-LD and microdata) validation for crawled pages."""

import json
import logging
from dataclasses import asdict, dataclass, field
from typing import Any

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

# Properties a schema.org type must carry beyond @type / @context.
REQUIRED_PROPERTIES: dict[str, tuple[str, ...]] = {
    "Organization": ("name",),
    "LocalBusiness": ("name", "address"),
    "Product": ("name",),
    "Article": ("headline",),
    "BlogPosting": ("headline",),
    "NewsArticle": ("headline",),
    "BreadcrumbList": ("itemListElement",),
}

JSON_PARSE_ERROR = "JSON parsing error: Invalid JSON-LD schema"


@dataclass
class SchemaValidationResult:
    """Structured data found on one page."""

    url: str
    has_schema: bool = False
    schema_types: list[str] = field(default_factory=list)
    validation_errors: list[str] = field(default_factory=list)
    missing_required_properties: dict[str, list[str]] = field(default_factory=dict)
    is_valid: bool = True

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def get_schema_type(data: Any) -> str:
    """First ``@type`` found in a JSON-LD document, list or ``@graph``."""
    if isinstance(data, list):
        for item in data:
            found = get_schema_type(item)
            if found:
                return found
        return ""
    if not isinstance(data, dict):
        return ""
    schema_type = data.get("@type")
    if isinstance(schema_type, list):
        schema_type = schema_type[0] if schema_type else ""
    if schema_type:
        return str(schema_type)
    graph = data.get("@graph")
    if isinstance(graph, list):
        return get_schema_type(graph)
    return ""


def validate_schema_data(data: Any, context: Any = None) -> tuple[list[str], list[str]]:
    """Return ``(errors, missing_properties)`` for one JSON-LD document."""
    if not data:
        return ["Schema data is empty"], []

    if isinstance(data, list):
        errors: list[str] = []
        missing: list[str] = []
        for index, item in enumerate(data):
            item_errors, item_missing = validate_schema_data(item, context)
            errors.extend(f"Item {index}: {error}" for error in item_errors)
            missing.extend(item_missing)
        return errors, missing

    if not isinstance(data, dict):
        return ["Schema data is not an object"], []

    # Nodes of a @graph inherit the document's @context.
    context = data.get("@context") or context
    graph = data.get("@graph")
    if isinstance(graph, list) and "@type" not in data:
        return validate_schema_data(graph, context)

    errors = []
    missing = []
    schema_type = data.get("@type")
    if not schema_type:
        errors.append("Schema missing required @type property")
        missing.append("@type")
    if not context:
        errors.append("Schema missing required @context property")
        missing.append("@context")

    if isinstance(schema_type, str):
        for prop in REQUIRED_PROPERTIES.get(schema_type, ()):
            if not data.get(prop):
                errors.append(f"{schema_type} schema missing required {prop} property")
                missing.append(prop)
    return errors, missing


def validate_schema_markup(url: str, html: str) -> SchemaValidationResult:
    """Check a page's JSON-LD blocks and microdata ``itemscope`` elements."""
    result = SchemaValidationResult(url=url)
    soup = BeautifulSoup(html, "html.parser")

    for script in soup.find_all("script", type="application/ld+json"):
        result.has_schema = True
        text = script.string or script.get_text()
        if not text or not text.strip():
            continue
        try:
            data = json.loads(text)
        except ValueError:
            logger.debug("Invalid JSON-LD on %s", url)
            result.is_valid = False
            result.validation_errors.append(JSON_PARSE_ERROR)
            continue

        schema_type = get_schema_type(data)
        if schema_type and schema_type not in result.schema_types:
            result.schema_types.append(schema_type)

        errors, missing = validate_schema_data(data)
        if errors:
            result.is_valid = False
            result.validation_errors.extend(errors)
            if missing:
                key = schema_type or "unknown"
                result.missing_required_properties.setdefault(key, []).extend(missing)

    for element in soup.find_all(attrs={"itemscope": True}):
        result.has_schema = True
        itemtype = (element.get("itemtype") or "").strip().rstrip("/")
        schema_type = itemtype.split("/")[-1] if itemtype else ""
        if schema_type and schema_type not in result.schema_types:
            result.schema_types.append(schema_type)

    return result
