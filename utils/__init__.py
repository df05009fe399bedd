"""Shared utilities for the link catalog API."""

# Pattern definitions
from utils.patterns import EMAIL, NUMERIC, BRACKETED_FILTER

# String utilities
from utils.strings import (
    is_numeric,
    is_valid_email,
    coerce_number,
    format_resource_url,
    escape_like,
)

# Categories
from utils.categories import CATEGORIES, is_valid_category, split_categories

# Validation utilities
from utils.validation import (
    ValidationResult,
    error_result,
    success_result,
    validate_batch,
    validate_record,
    validate_update,
)

# Filtered query engine
from utils.query import (
    FilterSpec,
    FilteredResult,
    parse_filter_params,
    split_range,
    build_where_clause,
    build_order_clause,
    build_limit_clause,
    build_and_execute,
)

# Database utilities
from utils.database import (
    ResourceNotFoundError,
    init_pragmas,
    create_schema,
    table_exists,
    get_table_count,
    insert_resources,
    fetch_resource,
    update_resource,
    delete_resource,
)

# Configuration
from utils.config import AppConfig

__all__ = [
    # Patterns
    "EMAIL",
    "NUMERIC",
    "BRACKETED_FILTER",
    # Strings
    "is_numeric",
    "is_valid_email",
    "coerce_number",
    "format_resource_url",
    "escape_like",
    # Categories
    "CATEGORIES",
    "is_valid_category",
    "split_categories",
    # Validation
    "ValidationResult",
    "error_result",
    "success_result",
    "validate_batch",
    "validate_record",
    "validate_update",
    # Query
    "FilterSpec",
    "FilteredResult",
    "parse_filter_params",
    "split_range",
    "build_where_clause",
    "build_order_clause",
    "build_limit_clause",
    "build_and_execute",
    # Database
    "ResourceNotFoundError",
    "init_pragmas",
    "create_schema",
    "table_exists",
    "get_table_count",
    "insert_resources",
    "fetch_resource",
    "update_resource",
    "delete_resource",
    # Config
    "AppConfig",
]
