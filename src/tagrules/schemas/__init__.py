"""Record schemas declared in YAML files.

- loader: SchemaLoader reads *.yaml files into RecordSchemas
- validator: JSON Schema checks of the YAML structure
"""

from tagrules.schemas.loader import SchemaError, SchemaLoader
from tagrules.schemas.validator import SchemaIssue, validate_schema_dir, validate_schema_file

__all__ = [
    "SchemaError",
    "SchemaLoader",
    "SchemaIssue",
    "validate_schema_dir",
    "validate_schema_file",
]
