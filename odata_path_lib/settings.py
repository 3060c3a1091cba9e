"""
Conversion settings recognized by the path provider and the naming resolver.
"""

import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, ValidationError

from .constants import DEFAULT_NAVIGATION_PROPERTY_DEPTH, ENV_PREFIX
from .errors import InvalidArgumentError

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}
_FALSE_VALUES = {'0', 'false', 'no', 'off'}


class ConvertSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra='forbid')

    # Master switches for the three path families
    enable_operation_path: bool = True
    enable_operation_import_path: bool = True
    enable_navigation_property_path: bool = True

    navigation_property_depth: int = DEFAULT_NAVIGATION_PROPERTY_DEPTH
    count_key_segment_as_depth: bool = False

    # Naming
    enable_key_as_segment: bool = False
    prefix_entity_type_name_before_key: bool = False
    enable_unqualified_call: bool = False
    enable_uri_escape_function_call: bool = False
    enable_alias_for_type_cast_segments: bool = False
    add_single_quotes_for_string_parameters: bool = False
    path_prefix: str = ""

    require_derived_types_constraint_for_bound_operations: bool = False

    # Optional path families, off by default
    add_alternate_key_paths: bool = False
    enable_dollar_count_path: bool = False
    enable_odata_type_cast: bool = False
    enable_complex_property_paths: bool = False
    show_metadata_path: bool = False

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, **overrides: Any) -> 'ConvertSettings':
        """
        Build settings from ``ODATA_PATHS_<FIELD>`` environment variables.

        Args:
            env_file: Optional .env file to load first (defaults to the nearest .env)
            overrides: Explicit values that win over the environment

        Returns:
            The resulting settings
        """
        load_dotenv(env_file)

        values: Dict[str, Any] = {}
        for field_name, field in cls.model_fields.items():
            raw = os.getenv(f"{ENV_PREFIX}{field_name.upper()}")
            if raw is None:
                continue
            if field.annotation is bool:
                values[field_name] = _parse_bool(field_name, raw)
            else:
                values[field_name] = raw.strip()
        values.update(overrides)

        try:
            return cls(**values)
        except ValidationError as e:
            raise InvalidArgumentError("settings", f"Invalid conversion settings: {e}") from e

    def with_changes(self, **changes: Any) -> 'ConvertSettings':
        """Return a copy with the given fields replaced (validated)."""
        try:
            return type(self)(**{**self.model_dump(), **changes})
        except ValidationError as e:
            raise InvalidArgumentError("settings", f"Invalid conversion settings: {e}") from e


def _parse_bool(field_name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise InvalidArgumentError(field_name, f"'{raw}' is not a boolean value for {ENV_PREFIX}{field_name.upper()}")
