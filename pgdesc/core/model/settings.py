"""Explicit settings threaded through the table builder, the schema registry and the catalog introspector."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from pgdesc.core.utils.core_utils import DEFAULT_CONFIG, DEFAULT_SEARCH_PATH, DEFAULT_TAG
from pgdesc.core.utils.naming import snake_case


@dataclass(frozen=True)
class Settings:
    """Model-wide settings.

    Attributes:
        tag: The metadata key under which field annotations are stored.
        search_path: The database schema (namespace) that tables live in.
        updated_at_column: Name of the column maintained by the set-timestamp trigger.
            An empty value disables trigger generation.
        set_timestamp_trigger: Name of the set-timestamp trigger. An empty value disables
            trigger generation.
        password_algorithm: The pgcrypto ``gen_salt`` algorithm used for password columns.
        column_naming: Maps a record field name to its default column name.
    """

    tag: str = DEFAULT_TAG
    search_path: str = DEFAULT_SEARCH_PATH
    updated_at_column: str = "updated_at"
    set_timestamp_trigger: str = "set_timestamp"
    password_algorithm: str = "bf"
    column_naming: Callable[[str], str] = snake_case

    @classmethod
    def from_config(cls, config: dict[str, Any] | None = None, **overrides: Any) -> Settings:
        """Build settings from the ``model`` and ``schema`` sections of a configuration dict.

        Args:
            config: A configuration as returned by `read_config`. Missing sections and keys
                fall back to the built-in defaults.
            **overrides: Field values that take precedence over the configuration.

        Returns:
            A new Settings instance.
        """
        config = config or DEFAULT_CONFIG
        model = config.get("model", {})
        schema = config.get("schema", {})
        defaults = DEFAULT_CONFIG["schema"]
        kwargs = dict(
            tag=model.get("tag", DEFAULT_TAG),
            search_path=model.get("search_path", DEFAULT_SEARCH_PATH),
            updated_at_column=schema.get("updated_at_column", defaults["updated_at_column"]),
            set_timestamp_trigger=schema.get("set_timestamp_trigger", defaults["set_timestamp_trigger"]),
            password_algorithm=schema.get("password_algorithm", defaults["password_algorithm"]),
        )
        kwargs.update(overrides)
        return cls(**kwargs)


DEFAULT_SETTINGS = Settings()
