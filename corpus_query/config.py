"""Configuration management for corpus-query."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w

from corpus_query.corpus import AnnotationDef, CorpusInfo, MetadataFieldDef, UiKind, ValueKind
from corpus_query.exceptions import (
    ConfigParseError,
    ConfigValidationError,
)
from corpus_query.state.settings import DEFAULT_NGRAM_MAX_SIZE, InterfaceSettings
from corpus_query.url.codec import DEFAULT_BASE_PATH, DEFAULT_MAX_URL_LENGTH, UrlCodec


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".config" / "corpus-query" / "config.toml"


def get_default_history_path() -> Path:
    """Get the default query history database path."""
    return Path.home() / ".local" / "share" / "corpus-query" / "history.sqlite"


@dataclass
class Config:
    """Application configuration.

    Attributes:
        backend_url: Base URL of the search backend web service.
        corpus_id: Corpus searched on the backend.
        timeout: Seconds before a backend request is given up.
        base_path: Path of the search page that URLs are built on.
        primary_annotation: Annotation searched by the simple view
            (None for the corpus' first visible annotation).
        extended_annotations: Annotations shown in the extended view
            (empty for all visible annotations).
        advanced_enabled: Whether the query builder view is available.
        ngram_max_size: Largest n-gram the explore view builds.
        max_url_length: URLs longer than this drop the pattern.
        poll_interval: Seconds between totals requests while counting.
        debounce: Seconds a filter must stay unchanged before the
            sub-corpus size is requested.
        history_db: SQLite database holding the query history.
        history_max_entries: Number of history entries kept.
        corpus: Annotation and metadata field definitions.
        colored_output: Whether to use colored terminal output.
        config_path: Path where config was loaded from (None if defaults).
    """

    backend_url: str = "http://localhost:8080/blacklab-server"
    corpus_id: str | None = None
    timeout: float = 30.0
    base_path: str = DEFAULT_BASE_PATH
    primary_annotation: str | None = None
    extended_annotations: list[str] = field(default_factory=list)
    advanced_enabled: bool = True
    ngram_max_size: int = DEFAULT_NGRAM_MAX_SIZE
    max_url_length: int = DEFAULT_MAX_URL_LENGTH
    poll_interval: float = 1.0
    debounce: float = 1.0
    history_db: Path = field(default_factory=get_default_history_path)
    history_max_entries: int = 100
    corpus: CorpusInfo = field(default_factory=CorpusInfo)
    colored_output: bool = True
    config_path: Path | None = None

    def validate(self) -> list[str]:
        """Validate configuration values.

        Returns:
            List of warning messages for non-fatal issues.

        Raises:
            ConfigValidationError: If a critical validation fails.
        """
        warnings: list[str] = []

        self.history_db = self.history_db.expanduser()

        if self.ngram_max_size < 1:
            raise ConfigValidationError(
                "interface.ngram_max_size", self.ngram_max_size, "must be at least 1"
            )
        if self.max_url_length < 1:
            raise ConfigValidationError(
                "interface.max_url_length", self.max_url_length, "must be positive"
            )
        if self.poll_interval <= 0:
            raise ConfigValidationError("polling.interval", self.poll_interval, "must be positive")

        if not self.corpus.annotations:
            warnings.append("No annotations configured; patterns are matched against 'word'")
        for annotation_id in self.extended_annotations:
            if not self.corpus.known_annotation(annotation_id):
                warnings.append(f"Extended view annotation '{annotation_id}' is not declared")
        if self.primary_annotation and not self.corpus.known_annotation(self.primary_annotation):
            warnings.append(f"Primary annotation '{self.primary_annotation}' is not declared")

        return warnings

    def interface_settings(self) -> InterfaceSettings:
        return InterfaceSettings(
            corpus=self.corpus,
            primary_annotation=self.primary_annotation,
            extended_annotations=tuple(self.extended_annotations),
            advanced_enabled=self.advanced_enabled,
            ngram_max_size=self.ngram_max_size,
        )

    def url_codec(self) -> UrlCodec:
        return UrlCodec(self.interface_settings(), self.base_path, self.max_url_length)


def load_config(config_path: Path | None = None) -> tuple[Config, list[str]]:
    """Load configuration from file or use defaults.

    Args:
        config_path: Explicit config file path. If None, uses default location.

    Returns:
        Tuple of (Config object, list of warning messages).

    Raises:
        ConfigParseError: If config file exists but has invalid syntax.
        ConfigValidationError: If config values are invalid.
    """
    warnings: list[str] = []

    if config_path is None:
        config_path = get_default_config_path()

    config_path = config_path.expanduser().resolve()

    if not config_path.exists():
        config = Config()
        warnings.append(
            f"No config file found at {config_path}. Using defaults. "
            f"Create config with: corpus-query init-config"
        )
        return config, warnings + config.validate()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(config_path, str(e)) from e

    config = _parse_config_dict(data, config_path)
    return config, warnings + config.validate()


def _expect(section: dict[str, Any], prefix: str, key: str, types: type | tuple, what: str) -> Any:
    value = section[key]
    # bool is an int subclass; booleans are never accepted as numbers
    if not isinstance(value, types) or (isinstance(value, bool) and bool not in _as_tuple(types)):
        raise ConfigValidationError(f"{prefix}.{key}", value, f"must be {what}")
    return value


def _as_tuple(types: type | tuple) -> tuple:
    return types if isinstance(types, tuple) else (types,)


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ConfigValidationError(name, section, "must be a table")
    return section


def _parse_config_dict(data: dict[str, Any], config_path: Path) -> Config:
    """Parse configuration dictionary into Config object."""
    config = Config(config_path=config_path)

    # Parse [backend] section
    backend = _section(data, "backend")
    if "url" in backend:
        config.backend_url = _expect(backend, "backend", "url", str, "a string")
    if "corpus" in backend:
        config.corpus_id = _expect(backend, "backend", "corpus", str, "a string")
    if "timeout" in backend:
        config.timeout = float(_expect(backend, "backend", "timeout", (int, float), "a number"))

    # Parse [interface] section
    interface = _section(data, "interface")
    if "base_path" in interface:
        config.base_path = _expect(interface, "interface", "base_path", str, "a string")
    if "primary_annotation" in interface:
        config.primary_annotation = _expect(
            interface, "interface", "primary_annotation", str, "a string"
        )
    if "extended_annotations" in interface:
        value = _expect(interface, "interface", "extended_annotations", list, "a list of strings")
        if not all(isinstance(v, str) for v in value):
            raise ConfigValidationError(
                "interface.extended_annotations", value, "must be a list of strings"
            )
        config.extended_annotations = list(value)
    if "advanced_enabled" in interface:
        config.advanced_enabled = _expect(
            interface, "interface", "advanced_enabled", bool, "a boolean"
        )
    if "ngram_max_size" in interface:
        config.ngram_max_size = _expect(interface, "interface", "ngram_max_size", int, "an integer")
    if "max_url_length" in interface:
        config.max_url_length = _expect(interface, "interface", "max_url_length", int, "an integer")

    # Parse [polling] section
    polling = _section(data, "polling")
    if "interval" in polling:
        config.poll_interval = float(
            _expect(polling, "polling", "interval", (int, float), "a number")
        )
    if "debounce" in polling:
        config.debounce = float(_expect(polling, "polling", "debounce", (int, float), "a number"))

    # Parse [history] section
    history = _section(data, "history")
    if "database" in history:
        config.history_db = Path(_expect(history, "history", "database", str, "a string path"))
    if "max_entries" in history:
        config.history_max_entries = _expect(history, "history", "max_entries", int, "an integer")

    # Parse [display] section
    display = _section(data, "display")
    if "colored_output" in display:
        config.colored_output = _expect(display, "display", "colored_output", bool, "a boolean")

    config.corpus = _parse_corpus(data)
    return config


def _parse_corpus(data: dict[str, Any]) -> CorpusInfo:
    """Parse [annotations.*], [fields.*] and [corpus] into corpus metadata."""
    annotations: list[AnnotationDef] = []
    for annotation_id, table in _section(data, "annotations").items():
        prefix = f"annotations.{annotation_id}"
        if not isinstance(table, dict):
            raise ConfigValidationError(prefix, table, "must be a table")
        kind = table.get("kind", ValueKind.TEXT.value)
        try:
            ui_kind = ValueKind(kind)
        except ValueError:
            raise ConfigValidationError(
                f"{prefix}.kind", kind, f"must be one of {', '.join(k.value for k in ValueKind)}"
            ) from None
        annotations.append(
            AnnotationDef(
                id=annotation_id,
                display_name=str(table.get("display_name", "")),
                ui_kind=ui_kind,
                is_internal=bool(table.get("internal", False)),
                sensitivity=str(table.get("sensitivity", "SENSITIVE_AND_INSENSITIVE")),
            )
        )

    fields: list[MetadataFieldDef] = []
    for field_id, table in _section(data, "fields").items():
        prefix = f"fields.{field_id}"
        if not isinstance(table, dict):
            raise ConfigValidationError(prefix, table, "must be a table")
        kind = table.get("kind", UiKind.TEXT.value)
        try:
            ui_kind = UiKind(kind)
        except ValueError:
            raise ConfigValidationError(
                f"{prefix}.kind", kind, f"must be one of {', '.join(k.value for k in UiKind)}"
            ) from None
        fields.append(
            MetadataFieldDef(
                id=field_id, display_name=str(table.get("display_name", "")), ui_kind=ui_kind
            )
        )

    corpus = _section(data, "corpus")
    documents = tokens = 0
    if "documents" in corpus:
        documents = _expect(corpus, "corpus", "documents", int, "an integer")
    if "tokens" in corpus:
        tokens = _expect(corpus, "corpus", "tokens", int, "an integer")

    return CorpusInfo.from_definitions(
        annotations, fields, document_count=documents, token_count=tokens
    )


def save_config(config: Config, config_path: Path | None = None) -> None:
    """Save configuration to file.

    Args:
        config: Configuration to save.
        config_path: Path to save to. If None, uses config.config_path or default.
    """
    if config_path is None:
        config_path = config.config_path or get_default_config_path()

    config_path = config_path.expanduser().resolve()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    backend: dict[str, Any] = {"url": config.backend_url, "timeout": config.timeout}
    if config.corpus_id is not None:
        backend["corpus"] = config.corpus_id

    interface: dict[str, Any] = {
        "base_path": config.base_path,
        "advanced_enabled": config.advanced_enabled,
        "ngram_max_size": config.ngram_max_size,
        "max_url_length": config.max_url_length,
    }
    if config.primary_annotation is not None:
        interface["primary_annotation"] = config.primary_annotation
    if config.extended_annotations:
        interface["extended_annotations"] = list(config.extended_annotations)

    data: dict[str, Any] = {
        "backend": backend,
        "interface": interface,
        "polling": {"interval": config.poll_interval, "debounce": config.debounce},
        "history": {"database": str(config.history_db), "max_entries": config.history_max_entries},
        "display": {"colored_output": config.colored_output},
    }

    # Build corpus metadata sections (only if declared)
    if config.corpus.annotations:
        data["annotations"] = {
            a.id: {
                "display_name": a.display_name,
                "kind": a.ui_kind.value,
                "internal": a.is_internal,
                "sensitivity": a.sensitivity,
            }
            for a in config.corpus.annotations.values()
        }
    if config.corpus.fields:
        data["fields"] = {
            f.id: {"display_name": f.display_name, "kind": f.ui_kind.value}
            for f in config.corpus.fields.values()
        }
    if config.corpus.document_count or config.corpus.token_count:
        data["corpus"] = {
            "documents": config.corpus.document_count,
            "tokens": config.corpus.token_count,
        }

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
