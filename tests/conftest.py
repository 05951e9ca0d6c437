"""Shared pytest fixtures."""

from __future__ import annotations

import shutil
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from corpus_query.corpus import AnnotationDef, CorpusInfo, MetadataFieldDef, UiKind, ValueKind
from corpus_query.state.settings import InterfaceSettings
from corpus_query.url.codec import UrlCodec

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    path = Path(tempfile.mkdtemp())
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def sample_config(temp_dir: Path) -> Path:
    """Create a sample config file."""
    config_path = temp_dir / "config.toml"
    config_path.write_text(f"""[backend]
url = "http://localhost:8080/blacklab-server"
corpus = "testcorpus"

[interface]
base_path = "/corpus-frontend/testcorpus/search"

[history]
database = "{temp_dir / 'history.sqlite'}"
max_entries = 10

[display]
colored_output = false

[annotations.word]
kind = "text"

[annotations.lemma]
kind = "text"

[annotations.pos]
kind = "pos"

[annotations.punct]
internal = true

[fields.title]
kind = "text"

[fields.genre]
kind = "select"

[fields.year]
kind = "range"

[corpus]
documents = 120
tokens = 500000
""")
    return config_path


@pytest.fixture
def corpus() -> CorpusInfo:
    """Corpus with word, lemma and pos annotations and four metadata fields."""
    return CorpusInfo.from_definitions(
        [
            AnnotationDef("word", "Word"),
            AnnotationDef("lemma", "Lemma"),
            AnnotationDef("pos", "Part of speech", ui_kind=ValueKind.POS),
            AnnotationDef("punct", is_internal=True),
        ],
        [
            MetadataFieldDef("title", "Title", UiKind.TEXT),
            MetadataFieldDef("author", "Author", UiKind.COMBOBOX),
            MetadataFieldDef("genre", "Genre", UiKind.SELECT),
            MetadataFieldDef("year", "Year", UiKind.RANGE),
        ],
        document_count=120,
        token_count=500000,
    )


@pytest.fixture
def settings(corpus: CorpusInfo) -> InterfaceSettings:
    return InterfaceSettings(corpus=corpus)


@pytest.fixture
def codec(settings: InterfaceSettings) -> UrlCodec:
    return UrlCodec(settings, base_path="/corpus-frontend/testcorpus/search")
