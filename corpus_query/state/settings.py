"""Interface settings that shape classification and compilation."""

from __future__ import annotations

from dataclasses import dataclass, field

from corpus_query.corpus import CorpusInfo

DEFAULT_NGRAM_MAX_SIZE = 5


@dataclass(frozen=True)
class InterfaceSettings:
    """Corpus metadata plus the UI options that decide which views exist.

    Attributes:
        corpus: Annotation and metadata field definitions.
        primary_annotation: Annotation searched by the simple view; defaults
            to the corpus' first visible annotation.
        extended_annotations: Annotations shown in the extended view; empty
            means every visible annotation.
        advanced_enabled: Whether the query builder view is available.
        ngram_max_size: Largest n-gram the explore view can hold.
    """

    corpus: CorpusInfo = field(default_factory=CorpusInfo)
    primary_annotation: str | None = None
    extended_annotations: tuple[str, ...] = ()
    advanced_enabled: bool = True
    ngram_max_size: int = DEFAULT_NGRAM_MAX_SIZE

    @property
    def primary(self) -> str:
        return self.primary_annotation or self.corpus.primary_annotation

    @property
    def extended_ids(self) -> tuple[str, ...]:
        if self.extended_annotations:
            return self.extended_annotations
        return tuple(a.id for a in self.corpus.visible_annotations())
