"""Read-only corpus metadata: annotations (token attributes) and metadata fields."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class ValueKind(str, enum.Enum):
    """How an annotation value is typed by the user and translated to a regex."""

    TEXT = "text"
    COMBOBOX = "combobox"
    SELECT = "select"
    POS = "pos"


class UiKind(str, enum.Enum):
    """Widget kind of a metadata field; decides filter escaping."""

    TEXT = "text"
    COMBOBOX = "combobox"
    SELECT = "select"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    RANGE = "range"


@dataclass(frozen=True)
class AnnotationDef:
    """A queryable token attribute such as ``word``, ``lemma`` or ``pos``."""

    id: str
    display_name: str = ""
    ui_kind: ValueKind = ValueKind.TEXT
    is_internal: bool = False
    sensitivity: str = "SENSITIVE_AND_INSENSITIVE"

    @property
    def label(self) -> str:
        return self.display_name or self.id

    @property
    def case_sensitive_search(self) -> bool:
        """Whether the backend can search this annotation case-sensitively."""
        return self.sensitivity == "SENSITIVE_AND_INSENSITIVE"


@dataclass(frozen=True)
class MetadataFieldDef:
    """A document-level metadata field usable in filters and grouping."""

    id: str
    display_name: str = ""
    ui_kind: UiKind = UiKind.TEXT

    @property
    def label(self) -> str:
        return self.display_name or self.id


@dataclass
class CorpusInfo:
    """Lookup table of annotation and metadata field definitions.

    Attributes:
        annotations: Annotation definitions by id, in declaration order.
            The first non-internal annotation is the primary annotation.
        fields: Metadata field definitions by id.
        document_count: Total documents in the corpus.
        token_count: Total tokens in the corpus.
    """

    annotations: dict[str, AnnotationDef] = field(default_factory=dict)
    fields: dict[str, MetadataFieldDef] = field(default_factory=dict)
    document_count: int = 0
    token_count: int = 0

    @classmethod
    def from_definitions(
        cls,
        annotations: list[AnnotationDef],
        fields: list[MetadataFieldDef] | None = None,
        document_count: int = 0,
        token_count: int = 0,
    ) -> CorpusInfo:
        return cls(
            annotations={a.id: a for a in annotations},
            fields={f.id: f for f in fields or []},
            document_count=document_count,
            token_count=token_count,
        )

    @property
    def primary_annotation(self) -> str:
        """Id of the annotation searched by the simple view."""
        for annotation in self.annotations.values():
            if not annotation.is_internal:
                return annotation.id
        return "word"

    def annotation(self, annotation_id: str) -> AnnotationDef | None:
        return self.annotations.get(annotation_id)

    def field(self, field_id: str) -> MetadataFieldDef | None:
        return self.fields.get(field_id)

    def known_annotation(self, annotation_id: str) -> bool:
        return annotation_id in self.annotations

    def value_kind(self, annotation_id: str) -> ValueKind:
        annotation = self.annotations.get(annotation_id)
        return annotation.ui_kind if annotation is not None else ValueKind.TEXT

    def visible_annotations(self) -> list[AnnotationDef]:
        return [a for a in self.annotations.values() if not a.is_internal]
