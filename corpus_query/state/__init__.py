"""Search state: views, classification, compilation and backend parameters."""

from corpus_query.state.classifier import ClassificationContext, classify
from corpus_query.state.compiler import (
    CompiledPattern,
    compile_view,
    prepare_submission,
    split_batch,
)
from corpus_query.state.settings import InterfaceSettings
from corpus_query.state.snapshot import to_search_parameters
from corpus_query.state.views import (
    AdvancedView,
    CorporaView,
    ExpertView,
    ExtendedView,
    FrequencyView,
    GlobalSettings,
    GroupSpec,
    InterfaceState,
    NgramToken,
    NgramView,
    ResultSettings,
    SearchSnapshot,
    SimpleView,
    ViewState,
)

__all__ = [
    "AdvancedView",
    "ClassificationContext",
    "CompiledPattern",
    "CorporaView",
    "ExpertView",
    "ExtendedView",
    "FrequencyView",
    "GlobalSettings",
    "GroupSpec",
    "InterfaceSettings",
    "InterfaceState",
    "NgramToken",
    "NgramView",
    "ResultSettings",
    "SearchSnapshot",
    "SimpleView",
    "ViewState",
    "classify",
    "compile_view",
    "prepare_submission",
    "split_batch",
    "to_search_parameters",
]
