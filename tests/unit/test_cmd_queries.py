"""Unit tests for the query commands (classify, parse, encode/decode, history, totals)."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from corpus_query.backend import SubcorpusCounter
from corpus_query.cli import cli


@pytest.fixture
def run(sample_config: Path):
    """Invoke the CLI with the sample config."""
    runner = CliRunner()

    def invoke(*args: str):
        return runner.invoke(cli, ["--config", str(sample_config), *args])

    return invoke


def _declare(config_path: Path, table: str, line: str) -> None:
    """Add a key to a table of the sample config."""
    text = config_path.read_text()
    config_path.write_text(text.replace(f"{table}\n", f"{table}\n{line}\n", 1))


# ---------------------------------------------------------------------------
# classify
# ---------------------------------------------------------------------------


class TestClassify:
    def test_simple(self, run) -> None:
        result = run("classify", '"cat"')
        assert result.exit_code == 0
        assert "simple" in result.output

    def test_extended(self, run) -> None:
        result = run("classify", '[lemma="cat"][lemma="dog"]')
        assert result.exit_code == 0
        assert "extended" in result.output

    def test_unparseable_goes_to_expert(self, run) -> None:
        result = run("classify", '[lemma="cat"')
        assert result.exit_code == 0
        assert "expert" in result.output

    def test_frequency(self, run) -> None:
        result = run("classify", "[]", "--group", "hit:lemma", "--view", "hits")
        assert result.exit_code == 0
        assert "frequency" in result.output

    def test_shows_annotation_labels(self, run, sample_config: Path) -> None:
        _declare(sample_config, "[annotations.lemma]", 'display_name = "Lemma"')
        result = run("classify", '[lemma="cat"]')
        assert result.exit_code == 0
        assert "Lemma" in result.output


# ---------------------------------------------------------------------------
# parse-pattern / parse-filter
# ---------------------------------------------------------------------------


class TestParsePattern:
    def test_shows_tokens(self, run) -> None:
        result = run("parse-pattern", '[lemma="cat"] []{1,3} "sat" within <s/>')
        assert result.exit_code == 0
        assert "1..3" in result.output
        assert "any token" in result.output

    def test_syntax_error(self, run) -> None:
        result = run("parse-pattern", '[lemma="cat"')
        assert result.exit_code == 2
        assert "Error" in result.output


class TestParseFilter:
    def test_shows_clauses(self, run) -> None:
        result = run("parse-filter", '+genre:("poetry" "prose") +year:[1900 TO 1950]')
        assert result.exit_code == 0
        assert "poetry" in result.output
        assert "range" in result.output

    def test_shows_field_labels(self, run, sample_config: Path) -> None:
        _declare(sample_config, "[fields.genre]", 'display_name = "Literary genre"')
        result = run("parse-filter", '+genre:"poetry"')
        assert result.exit_code == 0
        assert "Literary genre" in result.output

    def test_undeclared_field_is_ignored(self, run) -> None:
        result = run("parse-filter", '+publisher:"x"')
        assert result.exit_code == 0
        assert "ignored" in result.output

    def test_syntax_error(self, run) -> None:
        result = run("parse-filter", "+genre:(")
        assert result.exit_code == 2


# ---------------------------------------------------------------------------
# encode-url / decode-url
# ---------------------------------------------------------------------------


class TestEncodeUrl:
    def test_prints_url(self, run) -> None:
        result = run("encode-url", '"cat"')
        assert result.exit_code == 0
        assert "/corpus-frontend/testcorpus/search/hits?" in result.output

    def test_docs_without_pattern(self, run) -> None:
        result = run("encode-url", "--filter", '+genre:"poetry"')
        assert result.exit_code == 0
        assert "/corpus-frontend/testcorpus/search/docs?" in result.output

    def test_sample_requires_seed(self, run) -> None:
        result = run("encode-url", '"cat"', "--sample", "10")
        assert result.exit_code == 1

    def test_sample_options_are_exclusive(self, run) -> None:
        result = run("encode-url", '"cat"', "--sample", "10", "--sample-count", "5", "--seed", "1")
        assert result.exit_code == 1

    def test_warns_on_insensitive_annotation(self, run, sample_config: Path) -> None:
        _declare(sample_config, "[annotations.lemma]", 'sensitivity = "ONLY_INSENSITIVE"')
        result = run("encode-url", '[lemma="(?-i)Cat"]')
        assert result.exit_code == 0
        assert "cannot be searched case-sensitively" in result.output

    def test_sensitive_annotation_does_not_warn(self, run) -> None:
        result = run("encode-url", '[lemma="(?-i)Cat"]')
        assert result.exit_code == 0
        assert "case-sensitively" not in result.output

    def test_record_adds_history(self, run) -> None:
        result = run("encode-url", '[lemma="cat"]', "--record")
        assert result.exit_code == 0
        assert "Added to query history" in result.output

        listing = run("history")
        assert listing.exit_code == 0
        assert "lemma" in listing.output


class TestDecodeUrl:
    URL = "/corpus-frontend/testcorpus/search/hits?patt=%5Blemma%3D%22cat%22%5D&number=20"

    def test_json(self, run) -> None:
        result = run("decode-url", self.URL, "--json")
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["view"]["type"] == "extended"
        assert data["viewed_results"] == "hits"
        assert data["global_settings"]["page_size"] == 20

    def test_shows_backend_request(self, run) -> None:
        result = run("decode-url", self.URL)
        assert result.exit_code == 0
        assert "Backend request" in result.output
        assert "patt" in result.output

    def test_garbage_url_decodes_to_defaults(self, run) -> None:
        result = run("decode-url", "not a url at all", "--json")
        assert result.exit_code == 0
        assert json.loads(result.stdout)["viewed_results"] is None


# ---------------------------------------------------------------------------
# history
# ---------------------------------------------------------------------------


class TestHistory:
    def test_empty(self, run) -> None:
        result = run("history")
        assert result.exit_code == 0
        assert "empty" in result.output

    def test_split_batch_adds_entry_per_value(self, run) -> None:
        result = run("encode-url", '[lemma="cat|dog|mouse"]', "--split-batch")
        assert result.exit_code == 0
        assert "Queued the batch" in result.output

        cleared = run("history", "--clear")
        assert "Removed 3 history entries" in cleared.output

    def test_split_batch_needs_splittable_query(self, run) -> None:
        result = run("encode-url", '[lemma="cat"', "--split-batch")
        assert result.exit_code == 1

    def test_clear(self, run) -> None:
        run("encode-url", '"cat"', "--record")
        run("encode-url", '"dog"', "--record")
        result = run("history", "--clear")
        assert result.exit_code == 0
        assert "Removed 2 history entries" in result.output


# ---------------------------------------------------------------------------
# totals
# ---------------------------------------------------------------------------


class TestTotals:
    @patch("corpus_query.backend.client.BlackLabClient.search")
    def test_counts_results(self, mock_search: MagicMock, run) -> None:
        mock_search.return_value = {
            "summary": {"numberOfHits": 7, "numberOfDocs": 3, "stillCounting": False}
        }
        result = run("totals", "/corpus-frontend/testcorpus/search/hits?patt=%22cat%22")
        assert result.exit_code == 0
        assert "7 results" in result.output
        operation, params = mock_search.call_args.args
        assert operation == "hits"
        assert params["number"] == 0

    def test_subcorpus_uses_configured_debounce(self, run, sample_config: Path) -> None:
        sample_config.write_text(sample_config.read_text() + "\n[polling]\ndebounce = 0.01\n")
        with (
            patch("corpus_query.backend.client.BlackLabClient.search") as mock_search,
            patch(
                "corpus_query.commands.totals.SubcorpusCounter", wraps=SubcorpusCounter
            ) as counter,
        ):
            mock_search.return_value = {
                "summary": {"numberOfHits": 7, "numberOfDocs": 3, "stillCounting": False}
            }
            result = run(
                "totals", "/corpus-frontend/testcorpus/search/hits?patt=%22cat%22", "--subcorpus"
            )
        assert result.exit_code == 0
        assert counter.call_args.kwargs["debounce"] == 0.01
        assert "Sub-corpus: 120 documents, 500000 tokens" in result.output

    def test_url_without_results(self, run) -> None:
        result = run("totals", "/corpus-frontend/testcorpus/search/")
        assert result.exit_code == 1
