"""Unit tests for the command-line interface."""

import json
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from nzbscout import __version__
from nzbscout.cli import cli
from nzbscout.models.localization import LocalizationBundle, LocalizedTitle, TmdbMatch


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("tmdb:\n  api_key: test-key\nlogging:\n  level: warning\n")
    return path


@pytest.fixture
def results_file(tmp_path):
    path = tmp_path / "results.json"
    path.write_text(
        json.dumps(
            [
                {"title": "Movie.2020.720p.WEB", "size": 3000, "downloadUrl": "u1"},
                {"title": "Movie.2020.2160p.BluRay", "size": 90000, "downloadUrl": "u2"},
                {"title": "Movie.2020.1080p.BluRay", "size": 8000, "downloadUrl": "u3"},
                {"title": "Movie.2020.1080p.BluRay", "size": 7000, "downloadUrl": "u4"},
            ]
        )
    )
    return path


class TestSortCommand:
    """Test the sort command."""

    def test_sorts_results(self, runner, config_file, results_file):
        outcome = runner.invoke(cli, ["-c", str(config_file), "sort", str(results_file)], obj={})

        assert outcome.exit_code == 0, outcome.output
        urls = [entry["downloadUrl"] for entry in json.loads(outcome.stdout)]
        assert urls == ["u2", "u3", "u4", "u1"]

    def test_candidates_dedup_titles(self, runner, config_file, results_file):
        outcome = runner.invoke(
            cli,
            ["-c", str(config_file), "sort", str(results_file), "--candidates", "3"],
            obj={},
        )

        assert outcome.exit_code == 0, outcome.output
        urls = [entry["downloadUrl"] for entry in json.loads(outcome.stdout)]
        assert urls == ["u2", "u3", "u1"]

    def test_triage_uses_configured_candidates(self, runner, tmp_path, results_file):
        config = tmp_path / "triage.yaml"
        config.write_text("search:\n  max_triage_candidates: 2\nlogging:\n  level: warning\n")

        outcome = runner.invoke(
            cli, ["-c", str(config), "sort", str(results_file), "--triage"], obj={}
        )

        assert outcome.exit_code == 0, outcome.output
        urls = [entry["downloadUrl"] for entry in json.loads(outcome.stdout)]
        assert urls == ["u2", "u3"]

    def test_candidates_overrides_configured_count(self, runner, tmp_path, results_file):
        config = tmp_path / "triage.yaml"
        config.write_text("search:\n  max_triage_candidates: 2\nlogging:\n  level: warning\n")

        outcome = runner.invoke(
            cli,
            ["-c", str(config), "sort", str(results_file), "--triage", "--candidates", "1"],
            obj={},
        )

        assert outcome.exit_code == 0, outcome.output
        assert [entry["downloadUrl"] for entry in json.loads(outcome.stdout)] == ["u2"]

    def test_rejects_non_list(self, runner, tmp_path):
        path = tmp_path / "results.json"
        path.write_text('{"title": "x"}')

        outcome = runner.invoke(cli, ["sort", str(path)], obj={})

        assert outcome.exit_code == 1


class TestTmdbCommands:
    """Test commands backed by the TMDB client."""

    def test_localize_requires_api_key(self, runner):
        outcome = runner.invoke(cli, ["localize", "movie", "238"], obj={})

        assert outcome.exit_code == 1

    def test_localize(self, runner, config_file):
        bundle = LocalizationBundle(
            original_language="en",
            default_title="The Godfather",
            localized_titles={"fr": LocalizedTitle(title="Le Parrain", source="translation")},
        )
        with patch(
            "nzbscout.cli.TMDBClient.load_localization", new=AsyncMock(return_value=bundle)
        ):
            outcome = runner.invoke(
                cli, ["-c", str(config_file), "localize", "movie", "238"], obj={}
            )

        assert outcome.exit_code == 0, outcome.output
        data = json.loads(outcome.stdout)
        assert data["localized_titles"]["fr"]["title"] == "Le Parrain"

    def test_resolve(self, runner, config_file):
        match = TmdbMatch(tmdb_id="238", title="The Godfather", via="imdb")
        with patch(
            "nzbscout.cli.TMDBClient.resolve_id", new=AsyncMock(return_value=match)
        ) as resolve_id:
            outcome = runner.invoke(
                cli,
                ["-c", str(config_file), "resolve", "movie", "--imdb", "tt0068646"],
                obj={},
            )

        assert outcome.exit_code == 0, outcome.output
        assert json.loads(outcome.stdout)["via"] == "imdb"
        assert resolve_id.await_args.kwargs["imdb_id"] == "tt0068646"

    def test_resolve_requires_id_or_title(self, runner, config_file):
        outcome = runner.invoke(cli, ["-c", str(config_file), "resolve", "movie"], obj={})

        assert outcome.exit_code == 2


def test_version(runner):
    outcome = runner.invoke(cli, ["version"], obj={})

    assert outcome.exit_code == 0
    assert __version__ in outcome.output
