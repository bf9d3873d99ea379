"""Command-line interface for nzbscout."""

import asyncio
import json
import sys
from pathlib import Path

import click

from nzbscout import __version__
from nzbscout.config import SORT_MODES, load_config
from nzbscout.core.serialization import serialize_final_results
from nzbscout.core.sorting import SortOptions, annotate_result, prepare_sorted_results
from nzbscout.core.triage import prioritize_candidates
from nzbscout.metadata.tmdb import TMDBClient
from nzbscout.utils.logger import get_logger, setup_logging


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (defaults to built-in defaults)",
)
@click.pass_context
def cli(ctx, config):
    """nzbscout - NZB result post-processing and TMDB localization."""
    try:
        cfg = load_config(config)
        ctx.ensure_object(dict)
        ctx.obj["config"] = cfg

        setup_logging(cfg.logging)

    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)


def _require_tmdb(config) -> TMDBClient:
    if not config.tmdb.enabled or not config.tmdb.api_key:
        click.secho("✗ TMDB is not configured (tmdb.api_key)", fg="red", err=True)
        sys.exit(1)
    return TMDBClient(config.tmdb.api_key, config.tmdb)


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


@cli.command()
@click.argument("media_type", type=click.Choice(["movie", "series"]))
@click.argument("tmdb_id")
@click.pass_context
def localize(ctx, media_type, tmdb_id):
    """Print canonical and localized titles for a TMDB id."""
    config = ctx.obj["config"]

    async def _localize():
        async with _require_tmdb(config) as client:
            return await client.load_localization(media_type, tmdb_id)

    bundle = asyncio.run(_localize())
    if bundle is None:
        click.secho(f"✗ No TMDB metadata for {media_type} {tmdb_id}", fg="red", err=True)
        sys.exit(1)

    _echo_json(bundle.to_dict())


@cli.command()
@click.argument("media_type", type=click.Choice(["movie", "series"]))
@click.option("--imdb", "imdb_id", default=None, help="IMDb id, e.g. tt0133093")
@click.option("--title", default=None, help="Title to search when the IMDb id fails")
@click.option("--year", type=int, default=None, help="Release or first air year")
@click.option(
    "--language",
    "-l",
    "languages",
    multiple=True,
    help="Search language, tried in order (repeatable)",
)
@click.pass_context
def resolve(ctx, media_type, imdb_id, title, year, languages):
    """Resolve a TMDB id from an IMDb id or a title search."""
    config = ctx.obj["config"]
    if not imdb_id and not title:
        raise click.UsageError("Provide --imdb and/or --title")

    candidates = list(languages) or config.search.language_candidates

    async def _resolve():
        async with _require_tmdb(config) as client:
            return await client.resolve_id(
                media_type,
                imdb_id=imdb_id,
                title=title,
                year=year,
                language_candidates=candidates,
            )

    match = asyncio.run(_resolve())
    if match is None:
        click.secho("✗ No TMDB match", fg="red", err=True)
        sys.exit(1)

    _echo_json(
        {
            "tmdbId": match.tmdb_id,
            "title": match.title,
            "releaseDate": match.release_date,
            "via": match.via,
        }
    )


@cli.command(name="sort")
@click.argument("results_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--max-size-gb", type=float, default=None, help="Drop larger results")
@click.option("--sort-mode", type=click.Choice(SORT_MODES), default=None)
@click.option("--language", default=None, help="Preferred language for language-first sorting")
@click.option(
    "--triage",
    is_flag=True,
    help="Only print distinct triage candidates (search.max_triage_candidates)",
)
@click.option(
    "--candidates",
    type=int,
    default=None,
    help="Number of triage candidates; implies --triage",
)
@click.pass_context
def sort_command(ctx, results_file, max_size_gb, sort_mode, language, triage, candidates):
    """Annotate, filter and sort a JSON list of NZB results."""
    config = ctx.obj["config"]
    logger = get_logger(__name__)

    try:
        raw = json.loads(results_file.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        click.secho(f"✗ Could not read results: {e}", fg="red", err=True)
        sys.exit(1)

    if not isinstance(raw, list):
        click.secho("✗ Results file must contain a JSON list", fg="red", err=True)
        sys.exit(1)

    search = config.search
    if max_size_gb is not None:
        search = search.model_copy(update={"max_size_gb": max_size_gb})

    annotated = [annotate_result(result, index) for index, result in enumerate(raw)]
    options = SortOptions(
        max_size_bytes=search.max_size_bytes,
        sort_mode=sort_mode or search.sort_mode,
        preferred_language=language or search.preferred_language,
    )
    ordered = prepare_sorted_results(annotated, options)
    if candidates is None and triage:
        candidates = search.max_triage_candidates
    if candidates is not None:
        ordered = prioritize_candidates(ordered, candidates)

    logger.info(
        "Sorted results",
        total=len(raw),
        kept=len(ordered),
        sort_mode=options.sort_mode,
    )
    _echo_json(serialize_final_results(ordered))


@cli.command()
@click.pass_context
def version(ctx):
    """Show version information."""
    click.echo(f"nzbscout v{__version__}")


def main():
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
