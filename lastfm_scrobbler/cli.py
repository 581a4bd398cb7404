"""
Command-line interface for lastfm-scrobbler.

This module implements the `scrobble` command using Click, as a thin caller
of the library's public operations. rich-click is used for the output
colors.

Commands:
    scrobble auth                         Desktop auth flow, prints a session key
    scrobble now-playing ARTIST TRACK     Update "now playing"
    scrobble track ARTIST TRACK           Scrobble a single play
    scrobble import FILE                  Scrobble plays from a YAML/JSON file
    scrobble info ARTIST TRACK            Show track.getInfo metadata

Global Options:
    --config <path>                       Path to config.yaml
    --log-dir <dir>                       Also write log files to this directory
    --verbose                             Debug output on the console

Usage:
    # One-time: obtain a session key and put it in config.yaml or .env
    scrobble auth

    # Report playback
    scrobble now-playing "Kendrick Lamar" "Wesley's Theory" --duration 287
    scrobble track "Kendrick Lamar" "Wesley's Theory" --album "To Pimp a Butterfly"

    # Backfill from a file
    scrobble import plays.yaml

Configuration:
    Credentials come from config.yaml and/or the environment, see
    lastfm_scrobbler.core.config. The CLI never writes them anywhere.
"""

import asyncio
import sys
import webbrowser
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Optional

import rich_click as click
import yaml
from tqdm import tqdm

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.MAX_WIDTH = 100

from lastfm_scrobbler import __version__
from lastfm_scrobbler.core import (
    ApiError,
    Config,
    InvalidParameterError,
    ScrobblerError,
    get_logger,
    load_config,
    log_scrobble_failure,
    setup_logging,
    shutdown_logging,
)
from lastfm_scrobbler.lastfm import (
    MAX_SCROBBLES_PER_REQUEST,
    LastFmClient,
    NowPlaying,
    Scrobble,
    TrackInfo,
)

logger = get_logger(__name__)


@click.group()
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml if present)"
)
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    metavar="<dir>",
    help="Write log files to this directory"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Show debug output"
)
@click.version_option(__version__, prog_name="scrobble")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[Path],
    log_dir: Optional[Path],
    verbose: bool
) -> None:
    """
    scrobble: Report plays to Last.fm or a compatible scrobble server.

    \b
    FIRST RUN:
        scrobble auth                  # Prints a session key to keep

    \b
    PLAYBACK:
        scrobble now-playing "Artist" "Title"
        scrobble track "Artist" "Title" --timestamp 1700000000

    \b
    BACKFILL:
        scrobble import plays.yaml     # Batches of 50 with progress bar
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["log_dir"] = log_dir
    ctx.obj["verbose"] = verbose


@cli.command()
@click.option(
    "--no-browser",
    is_flag=True,
    help="Only print the authorization URL"
)
@click.pass_context
def auth(ctx: click.Context, no_browser: bool) -> None:
    """
    Run the desktop authorization flow and print a session key.

    Requires Last.fm API credentials (not a token-mode server).
    """
    config = _load_config(ctx)

    async def flow() -> None:
        async with LastFmClient.from_config(config) as client:
            click.echo("Step 1: Requesting authentication token...")
            token = await client.get_token()

            auth_url = client.get_auth_url(token)
            click.echo("Step 2: Please authorize this application:")
            click.echo(f"  {auth_url}\n")
            if not no_browser:
                webbrowser.open(auth_url)
            click.prompt(
                "Press Enter after you've authorized",
                default="",
                show_default=False,
            )

            click.echo("Step 3: Exchanging token for session key...")
            session = await client.get_session(token)

        click.echo("Authentication successful!\n")
        click.echo(f"  Username:    {session.name}")
        click.echo(f"  Session key: {session.key}")
        click.echo("\nSave this session key as lastfm.session_key or LASTFM_SESSION_KEY.")

    _run(flow())


def _track_options(func):
    """Shared optional metadata options for now-playing and track."""
    options = [
        click.option("--album", default=None, help="Album title"),
        click.option("--track-number", type=click.IntRange(min=1), default=None, help="Position on the album"),
        click.option("--duration", type=click.IntRange(min=0), default=None, help="Track length in seconds"),
        click.option("--album-artist", default=None, help="Album artist, if different"),
        click.option("--player", default=None, help="Player name (scrobble servers only)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@cli.command("now-playing")
@click.argument("artist")
@click.argument("track")
@_track_options
@click.pass_context
def now_playing(ctx: click.Context, artist: str, track: str, **metadata: Any) -> None:
    """Update the "now playing" status."""
    config = _load_config(ctx)
    payload = NowPlaying(artist=artist, track=track, **metadata)

    async def send() -> None:
        async with LastFmClient.from_config(config) as client:
            await client.update_now_playing(payload)

    _run(send())
    click.echo(f"Now playing: {artist} - {track}")


@cli.command("track")
@click.argument("artist")
@click.argument("track")
@click.option(
    "--timestamp",
    type=int,
    default=None,
    help="Play start as Unix epoch seconds (default: now)"
)
@_track_options
@click.pass_context
def scrobble_track(
    ctx: click.Context,
    artist: str,
    track: str,
    timestamp: Optional[int],
    **metadata: Any
) -> None:
    """Scrobble a single play."""
    config = _load_config(ctx)
    if timestamp is None:
        timestamp = int(datetime.now(timezone.utc).timestamp())

    play = Scrobble(artist=artist, track=track, timestamp=timestamp, **metadata)

    async def send():
        async with LastFmClient.from_config(config) as client:
            return await client.scrobble([play])

    result = _run(send())
    click.echo(f"Scrobbled: {artist} - {track}")
    click.echo(f"  Accepted: {result.accepted}")
    click.echo(f"  Ignored:  {result.ignored}")


@cli.command("import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def import_plays(ctx: click.Context, file: Path) -> None:
    """
    Scrobble plays listed in a YAML or JSON FILE.

    \b
    The file holds a list of plays (or a mapping with a 'scrobbles' list):
        - artist: "Kendrick Lamar"
          track: "Wesley's Theory"
          timestamp: 1700000000
          album: "To Pimp a Butterfly"

    Plays are sent in batches of 50. Failed batches are logged (and written
    to scrobble_failures.log when --log-dir is set); an authentication error
    stops the import.
    """
    config = _load_config(ctx)

    try:
        plays = _read_plays(file)
    except ScrobblerError as e:
        raise click.ClickException(e.message) from e

    if not plays:
        click.echo("No plays to import.")
        return

    accepted, ignored, failed = _run(_import_batches(config, plays))

    click.echo(f"Imported {len(plays)} play(s) from {file}")
    click.echo(f"  Accepted: {accepted}")
    click.echo(f"  Ignored:  {ignored}")
    click.echo(f"  Failed:   {failed}")
    if failed:
        sys.exit(1)


@cli.command("info")
@click.argument("artist")
@click.argument("track")
@click.option("--mbid", default=None, help="MusicBrainz recording ID")
@click.option("--username", default=None, help="Include this user's playcount")
@click.pass_context
def info(
    ctx: click.Context,
    artist: str,
    track: str,
    mbid: Optional[str],
    username: Optional[str]
) -> None:
    """Show Last.fm metadata for a track."""
    config = _load_config(ctx)

    async def fetch() -> TrackInfo:
        async with LastFmClient.from_config(config) as client:
            return await client.get_track_info(artist, track, mbid, username=username)

    _print_track_info(_run(fetch()))


async def _import_batches(config: Config, plays: list[Scrobble]) -> tuple[int, int, int]:
    """
    Submit plays in batches, continuing past failed batches.

    Returns:
        (accepted, ignored, failed) totals.
    """
    accepted = ignored = failed = 0

    async with LastFmClient.from_config(config) as client:
        with tqdm(total=len(plays), unit="play", desc="Scrobbling") as progress:
            for start in range(0, len(plays), MAX_SCROBBLES_PER_REQUEST):
                batch = plays[start:start + MAX_SCROBBLES_PER_REQUEST]
                try:
                    result = await client.scrobble(batch)
                except ApiError as e:
                    for play in batch:
                        log_scrobble_failure(logger, play, e.message)
                    failed += len(batch)
                    if e.is_auth_error:
                        logger.error("Authentication rejected; run `scrobble auth` again")
                        failed += len(plays) - start - len(batch)
                        break
                except ScrobblerError as e:
                    for play in batch:
                        log_scrobble_failure(logger, play, e.message)
                    failed += len(batch)
                else:
                    accepted += result.accepted
                    ignored += result.ignored
                progress.update(len(batch))

    return accepted, ignored, failed


def _read_plays(file: Path) -> list[Scrobble]:
    """
    Parse an import file into Scrobble records.

    Raises:
        InvalidParameterError: If the file is not a list of play mappings.
    """
    try:
        with open(file, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise InvalidParameterError(
            f"Cannot read {file}: {e}",
            details={"file_path": str(file)}
        ) from e

    if isinstance(raw, dict):
        raw = raw.get("scrobbles")
    if raw is None:
        return []
    if not isinstance(raw, list) or not all(isinstance(item, dict) for item in raw):
        raise InvalidParameterError(
            f"{file} must contain a list of plays",
            details={"file_path": str(file)}
        )

    return [Scrobble.from_dict(item) for item in raw]


def _print_track_info(track: TrackInfo) -> None:
    click.echo(f"Track:     {track.name}")
    click.echo(f"Artist:    {track.artist.name}")
    click.echo(f"URL:       {track.url}")
    click.echo(f"Listeners: {track.listeners}")
    click.echo(f"Playcount: {track.playcount}")

    if track.duration:
        click.echo(f"Duration:  {track.duration // 1000}s")
    if track.userplaycount is not None:
        click.echo(f"Your plays: {track.userplaycount}")

    if track.album is not None:
        click.echo(f"\nAlbum: {track.album.title} by {track.album.artist}")
        if track.album.images:
            click.echo(f"Cover art: {track.album.images[-1].url}")

    if track.tags:
        click.echo("\nTop tags:")
        for tag in track.tags[:5]:
            click.echo(f"  - {tag.name}")

    if track.wiki is not None and track.wiki.summary:
        click.echo("\nWiki summary:")
        click.echo(f"{track.wiki.summary[:200]}...")


def _load_config(ctx: click.Context) -> Config:
    """
    Load the configuration and start logging for a subcommand.

    Runs inside the subcommand so that `--help` works without credentials.
    """
    options = ctx.find_root().obj
    try:
        config = load_config(options["config_path"])
    except ScrobblerError as e:
        raise click.ClickException(e.message) from e

    setup_logging(
        options["log_dir"] or config.logging.directory,
        "DEBUG" if options["verbose"] else config.logging.level,
    )
    ctx.call_on_close(shutdown_logging)

    logger.debug(f"Using API key {config.masked_api_key()}")
    return config


def _run(coro: Awaitable[Any]) -> Any:
    """Run a coroutine, turning library errors into a clean CLI failure."""
    try:
        return asyncio.run(coro)
    except ScrobblerError as e:
        logger.debug(f"Command failed: {e.message}", extra={"details": e.details})
        raise click.ClickException(e.message) from e


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `scrobble` from the command line.
    """
    cli()


if __name__ == "__main__":
    main()
