"""
Command-line interface for m3u-sync.

Built with Click; rich-click provides the colored help output.

Commands:
    m3u-sync sync <playlist>                  Sync one mapped playlist
    m3u-sync sync --all                       Sync every mapping
    m3u-sync generate [--base <folder>]       One playlist per library folder
    m3u-sync match <playlist> [--folder F]    Dry run: show what would match
    m3u-sync mapping add <playlist> --folder F [--file X.m3u] [--name N]
    m3u-sync mapping list
    m3u-sync mapping history <playlist> [--limit N]
    m3u-sync mapping remove <playlist>
    m3u-sync merge <source.m3u> <target.m3u>  Merge one playlist into another

Global Options:
    --config <path>     config.yaml to use (default: ./config.yaml)
    --verbose           Show DEBUG messages on the console

Exit Codes:
    0   success
    1   configuration error (or unexpected error)
    2   database error
    3   Spotify error
    4   any other m3u-sync error (missing folder, unwritable playlist, ...)
    130 interrupted
"""

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import rich_click as click
from rich.console import Console
from rich.table import Table

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = ""
click.rich_click.MAX_WIDTH = 100

from m3u_sync import __version__
from m3u_sync.core import (
    Config,
    ConfigError,
    DatabaseError,
    M3USyncError,
    MappingStore,
    PlaylistMapping,
    SpotifyError,
    ValidationError,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from m3u_sync.core.file_manager import sanitize_filename
from m3u_sync.core.progress import FolderProgressBar, MatchingProgressBar, SyncProgressBar
from m3u_sync.matching.models import MatchRecord
from m3u_sync.playlist.codec import merge_into_file, read_playlist_text
from m3u_sync.spotify import SpotifyTrackSource, extract_playlist_id
from m3u_sync.sync import (
    FolderBatchReport,
    PlaylistSynchronizer,
    SyncResult,
    generate_folder_playlists,
    write_sync_report,
)

logger = get_logger(__name__)

console = Console()


@click.group()
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml)"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Show debug messages on the console"
)
@click.version_option(__version__, prog_name="m3u-sync")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool) -> None:
    """
    m3u-sync: keep local M3U playlists in step with Spotify playlists.

    \b
    TYPICAL USE:
        m3u-sync mapping add <playlist-url> --folder Pop
        m3u-sync sync --all
        m3u-sync generate
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


# =============================================================================
# Helpers
# =============================================================================

@contextmanager
def _handle_errors():
    """Turn application errors into messages and exit codes."""
    try:
        yield

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    except DatabaseError as e:
        click.echo(f"Database error: {e.message}", err=True)
        logger.error(f"Database error: {e.message}", exc_info=True)
        sys.exit(2)

    except SpotifyError as e:
        click.echo(f"Spotify error: {e.message}", err=True)
        if e.is_auth_error:
            click.echo("Check spotify.access_token in config.yaml or SPOTIFY_ACCESS_TOKEN", err=True)
        if e.is_rate_limit:
            click.echo("Spotify is rate limiting requests; try again later", err=True)
        logger.error(f"Spotify error: {e.message}", exc_info=True)
        sys.exit(3)

    except M3USyncError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        sys.exit(4)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        sys.exit(130)

    finally:
        shutdown_logging()


def _load(ctx: click.Context) -> Config:
    """Load config.yaml and start logging."""
    config = load_config(ctx.obj.get("config_path"))
    setup_logging(config.library.log_directory, verbose=ctx.obj.get("verbose", False))
    return config


def _print_sync_summary(results: list[SyncResult]) -> None:
    table = Table(title="Sync results")
    table.add_column("Playlist")
    table.add_column("Matched", justify="right")
    table.add_column("Unmatched", justify="right")
    table.add_column("%", justify="right")
    table.add_column("File")

    for result in results:
        table.add_row(
            result.playlist_name,
            f"{result.matched_tracks}/{result.total_tracks}",
            str(len(result.unmatched)),
            f"{result.match_percentage:.1f}",
            Path(result.m3u_file_path).name if result.m3u_file_path else "",
        )
    console.print(table)


def _print_generation_summary(report: FolderBatchReport) -> None:
    table = Table(title=f"Generated playlists ({len(report.results)}/{report.total_folders} folders)")
    table.add_column("Folder")
    table.add_column("Songs", justify="right")
    table.add_column("Appearances", justify="right")
    table.add_column("File")

    for result in report.results:
        table.add_row(result.folder, str(result.songs_count), str(result.total_appearances), result.m3u_file)
    console.print(table)

    for folder in report.skipped:
        console.print(f"[yellow]Skipped[/yellow] {folder} (no audio files)")
    for item in report.failed:
        console.print(f"[red]Failed[/red] {item.path}: {item.reason}")


def _print_match_table(records: list[MatchRecord]) -> None:
    table = Table(title="Match preview")
    table.add_column("#", justify="right")
    table.add_column("Track")
    table.add_column("Local file")
    table.add_column("Score", justify="right")

    for position, record in enumerate(records, start=1):
        track = record.track
        local = Path(record.local_file_path).name if record.is_matched else "[red]no match[/red]"
        table.add_row(
            str(position),
            f"{track.display_artists} - {track.title}",
            local,
            f"{record.score:.2f}",
        )
    console.print(table)


# =============================================================================
# Commands
# =============================================================================

@cli.command()
@click.argument("playlist", required=False, metavar="<playlist>")
@click.option("--all", "sync_all", is_flag=True, help="Sync every mapped playlist")
@click.option(
    "--report",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<report.json>",
    help="Also write a JSON report of the run"
)
@click.pass_context
def sync(ctx: click.Context, playlist: Optional[str], sync_all: bool, report: Optional[Path]) -> None:
    """Sync mapped Spotify playlists into their local .m3u files."""
    if not playlist and not sync_all:
        raise click.UsageError("Give a playlist id/URL or --all")
    if playlist and sync_all:
        raise click.UsageError("Cannot use both a playlist and --all")

    failed = 0
    with _handle_errors():
        config = _load(ctx)
        source = SpotifyTrackSource(config.require_access_token())

        with MappingStore(config.library.database) as store:
            synchronizer = PlaylistSynchronizer(config, store)

            if sync_all:
                mappings = store.get_all_mappings()
                if not mappings:
                    logger.warning("No mappings defined. Add one with 'm3u-sync mapping add'.")
                    return
                with SyncProgressBar(total=len(mappings)) as progress:
                    batch = synchronizer.sync_all(mappings, source.fetch_tracks, progress=progress)
                results = batch.results
                for failure in batch.failed:
                    click.echo(f"Failed: {failure.playlist_name}: {failure.reason}", err=True)
                failed = len(batch.failed)
            else:
                playlist_id = extract_playlist_id(playlist)
                mapping = store.get_mapping(playlist_id)
                if mapping is None:
                    raise ValidationError(
                        f"No mapping for playlist {playlist_id}. Add one with 'm3u-sync mapping add'.",
                        fields=["remote_playlist_id"]
                    )
                tracks = source.fetch_tracks(playlist_id)
                with MatchingProgressBar(total=len(tracks)) as progress:
                    results = [synchronizer.sync_playlist(mapping, tracks, progress=progress)]

        _print_sync_summary(results)
        if report is not None:
            write_sync_report(results, report)
            logger.info(f"Report written to {report}")

    if failed:
        sys.exit(4)


@cli.command()
@click.option(
    "--base", "base_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    metavar="<folder>",
    help="Base music folder (default: library.base_music_folder)"
)
@click.pass_context
def generate(ctx: click.Context, base_dir: Optional[Path]) -> None:
    """Write one popularity-ordered playlist per library subfolder."""
    with _handle_errors():
        if base_dir is None:
            base_dir = _load(ctx).library.base_music_folder
        else:
            setup_logging(Path.cwd(), verbose=ctx.obj.get("verbose", False))

        report = generate_folder_playlists(base_dir, progress_factory=FolderProgressBar)
        _print_generation_summary(report)


@cli.command()
@click.argument("playlist", metavar="<playlist>")
@click.option("--folder", default=None, metavar="<name>", help="Local folder (default: the mapped folder)")
@click.pass_context
def match(ctx: click.Context, playlist: str, folder: Optional[str]) -> None:
    """Show how a playlist's tracks would match, without writing anything."""
    with _handle_errors():
        config = _load(ctx)
        playlist_id = extract_playlist_id(playlist)

        if folder is None:
            with MappingStore(config.library.database) as store:
                mapping = store.get_mapping(playlist_id)
            if mapping is None:
                raise ValidationError(
                    f"No mapping for playlist {playlist_id}; pass --folder",
                    fields=["local_folder_name"]
                )
        else:
            mapping = PlaylistMapping(
                remote_playlist_id=playlist_id,
                remote_playlist_name=playlist_id,
                local_folder_name=folder,
                playlist_file_name=f"{sanitize_filename(folder)}.m3u",
            )

        source = SpotifyTrackSource(config.require_access_token())
        tracks = source.fetch_tracks(playlist_id)

        synchronizer = PlaylistSynchronizer(config)
        with MatchingProgressBar(total=len(tracks)) as progress:
            records = synchronizer.match_playlist(mapping, tracks, progress=progress)

        _print_match_table(records)


@cli.command("merge")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("target", type=click.Path(dir_okay=False, path_type=Path))
def merge_command(source: Path, target: Path) -> None:
    """Merge the entries of SOURCE into TARGET (created if missing)."""
    with _handle_errors():
        entries = merge_into_file(target, read_playlist_text(source))
        click.echo(f"{target}: {len(entries)} entries")


# =============================================================================
# Mapping management
# =============================================================================

@cli.group()
def mapping() -> None:
    """Manage playlist-to-folder mappings."""


@mapping.command("add")
@click.argument("playlist", metavar="<playlist>")
@click.option("--folder", required=True, metavar="<name>", help="Subfolder of the base music folder")
@click.option("--file", "playlist_file", default=None, metavar="<name.m3u>", help="Playlist file name")
@click.option("--name", default=None, help="Playlist name (default: fetched from Spotify)")
@click.pass_context
def mapping_add(
    ctx: click.Context,
    playlist: str,
    folder: str,
    playlist_file: Optional[str],
    name: Optional[str]
) -> None:
    """Map a Spotify playlist to a local folder."""
    with _handle_errors():
        config = _load(ctx)
        playlist_id = extract_playlist_id(playlist)

        if name is None:
            name = SpotifyTrackSource(config.require_access_token()).playlist_name(playlist_id)
        if playlist_file is None:
            playlist_file = f"{sanitize_filename(name)}.m3u"

        if not (config.library.base_music_folder / folder).is_dir():
            logger.warning(f"Folder '{folder}' does not exist yet in {config.library.base_music_folder}")

        with MappingStore(config.library.database) as store:
            saved = store.save_mapping(PlaylistMapping(
                remote_playlist_id=playlist_id,
                remote_playlist_name=name,
                local_folder_name=folder,
                playlist_file_name=playlist_file,
            ))

        click.echo(f"Mapped '{saved.remote_playlist_name}' -> {saved.local_folder_name}/ ({saved.playlist_file_name})")


@mapping.command("list")
@click.pass_context
def mapping_list(ctx: click.Context) -> None:
    """List all mappings with their last sync statistics."""
    with _handle_errors():
        config = _load(ctx)
        with MappingStore(config.library.database) as store:
            mappings = store.get_all_mappings()

        if not mappings:
            click.echo("No mappings defined.")
            return

        table = Table(title="Mappings")
        table.add_column("Playlist")
        table.add_column("ID")
        table.add_column("Folder")
        table.add_column("File")
        table.add_column("Last sync")
        table.add_column("Matched", justify="right")

        for m in mappings:
            matched = ""
            if m.matched_count is not None:
                matched = f"{m.matched_count} ({m.matched_percentage or 0:.1f}%)"
            table.add_row(
                m.remote_playlist_name,
                m.remote_playlist_id,
                m.local_folder_name,
                m.playlist_file_name,
                m.last_sync or "never",
                matched,
            )
        console.print(table)


@mapping.command("history")
@click.argument("playlist", metavar="<playlist>")
@click.option("--limit", default=10, show_default=True, type=click.IntRange(min=1), help="Number of syncs shown")
@click.pass_context
def mapping_history(ctx: click.Context, playlist: str, limit: int) -> None:
    """Show the most recent syncs of a playlist."""
    with _handle_errors():
        config = _load(ctx)
        playlist_id = extract_playlist_id(playlist)

        with MappingStore(config.library.database) as store:
            history = store.get_sync_history(playlist_id, limit=limit)

        if not history:
            click.echo(f"No syncs recorded for {playlist_id}.")
            return

        table = Table(title=f"Sync history: {playlist_id}")
        table.add_column("Synced at")
        table.add_column("Tracks", justify="right")
        table.add_column("Matched", justify="right")
        table.add_column("Unmatched", justify="right")
        table.add_column("File")

        for entry in history:
            table.add_row(
                entry["synced_at"],
                str(entry["total_tracks"]),
                str(entry["matched_count"]),
                str(entry["unmatched_count"]),
                Path(entry["m3u_file_path"]).name if entry["m3u_file_path"] else "",
            )
        console.print(table)


@mapping.command("remove")
@click.argument("playlist", metavar="<playlist>")
@click.pass_context
def mapping_remove(ctx: click.Context, playlist: str) -> None:
    """Remove a mapping (the .m3u file is left alone)."""
    with _handle_errors():
        config = _load(ctx)
        playlist_id = extract_playlist_id(playlist)

        with MappingStore(config.library.database) as store:
            deleted = store.delete_mapping(playlist_id)

        if not deleted:
            raise ValidationError(
                f"No mapping for playlist {playlist_id}",
                fields=["remote_playlist_id"]
            )
        click.echo(f"Removed mapping {playlist_id}")


def main() -> None:
    """Entry point for the m3u-sync console script."""
    cli()


if __name__ == "__main__":
    main()
