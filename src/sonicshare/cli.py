"""CLI interface for SonicShare uploads."""

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from sonicshare.analysis import AudioFingerprintExtractor, PydubDecoder
from sonicshare.config import get_settings
from sonicshare.errors import LyricsLookupError, UploadCoreError, UploadError
from sonicshare.models import AudioAnalysis, CatalogRecord, MediaFile
from sonicshare.service import UploadService

app = typer.Typer(
    name="sonicshare",
    help="Analyze and upload lossless tracks to the SonicShare catalog.",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def _format_duration(seconds: float) -> str:
    total = int(round(seconds))
    return f"{total // 60}:{total % 60:02d}"


def _display_analysis(path: Path, analysis: AudioAnalysis) -> None:
    stats = analysis.stats
    table = Table(title=path.name)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Title", analysis.suggested.title)
    table.add_row("Artist", analysis.suggested.artist)
    table.add_row("Album", analysis.suggested.album or "-")
    table.add_row("Duration", _format_duration(stats.duration_seconds))
    table.add_row("Sample rate", f"{stats.sample_rate_hz} Hz")
    table.add_row("Bitrate", f"{stats.bitrate_kbps} kbps")
    table.add_row("Channels", "Stereo" if stats.is_stereo else ("Mono" if stats.channel_count == 1 else str(stats.channel_count)))
    table.add_row("Format", stats.format)
    console.print(table)


def _display_record(record: CatalogRecord) -> None:
    console.print(Panel(
        f"[green]Saved to library![/green]\n\n"
        f"[bold]ID:[/bold] {record.id}\n"
        f"[bold]Title:[/bold] {record.title}\n"
        f"[bold]Artist:[/bold] {record.artist}\n"
        f"[bold]Album:[/bold] {record.album}\n"
        f"[bold]Audio:[/bold] {record.audio_url}\n"
        f"[bold]Cover:[/bold] {record.cover_url}",
        title="Complete",
    ))


def _load(path: Path) -> MediaFile:
    if not path.is_file():
        console.print(f"[red]File not found: {path}[/red]")
        raise typer.Exit(1)
    return MediaFile.from_path(path)


@app.command()
def analyze(
    file: Path = typer.Argument(..., help="Audio file to analyze (FLAC, WAV, MP3, ...)"),
):
    """
    Show the stats and title/artist guess for an audio file without uploading.

    Example:
        sonicshare analyze "Artist - Title.flac"
    """
    media = _load(file)
    extractor = AudioFingerprintExtractor(PydubDecoder(), default_album=get_settings().default_album)
    try:
        analysis = extractor.analyze(media)
    except UploadCoreError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    _display_analysis(file, analysis)


@app.command()
def upload(
    file: Path = typer.Argument(..., help="Audio file to upload"),
    uploader: str = typer.Option(..., "--uploader", "-u", help="Uploader user ID"),
    cover: Path = typer.Option(None, "--cover", "-c", help="Cover image"),
    title: str = typer.Option(None, "--title", "-t", help="Override the guessed title"),
    artist: str = typer.Option(None, "--artist", "-a", help="Override the guessed artist"),
    album: str = typer.Option(None, "--album", help="Album name"),
    lyrics_file: Path = typer.Option(None, "--lyrics-file", help="Text file with lyrics"),
    fetch_lyrics: bool = typer.Option(
        False,
        "--fetch-lyrics",
        help="Look up lyrics online (ignored when --lyrics-file is given)",
    ),
):
    """
    Analyze, tag and commit a track: audio blob, cover blob, then catalog record.

    If any step fails, blobs already written are deleted again.

    Example:
        sonicshare upload "Artist - Title.flac" --uploader u1 --cover art.jpg
    """
    media = _load(file)

    try:
        with UploadService.from_settings(uploader) as service:
            analysis = service.start_session(media)
            _display_analysis(file, analysis)

            for name, value in (("title", title), ("artist", artist), ("album", album)):
                if value is not None:
                    service.update_field(name, value)

            if lyrics_file is not None:
                service.update_field("lyrics", lyrics_file.read_text(encoding="utf-8"))
            elif fetch_lyrics:
                try:
                    if service.fetch_lyrics() is None:
                        console.print("[yellow]Lyrics not found via API.[/yellow]")
                except LyricsLookupError as e:
                    console.print(f"[yellow]{e}[/yellow]")

            if cover is not None:
                service.set_cover(_load(cover))

            with console.status("Uploading..."):
                record = service.submit()
    except UploadError as e:
        console.print(f"[red]Upload failed at {e.stage} stage: {e}[/red]")
        for warning in e.compensation_warnings:
            console.print(f"[yellow]Orphaned blob: {warning.resource.kind.value}/{warning.resource.key}[/yellow]")
        raise typer.Exit(1)
    except UploadCoreError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    _display_record(record)


if __name__ == "__main__":
    app()
