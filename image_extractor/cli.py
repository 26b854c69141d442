"""
Command-line interface for Image Extractor.
"""

import asyncio
import logging
import os
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from image_extractor import __version__
from image_extractor.config import PipelineConfig, load_config, save_config
from image_extractor.events import EventBus, StateChanged
from image_extractor.exceptions import ImageExtractorError
from image_extractor.pipeline import Pipeline
from image_extractor.state import Stage
from image_extractor.tools import (
    locate_executable,
    locate_exiftool,
    locate_pdfimages,
    locate_unzip,
)
from image_extractor.types import DocumentType, ExportFormat, OutputDestination
from image_extractor.utils import (
    ensure_directory_writable,
    format_file_size,
    get_document_info,
    resolve_path,
    validate_pdf,
)

console = Console()

FORMAT_CHOICES = [export_format.value for export_format in ExportFormat]


def configure_logging(verbose: bool) -> None:
    """Route log records through rich; debug output only with ``--verbose``."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(version=__version__)
def cli():
    """
    Image Extractor - Pull embedded images out of PDF and DOCX files.
    """
    pass


@cli.command(name="process")
@click.argument("documents", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--format", "-f", "export_format",
    type=click.Choice(FORMAT_CHOICES, case_sensitive=False),
    default=None,
    help="Output image format (defaults to the configured format)",
)
@click.option("--ocr/--no-ocr", default=None, help="Build a searchable PDF next to the images")
@click.option("--lang", "languages", multiple=True, help="Tesseract language code (repeatable)")
@click.option("--metadata/--no-metadata", default=None, help="Write descriptive metadata to the images")
@click.option(
    "--config", "-c", "config_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="JSON configuration file",
)
@click.option(
    "--output-dir", "-o",
    type=click.Path(file_okay=False),
    default=None,
    help="Base directory for <name>_images folders (default: next to each document)",
)
@click.option("--pdfimages", "pdfimages_path", type=click.Path(exists=True, dir_okay=False), default=None,
              help="Path to the pdfimages executable")
@click.option("--exiftool", "exiftool_path", type=click.Path(exists=True, dir_okay=False), default=None,
              help="Path to the exiftool executable")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def process(documents, export_format, ocr, languages, metadata, config_file, output_dir,
            pdfimages_path, exiftool_path, verbose):
    """
    Extract images from one or more documents.

    Examples:

        image-extractor process report.pdf

        image-extractor process *.pdf notes.docx --format tiff -o ./images

        image-extractor process scan.pdf --ocr --lang eng --lang nor
    """
    configure_logging(verbose)
    try:
        config = load_config(config_file)
        if export_format:
            config.export_format = ExportFormat.parse(export_format)
        if ocr is not None:
            config.ocr_enabled = ocr
        if languages:
            config.ocr_languages = list(languages)
        if metadata is not None:
            config.metadata.metadata_enabled = metadata
        if output_dir:
            config.output_destination = OutputDestination.CUSTOM_DIRECTORY
            config.custom_output_directory = ensure_directory_writable(resolve_path(output_dir))

        pdfimages = pdfimages_path or config.pdfimages_path or locate_pdfimages()
        exiftool = exiftool_path or config.exiftool_path or locate_exiftool()

        bus = EventBus()
        pipeline = Pipeline(
            config,
            pdfimages_path=pdfimages,
            exiftool_path=exiftool,
            unzip_path=locate_unzip(),
            event_bus=bus,
        )
        queued = pipeline.add_documents(documents)

        if not queued:
            console.print("\n[bold yellow]⚠ No PDF or DOCX files to process[/bold yellow]")
            sys.exit(1)

        files_table = Table(title="Documents to Process", show_header=True)
        files_table.add_column("#", style="cyan", width=4)
        files_table.add_column("Document", style="green")
        files_table.add_column("Type", style="magenta")
        for idx, document in enumerate(queued, 1):
            files_table.add_row(str(idx), document.file_name, document.document_type.value.upper())
        console.print(files_table)

        console.print(
            f"\n[bold cyan]Extracting as {config.export_format.display_name}"
            f"{' with OCR' if config.ocr_enabled else ''}...[/bold cyan]\n"
        )

        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=console,
        ) as progress:
            tasks = {
                document.id: progress.add_task(document.file_name, total=100)
                for document in queued
            }
            names = {document.id: document.file_name for document in queued}

            def on_state_changed(event: StateChanged):
                progress.update(
                    tasks[event.document_id],
                    completed=event.state.progress_value * 100,
                    description=f"{names[event.document_id]}: {event.state.status_text}",
                )

            bus.add_listener(on_state_changed)
            processed = asyncio.run(pipeline.process_all())

        summary_table = Table(title="Summary", show_header=True)
        summary_table.add_column("Document", style="cyan")
        summary_table.add_column("Result")
        summary_table.add_column("Output", style="dim")

        failures = 0
        for document in processed:
            if document.state.stage == Stage.FAILED:
                failures += 1
                result = f"[red]✗ {document.state.message}[/red]"
            else:
                result = f"[green]✓ {document.state.status_text}[/green]"
            output = str(document.output_directory) if document.output_directory else "-"
            summary_table.add_row(document.file_name, result, output)

        console.print()
        console.print(summary_table)

        if failures > 0:
            console.print("\n[bold red]Failed Documents:[/bold red]")
            for document in processed:
                if document.state.stage == Stage.FAILED:
                    console.print(f"  ✗ {document.file_name}: {document.state.message}")

        total_images = sum(
            document.image_count for document in processed
            if document.state.stage == Stage.COMPLETED
        )
        console.print(
            f"\n[bold]{len(processed) - failures} of {len(processed)} document(s) processed, "
            f"{total_images} image(s) extracted[/bold]\n"
        )

        sys.exit(0 if failures == 0 else 1)

    except ImageExtractorError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)
    except ValueError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)


@cli.command(name="info")
@click.argument("document", type=click.Path(exists=True, dir_okay=False))
def show_info(document):
    """
    Display information about a PDF or DOCX file.

    Example:

        image-extractor info report.pdf
    """
    try:
        if DocumentType.from_path(document) is DocumentType.PDF:
            is_valid, error_msg = validate_pdf(document)
            if not is_valid:
                console.print(f"[bold red]✗ Error:[/bold red] {error_msg}")
                sys.exit(1)

        info = get_document_info(document)

        table = Table(title=f"Document Information: {os.path.basename(document)}")
        table.add_column("Property", style="cyan", no_wrap=True)
        table.add_column("Value", style="green")

        table.add_row("File Path", os.path.abspath(document))
        table.add_row("Type", info.document_type.value.upper())
        table.add_row("File Size", format_file_size(info.file_size))
        if info.page_count is not None:
            table.add_row("Number of Pages", str(info.page_count))
        if info.image_count is not None:
            table.add_row("Embedded Media", str(info.image_count))
        if info.title:
            table.add_row("Title", info.title)
        if info.document_type is DocumentType.PDF:
            table.add_row("Encrypted", "Yes" if info.is_encrypted else "No")

        console.print()
        console.print(table)
        console.print()

    except (ImageExtractorError, OSError) as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)


@cli.command(name="tools")
def show_tools():
    """
    Show which external tools were found.

    Example:

        image-extractor tools
    """
    found = {
        "pdfimages": locate_pdfimages(),
        "exiftool": locate_exiftool(),
        "unzip": locate_unzip(),
        "tesseract": locate_executable(["tesseract"]),
    }

    table = Table(title="External Tools")
    table.add_column("Tool", style="cyan")
    table.add_column("Status")
    table.add_column("Path", style="dim")
    for name, path in found.items():
        if path:
            table.add_row(name, "[green]✓ found[/green]", str(path))
        else:
            table.add_row(name, "[red]✗ missing[/red]", "-")

    console.print()
    console.print(table)
    console.print()


@cli.group(name="config")
def config_group():
    """Create or inspect configuration files."""
    pass


@config_group.command(name="init")
@click.argument("config_file", type=click.Path(dir_okay=False))
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def config_init(config_file, force):
    """
    Write a configuration file with the default settings.

    Example:

        image-extractor config init ~/.image-extractor.json
    """
    if os.path.exists(config_file) and not force:
        console.print(f"[bold red]✗ Error:[/bold red] {config_file} exists (use --force)")
        sys.exit(1)
    try:
        path = save_config(PipelineConfig(), config_file)
    except OSError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)
    console.print(f"[bold green]✓ Wrote default configuration to {path}[/bold green]")


@config_group.command(name="show")
@click.argument("config_file", required=False, type=click.Path(dir_okay=False))
def config_show(config_file):
    """
    Print the effective configuration (file plus environment overrides).

    Example:

        image-extractor config show ~/.image-extractor.json
    """
    try:
        config = load_config(config_file)
    except ImageExtractorError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)
    console.print_json(data=config.to_record())


if __name__ == "__main__":
    cli()
