"""
Document processing pipeline.

The :class:`Pipeline` owns the document queue and drives every pending
document through extraction, conversion, metadata tagging and OCR, one
document at a time. Stage functions are synchronous and run on worker
threads; progress reported from those threads is handed back to the event
loop so every state change is applied and published in order.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from .config import PipelineConfig, resolve_output_directory, searchable_pdf_path
from .conversion import convert_images, needs_conversion
from .events import EventBus, StateChanged
from .exceptions import ImageExtractorError, NoImagesFound
from .extraction import extract_archive_images, extract_pdf_images
from .metadata import write_metadata
from .ocr import perform_ocr
from .overlay import build_searchable_pdf
from .state import ProcessingState, Stage
from .types import Document, DocumentType

LOGGER = logging.getLogger(__name__)

StateFactory = Callable[[float], ProcessingState]


class Pipeline:
    """
    Sequential processor for a queue of PDF and DOCX documents.

    Example:
        >>> pipeline = Pipeline(config, pdfimages_path=locate_pdfimages())
        >>> pipeline.add_documents(["report.pdf", "notes.docx"])
        >>> asyncio.run(pipeline.process_all())

    Args:
        config: Processing settings
        pdfimages_path: Resolved ``pdfimages``; falls back to ``config.pdfimages_path``
        exiftool_path: Resolved ``exiftool``; falls back to ``config.exiftool_path``
        unzip_path: ``unzip`` to unpack DOCX files; :mod:`zipfile` when None
        event_bus: Receives a :class:`StateChanged` for every transition
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        *,
        pdfimages_path: Optional[Path | str] = None,
        exiftool_path: Optional[Path | str] = None,
        unzip_path: Optional[Path | str] = None,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        self.config = config or PipelineConfig()
        self.pdfimages_path = pdfimages_path or self.config.pdfimages_path
        self.exiftool_path = exiftool_path or self.config.exiftool_path
        self.unzip_path = unzip_path
        self.event_bus = event_bus or EventBus()
        self.documents: List[Document] = []
        self._processing = False

    # Queue management

    def add_documents(self, paths: Iterable[str | os.PathLike[str]]) -> List[Document]:
        """
        Queue PDF and DOCX files.

        Unsupported extensions and files already in the queue are skipped.

        Returns:
            The newly queued documents.
        """
        known = {document.source_path for document in self.documents}
        added: List[Document] = []

        for raw_path in paths:
            path = Path(raw_path).expanduser().resolve()
            document_type = DocumentType.from_path(path)
            if document_type is None:
                LOGGER.warning("Skipping unsupported file: %s", path.name)
                continue
            if path in known:
                LOGGER.debug("Already queued: %s", path.name)
                continue

            document = Document(source_path=path, document_type=document_type)
            self.documents.append(document)
            known.add(path)
            added.append(document)

        return added

    def remove_document(self, document_id: str) -> bool:
        """Drop a document from the queue. Returns False if it was not queued."""
        for index, document in enumerate(self.documents):
            if document.id == document_id:
                del self.documents[index]
                return True
        return False

    def clear_finished(self) -> int:
        """Drop completed and failed documents; returns how many were removed."""
        remaining = [document for document in self.documents if not document.state.is_finished]
        removed = len(self.documents) - len(remaining)
        self.documents = remaining
        return removed

    @property
    def pending_documents(self) -> List[Document]:
        return [document for document in self.documents if document.state.stage == Stage.PENDING]

    @property
    def has_pending(self) -> bool:
        return any(document.state.stage == Stage.PENDING for document in self.documents)

    @property
    def is_processing(self) -> bool:
        return self._processing

    # Processing

    async def process_all(self) -> List[Document]:
        """
        Process pending documents in queue order until none are left.

        The queue is re-read before each document, so documents removed
        while an earlier one is running are never started. Calling this
        while a run is already in progress is a no-op.

        Returns:
            The documents processed by this call.
        """
        if self._processing:
            LOGGER.warning("Pipeline is already processing")
            return []

        self._processing = True
        processed: List[Document] = []
        try:
            while True:
                document = next(iter(self.pending_documents), None)
                if document is None:
                    break
                await self.process_document(document)
                processed.append(document)
        finally:
            self._processing = False
        return processed

    async def process_document(self, document: Document) -> Document:
        """
        Run every stage for ``document`` and leave it completed or failed.

        Errors never propagate; they are recorded on the document as a
        ``failed`` state carrying the error message.
        """
        LOGGER.info("Processing %s", document.file_name)
        try:
            await self._run_stages(document)
        except (ImageExtractorError, OSError) as exc:
            LOGGER.error("Failed to process %s: %s", document.file_name, exc)
            self._transition(document, ProcessingState.failed(str(exc)))
        return document

    async def _run_stages(self, document: Document) -> None:
        config = self.config
        output_dir = resolve_output_directory(
            document.source_path,
            config.output_destination,
            config.custom_output_directory,
        )
        document.output_directory = output_dir

        self._transition(document, ProcessingState.extracting(0.0))
        files = await asyncio.to_thread(self._extract, document, output_dir)
        self._transition(document, ProcessingState.extracting(1.0))
        if not files:
            raise NoImagesFound()

        if needs_conversion(files, config.export_format):
            self._transition(document, ProcessingState.converting(0.0))
            files = await asyncio.to_thread(
                convert_images,
                files,
                config.export_format,
                output_dir,
                self._progress_reporter(document, ProcessingState.converting),
            )
        document.image_count = len(files)

        if config.metadata.metadata_enabled:
            self._transition(document, ProcessingState.writing_metadata(0.0))
            await asyncio.to_thread(
                write_metadata,
                files,
                config.metadata,
                document.file_name,
                executable=self.exiftool_path,
                progress_callback=self._progress_reporter(
                    document, ProcessingState.writing_metadata
                ),
            )

        if config.ocr_enabled and document.document_type is DocumentType.PDF:
            self._transition(document, ProcessingState.running_ocr(0.0))
            results = await asyncio.to_thread(
                perform_ocr,
                document.source_path,
                self._progress_reporter(document, ProcessingState.running_ocr),
                languages=config.ocr_languages,
            )
            if results:
                await asyncio.to_thread(
                    build_searchable_pdf,
                    document.source_path,
                    results,
                    searchable_pdf_path(output_dir, document.source_path),
                )
            else:
                LOGGER.info("No text recognized in %s, skipping searchable PDF", document.file_name)

        self._transition(document, ProcessingState.completed(len(files)))
        LOGGER.info(
            "Finished %s: %d image(s) in %s", document.file_name, len(files), output_dir
        )

    def _extract(self, document: Document, output_dir: Path) -> List[Path]:
        if document.document_type is DocumentType.PDF:
            return extract_pdf_images(
                document.source_path,
                output_dir,
                self.config.export_format,
                document.stem,
                executable=self.pdfimages_path,
            )
        return extract_archive_images(
            document.source_path,
            output_dir,
            document.stem,
            unzip_executable=self.unzip_path,
        )

    def _transition(self, document: Document, state: ProcessingState) -> None:
        document.transition(state)
        self.event_bus.publish(StateChanged(document.id, state))

    def _progress_reporter(
        self, document: Document, factory: StateFactory
    ) -> Callable[[int, int], None]:
        loop = asyncio.get_running_loop()

        def report(current: int, total: int) -> None:
            fraction = current / total if total else 1.0
            loop.call_soon_threadsafe(self._apply_progress, document, factory(fraction))

        return report

    def _apply_progress(self, document: Document, state: ProcessingState) -> None:
        # Late reports from a stage that already ended are dropped.
        if document.state.can_advance_to(state) and document.state.stage == state.stage:
            self._transition(document, state)
