"""
Test cases for utility functions.
"""

import os
import shutil
import tempfile
import unittest
from pathlib import Path
from zipfile import ZipFile

from pypdf import PdfWriter

from image_extractor.exceptions import ImageExtractorError, InvalidContainer
from image_extractor.types import DocumentType
from image_extractor.utils import (
    ensure_directory_writable,
    format_file_size,
    get_document_info,
    resolve_path,
    validate_pdf,
)


class TestUtils(unittest.TestCase):
    """Test cases for path, validation and formatting helpers."""

    @classmethod
    def setUpClass(cls):
        """Create a temporary PDF and DOCX."""
        cls.temp_dir = tempfile.mkdtemp()
        cls.test_pdf_path = os.path.join(cls.temp_dir, 'test.pdf')

        writer = PdfWriter()
        writer.add_blank_page(width=200, height=200)
        writer.add_blank_page(width=200, height=200)
        writer.add_metadata({"/Title": "Test Document"})
        with open(cls.test_pdf_path, 'wb') as f:
            writer.write(f)

        cls.test_docx_path = os.path.join(cls.temp_dir, 'test.docx')
        with ZipFile(cls.test_docx_path, 'w') as archive:
            archive.writestr('word/document.xml', '<w:document/>')
            archive.writestr('word/media/image1.png', b'png')
            archive.writestr('word/media/image2.emf', b'emf')
            archive.writestr('word/media/readme.xml', b'<x/>')

    @classmethod
    def tearDownClass(cls):
        """Clean up temporary files."""
        shutil.rmtree(cls.temp_dir, ignore_errors=True)

    def test_validate_pdf_valid_file(self):
        is_valid, error_msg = validate_pdf(self.test_pdf_path)
        self.assertTrue(is_valid)
        self.assertEqual(error_msg, "")

    def test_validate_pdf_nonexistent_file(self):
        is_valid, error_msg = validate_pdf('/nonexistent/file.pdf')
        self.assertFalse(is_valid)
        self.assertIn('not found', error_msg.lower())

    def test_validate_pdf_wrong_extension(self):
        is_valid, error_msg = validate_pdf(self.test_docx_path)
        self.assertFalse(is_valid)
        self.assertIn('.pdf extension', error_msg)

    def test_validate_pdf_corrupted_file(self):
        corrupted = os.path.join(self.temp_dir, 'corrupted.pdf')
        with open(corrupted, 'wb') as f:
            f.write(b'not a pdf')
        is_valid, error_msg = validate_pdf(corrupted)
        self.assertFalse(is_valid)
        self.assertTrue(error_msg)

    def test_document_info_pdf(self):
        info = get_document_info(self.test_pdf_path)
        self.assertEqual(info.document_type, DocumentType.PDF)
        self.assertEqual(info.page_count, 2)
        self.assertEqual(info.title, "Test Document")
        self.assertFalse(info.is_encrypted)
        self.assertGreater(info.file_size, 0)
        self.assertIsNone(info.image_count)

    def test_document_info_docx_counts_media(self):
        info = get_document_info(self.test_docx_path)
        self.assertEqual(info.document_type, DocumentType.DOCX)
        self.assertEqual(info.image_count, 2)
        self.assertIsNone(info.page_count)

    def test_document_info_broken_docx(self):
        broken = os.path.join(self.temp_dir, 'broken.docx')
        with open(broken, 'wb') as f:
            f.write(b'nope')
        with self.assertRaises(InvalidContainer):
            get_document_info(broken)

    def test_document_info_unsupported_type(self):
        other = os.path.join(self.temp_dir, 'notes.txt')
        with open(other, 'w') as f:
            f.write('x')
        with self.assertRaises(ImageExtractorError):
            get_document_info(other)

    def test_format_file_size(self):
        self.assertEqual(format_file_size(500), "500.0 B")
        self.assertEqual(format_file_size(1024), "1.0 KB")
        self.assertEqual(format_file_size(1536 * 1024), "1.5 MB")

    def test_resolve_path_is_absolute(self):
        self.assertTrue(resolve_path('relative/file.pdf').is_absolute())

    def test_ensure_directory_writable_creates_directory(self):
        target = Path(self.temp_dir) / 'nested' / 'output'
        self.assertEqual(ensure_directory_writable(target), target)
        self.assertTrue(target.is_dir())

    def test_ensure_directory_writable_rejects_files(self):
        blocker = Path(self.temp_dir) / 'blocker'
        blocker.write_text('file')
        with self.assertRaises(ImageExtractorError):
            ensure_directory_writable(blocker / 'child')


if __name__ == '__main__':
    unittest.main()
