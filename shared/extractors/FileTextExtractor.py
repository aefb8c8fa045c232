"""Plain-text extraction for uploaded files.

Supported formats are limited to the INGEST_SUPPORTED_EXTENSIONS allow-list; each
format has one extraction routine keyed by extension.
"""

import io
import json
import os
import zipfile

from bs4 import BeautifulSoup
from docx import Document as DocxDocument
from docx.opc.exceptions import PackageNotFoundError
from pypdf import PdfReader
from pypdf.errors import PyPdfError

from shared.errors import ExtractionFailed, UnsupportedType
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import ExtractedText

DEFAULT_EXTENSIONS = [".txt", ".md", ".csv", ".json", ".html", ".htm", ".pdf", ".docx"]
DEFAULT_MAX_FILE_BYTES = 10 * 1024 * 1024


def _decode(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("latin-1")


class FileTextExtractor:
    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()
        extensions = helper_config.get_list_val("INGEST_SUPPORTED_EXTENSIONS", default=DEFAULT_EXTENSIONS)
        self._extensions = {self._normalize_extension(ext) for ext in extensions}
        self._max_bytes = int(helper_config.get_number_val("INGEST_MAX_FILE_BYTES", default=DEFAULT_MAX_FILE_BYTES))

    ##########################################
    ################ GETTER ##################
    ##########################################

    @staticmethod
    def _normalize_extension(ext: str) -> str:
        ext = ext.strip().lower()
        return ext if ext.startswith(".") else f".{ext}"

    def get_supported_extensions(self) -> list[str]:
        return sorted(self._extensions)

    def get_extension(self, file_name: str) -> str:
        return os.path.splitext(file_name or "")[1].lower()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate(self, file_name: str, size: int) -> str:
        """Check a file against the allow-list and size limit.

        Returns:
            str: The normalised extension.

        Raises:
            UnsupportedType: If the extension is not on the allow-list.
            ExtractionFailed: If the file is empty or exceeds INGEST_MAX_FILE_BYTES.
        """
        ext = self.get_extension(file_name)
        if ext not in self._extensions:
            raise UnsupportedType(
                f"Unsupported file type '{ext or 'none'}' for {file_name}",
                details={"supported": self.get_supported_extensions()},
            )
        if size == 0:
            raise ExtractionFailed(f"File {file_name} is empty")
        if size > self._max_bytes:
            raise ExtractionFailed(f"File {file_name} exceeds the limit of {self._max_bytes} bytes")
        return ext

    ##########################################
    ############## EXTRACTION ################
    ##########################################

    def extract(self, file_name: str, content: bytes) -> ExtractedText:
        """Validate a file and turn its bytes into plain text.

        Raises:
            UnsupportedType: If the extension is not on the allow-list.
            ExtractionFailed: If the file cannot be parsed or contains no text.
        """
        ext = self.validate(file_name, len(content))
        title = os.path.splitext(os.path.basename(file_name))[0]

        try:
            if ext == ".pdf":
                text = self._extract_pdf(content)
            elif ext == ".docx":
                text = self._extract_docx(content)
            elif ext in (".html", ".htm"):
                text, html_title = self._extract_html(_decode(content))
                title = html_title or title
            elif ext == ".json":
                text = self._extract_json(_decode(content))
            else:
                text = _decode(content)
        except ExtractionFailed:
            raise
        except (PyPdfError, PackageNotFoundError, zipfile.BadZipFile, ValueError, KeyError, OSError) as e:
            self.logging.error("Text extraction failed for %s: %s", file_name, e)
            raise ExtractionFailed(f"Could not read {file_name}", details=str(e)) from e

        text = text.strip()
        if not text:
            raise ExtractionFailed(f"No text could be extracted from {file_name}")
        return ExtractedText(text=text, title=title)

    def _extract_pdf(self, content: bytes) -> str:
        reader = PdfReader(io.BytesIO(content))
        pages = [page.extract_text() or "" for page in reader.pages]
        return "\n\n".join(page.strip() for page in pages if page.strip())

    def _extract_docx(self, content: bytes) -> str:
        document = DocxDocument(io.BytesIO(content))
        return "\n\n".join(p.text.strip() for p in document.paragraphs if p.text.strip())

    def _extract_html(self, html: str) -> tuple[str, str | None]:
        return html_to_text(html)

    def _extract_json(self, raw: str) -> str:
        # pretty-print so nested structures break into lines the chunker can split on
        return json.dumps(json.loads(raw), indent=2, ensure_ascii=False)


def html_to_text(html: str) -> tuple[str, str | None]:
    """Strip markup, scripts and page chrome from an HTML document.

    Returns:
        tuple[str, str | None]: The visible text with one block per line, and the page title.
    """
    soup = BeautifulSoup(html, "html.parser")
    title = soup.title.get_text(strip=True) if soup.title else None
    for tag in soup(["script", "style", "noscript", "nav", "footer", "header", "aside", "form"]):
        tag.decompose()
    root = soup.body or soup
    lines = [line.strip() for line in root.get_text("\n").splitlines()]
    return "\n".join(line for line in lines if line), title or None
