"""Fetches web pages and reduces them to plain text."""

from urllib.parse import urlparse

import httpx

from shared.errors import ExtractionFailed, InvalidUrl
from shared.extractors.FileTextExtractor import html_to_text
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import ExtractedText

_DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; content-rag-bridge/1.0)",
    "Accept": "text/html,application/xhtml+xml,text/plain;q=0.9,*/*;q=0.8",
}


def validate_url(url: str) -> str:
    """Check URL syntax before anything is fetched.

    Returns:
        str: The stripped URL.

    Raises:
        InvalidUrl: If the URL is not an absolute http(s) URL with a host.
    """
    candidate = (url or "").strip()
    try:
        parsed = urlparse(candidate)
        _ = parsed.port
        httpx.URL(candidate)
    except (ValueError, httpx.InvalidURL) as e:
        raise InvalidUrl(f"Invalid URL: {url!r}", details=str(e)) from e
    if parsed.scheme not in ("http", "https") or not parsed.hostname or " " in candidate:
        raise InvalidUrl(f"Invalid URL: {url!r}")
    return candidate


class UrlTextExtractor:
    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()
        self.timeout = helper_config.get_number_val("INGEST_URL_TIMEOUT", default=30.0)
        self._client: httpx.AsyncClient | None = None

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            headers=_DEFAULT_HEADERS,
            follow_redirects=True,
            transport=transport,
        )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    ##########################################
    ############## EXTRACTION ################
    ##########################################

    async def extract(self, url: str) -> ExtractedText:
        """Fetch a URL and extract its readable text.

        Raises:
            InvalidUrl: If the URL syntax is invalid.
            ExtractionFailed: If the page cannot be fetched or holds no text.
        """
        if self._client is None:
            raise RuntimeError("HTTP client not initialised. Call boot() before extracting URLs.")
        url = validate_url(url)

        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.InvalidURL as e:
            raise InvalidUrl(f"Invalid URL: {url!r}", details=str(e)) from e
        except httpx.TimeoutException as e:
            raise ExtractionFailed(f"Timeout fetching {url}", details=str(e)) from e
        except httpx.HTTPStatusError as e:
            raise ExtractionFailed(f"HTTP {e.response.status_code} for {url}") from e
        except httpx.HTTPError as e:
            raise ExtractionFailed(f"HTTP error fetching {url}", details=str(e)) from e

        content_type = response.headers.get("content-type", "").lower()
        if "html" in content_type or not content_type:
            text, title = html_to_text(response.text)
        elif content_type.startswith("text/") or "json" in content_type:
            text, title = response.text, None
        else:
            raise ExtractionFailed(f"Unsupported content type '{content_type}' for {url}")

        text = text.strip()
        if not text:
            raise ExtractionFailed(f"No readable text found at {url}")
        self.logging.debug("Extracted %d characters from %s.", len(text), url)
        return ExtractedText(text=text, title=title or urlparse(url).netloc)
