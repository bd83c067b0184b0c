"""
Website content extraction: fetch a domain root and reduce it to ranked keywords.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass

import requests
from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from categorizer.config import ExtractionSettings
from categorizer.logging_utils import log_event
from categorizer.scraping.ranking import rank_keywords, tokenize

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

# Scanned in this order; earlier regions win frequency ties.
CONTENT_REGIONS = ("title", "meta", "li", "h1", "p")
META_CONTENT_KEYS = {
    "description",
    "keywords",
    "og:title",
    "og:description",
    "og:site_name",
    "twitter:title",
    "twitter:description",
}


class ExtractionError(RuntimeError):
    """
    Base class for per-domain extraction failures.
    """

    def __init__(self, domain: str, message: str) -> None:
        self.domain = domain
        super().__init__(f"{domain}: {message}")


class FetchError(ExtractionError):
    """
    Raised when the site cannot be retrieved (network, timeout, HTTP status).
    """


class ParseError(ExtractionError):
    """
    Raised when the markup cannot be parsed or yields no usable keywords.
    """


@dataclass(frozen=True)
class ExtractionResult:
    """
    Ranked keywords extracted from one domain's root page.
    """

    domain: str
    keywords: tuple[str, ...]

    @property
    def context(self) -> str:
        return " ".join(self.keywords)


class ContentExtractor:
    """
    Fetches `http://<domain>/` with a browser user agent and ranks its words.

    A shared `session` may be injected; otherwise each worker thread gets
    its own `requests.Session`.
    """

    def __init__(
        self,
        *,
        settings: ExtractionSettings,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings
        self.request_headers = {"User-Agent": settings.user_agent}
        self._session = session
        self._local = threading.local()

    def extract(self, domain: str) -> ExtractionResult:
        url = f"http://{domain}/"
        try:
            response = self._request_with_retry(url)
            body = response.text
        except (requests.RequestException, RuntimeError) as exc:
            raise FetchError(domain, str(exc)) from exc

        try:
            soup = BeautifulSoup(body, "html.parser")
        except (ParserRejectedMarkup, ValueError) as exc:
            raise ParseError(domain, f"unparseable markup: {exc}") from exc

        tokens: list[str] = []
        for text in self.region_texts(soup):
            tokens.extend(tokenize(text, min_length=self.settings.min_token_length))

        keywords = tuple(rank_keywords(tokens, limit=self.settings.max_keywords))
        result = ExtractionResult(domain=domain, keywords=keywords)
        if len(result.context) < self.settings.min_context_chars:
            raise ParseError(domain, "no usable keywords on page")

        log_event(
            logger,
            logging.DEBUG,
            "domain_extracted",
            domain=domain,
            tokens=len(tokens),
            keywords=len(keywords),
        )
        return result

    @staticmethod
    def region_texts(soup: BeautifulSoup) -> list[str]:
        """
        Text blocks from the prioritized document regions, in scan order.
        """

        texts: list[str] = []
        for region in CONTENT_REGIONS:
            if region == "meta":
                for node in soup.find_all("meta"):
                    key = (node.get("name") or node.get("property") or "").strip().lower()
                    content = node.get("content")
                    if key in META_CONTENT_KEYS and isinstance(content, str) and content.strip():
                        texts.append(content)
                continue
            for node in soup.find_all(region):
                text = node.get_text(" ", strip=True)
                if text:
                    texts.append(text)
        return texts

    def _session_for_thread(self) -> requests.Session:
        if self._session is not None:
            return self._session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
        return session

    def _request_with_retry(self, url: str) -> requests.Response:
        last_error: Exception | None = None
        session = self._session_for_thread()

        for attempt in range(self.settings.max_retries + 1):
            try:
                response = session.get(
                    url,
                    headers=self.request_headers,
                    timeout=self.settings.timeout_seconds,
                    allow_redirects=True,
                )
                if response.status_code in RETRYABLE_STATUS_CODES:
                    raise requests.HTTPError(
                        f"Retryable status={response.status_code}",
                        response=response,
                    )
                response.raise_for_status()
                return response
            except (requests.Timeout, requests.ConnectionError, requests.HTTPError) as exc:
                last_error = exc
                if isinstance(exc, requests.HTTPError):
                    status_code = exc.response.status_code if exc.response is not None else None
                    if status_code not in RETRYABLE_STATUS_CODES:
                        raise

            if attempt >= self.settings.max_retries:
                break

            backoff_seconds = self.settings.backoff_initial_seconds * (
                self.settings.backoff_multiplier**attempt
            )
            time.sleep(backoff_seconds)

        raise RuntimeError(f"Failed to fetch {url} after retries: {last_error}")
