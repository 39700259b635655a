"""
Data loading.

This module handles every piece of I/O the import needs: reading the audit
document from disk or over HTTP, reading the curriculum and saved flowchart
state, and fetching per-program advising-note templates.
"""

import json
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import (
    DEFAULT_NOTE_BULLETS,
    HTML_EXTENSIONS,
    HTTP_BACKOFF,
    HTTP_RETRIES,
    HTTP_TIMEOUT,
    HTTP_USER_AGENT,
    NOTES_TEMPLATE_BASE_URL,
    TEXT_EXTENSIONS,
)
from ..exceptions import CurriculumFormatError, DocumentFetchError, DocumentParseError
from ..logging import get_logger
from ..models import CurriculumNode, NoteBullet
from .document import MarkupNode, parse_markup

logger = get_logger(__name__, component="loader")

LIST_TAGS = ("ul", "ol")


def create_retry_session(retries: int = HTTP_RETRIES, backoff: float = HTTP_BACKOFF) -> requests.Session:
    session = requests.Session()
    retry = Retry(
        total=retries,
        backoff_factor=backoff,  # 1s, 2s, 4s... between attempts
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["GET"],
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update({"User-Agent": HTTP_USER_AGENT})
    return session


def is_url(source: str) -> bool:
    return urlparse(str(source)).scheme in ("http", "https")


def document_kind(name: str, content_type: str = "") -> str:
    """
    "html" or "text" from a file name (or URL path) and an optional
    Content-Type header.

    Raises:
        DocumentParseError: If neither identifies a supported document type
    """
    suffix = Path(urlparse(str(name)).path).suffix.lower()
    if suffix in HTML_EXTENSIONS:
        return "html"
    if suffix in TEXT_EXTENSIONS:
        return "text"

    media_type = (content_type or "").split(";")[0].strip().lower()
    if media_type in ("text/html", "application/xhtml+xml"):
        return "html"
    if media_type == "text/plain":
        return "text"

    raise DocumentParseError(
        f"Unsupported audit document {name!r}: expected an HTML export (.html/.htm) or a text dump (.txt)"
    )


class DataLoader:
    """
    Loads audit documents, curriculum graphs and saved flowchart state.

    WHY A SHARED SESSION: Documents and note templates usually come from the
    same host. One requests.Session keeps the connection pool and the retry
    policy in one place. It is only created when a URL is actually fetched.

    Usage:
        loader = DataLoader()
        content, kind = loader.load_document("audit.html")
        nodes = loader.load_curriculum("egcp.json")
    """

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = HTTP_TIMEOUT):
        self._session = session
        self.timeout = timeout

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = create_retry_session()
        return self._session

    def fetch(self, url: str) -> requests.Response:
        """
        GET a URL through the retrying session.

        Raises:
            DocumentFetchError: On connection errors or a non-2xx response
        """
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise DocumentFetchError(f"HTTP {status} fetching {url}", url, status) from e
        except requests.RequestException as e:
            raise DocumentFetchError(f"Failed to fetch {url}: {e}", url) from e
        return response

    def load_document(self, source: str) -> Tuple[str, str]:
        """
        Read an audit document from a path or an http(s) URL.

        Returns:
            (content, kind) where kind is "html" or "text"

        Raises:
            DocumentFetchError: If the document cannot be read
            DocumentParseError: If the document type is not supported
        """
        source = str(source)
        if is_url(source):
            response = self.fetch(source)
            kind = document_kind(source, response.headers.get("Content-Type", ""))
            content = response.text
        else:
            path = Path(source)
            kind = document_kind(path.name)
            try:
                content = path.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                raise DocumentFetchError(f"Cannot read {source}: {e}", source) from e

        logger.info(
            "Loaded audit document",
            extra={"event": "loader.document.loaded", "source": source, "kind": kind, "chars": len(content)},
        )
        return content, kind

    def load_curriculum(self, path: str) -> List[CurriculumNode]:
        """
        Read a curriculum graph: a JSON list of nodes or {"courses": [...]}.

        Raises:
            CurriculumFormatError: If the file is not a node list
        """
        data = self._read_json(path)
        if isinstance(data, dict):
            data = data.get("courses")
        if not isinstance(data, list):
            raise CurriculumFormatError(f"{path}: expected a list of course nodes")

        nodes = []
        for i, item in enumerate(data):
            if not isinstance(item, dict):
                raise CurriculumFormatError(f"{path}: node #{i} is not an object")
            try:
                nodes.append(CurriculumNode.from_dict(item))
            except ValueError as e:
                raise CurriculumFormatError(f"{path}: {e}") from e
        return nodes

    def load_state(self, path: str) -> Tuple[Dict[str, str], Dict[str, str]]:
        """
        Read saved flowchart state ({"labels": {...}, "notes": {...}}).

        Raises:
            CurriculumFormatError: If either map is not an object
        """
        data = self._read_json(path)
        if not isinstance(data, dict):
            raise CurriculumFormatError(f"{path}: expected an object with labels and notes")
        labels = data.get("labels") or {}
        notes = data.get("notes") or {}
        if not isinstance(labels, dict) or not isinstance(notes, dict):
            raise CurriculumFormatError(f"{path}: labels and notes must be objects")
        return (
            {str(k): str(v) for k, v in labels.items() if v},
            {str(k): str(v) for k, v in notes.items() if v},
        )

    def _read_json(self, path: str):
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise CurriculumFormatError(f"{path}: invalid JSON ({e})") from e
        except OSError as e:
            raise CurriculumFormatError(f"Cannot read {path}: {e}") from e


class NotesTemplateCache:
    """
    Per-program advising-note bullets, fetched once per cache object.

    Templates are HTML documents at <base_url>/<PROGRAM>.html holding a
    bulleted list (nested lists become deeper bullet levels). Templates
    without lists fall back to one bullet per paragraph.

    Only successful parses are remembered. A missing template, a network
    error or an empty document returns None, and the next call tries again.
    """

    def __init__(
        self,
        fetcher: Optional[Callable[[str], str]] = None,
        base_url: str = NOTES_TEMPLATE_BASE_URL,
        loader: Optional[DataLoader] = None,
    ):
        self._fetcher = fetcher
        self.loader = loader or DataLoader()
        self.base_url = (base_url or "").rstrip("/")
        self._cache: Dict[str, Tuple[NoteBullet, ...]] = {}

    def template_url(self, program: str) -> str:
        return f"{self.base_url}/{program}.html"

    def get(self, program: Optional[str]) -> Optional[Tuple[NoteBullet, ...]]:
        if not program:
            return None
        if program in self._cache:
            return self._cache[program]
        if not self.base_url and self._fetcher is None:
            return None

        url = self.template_url(program)
        try:
            html = self._fetch(url)
            bullets = parse_note_bullets(html)
        except (DocumentFetchError, DocumentParseError) as e:
            logger.info(
                "Notes template unavailable for %s",
                program,
                extra={"event": "notes.template.unavailable", "program": program, "url": url, "error": str(e)},
            )
            return None

        if not bullets:
            logger.info(
                "Notes template for %s has no bullets",
                program,
                extra={"event": "notes.template.empty", "program": program, "url": url},
            )
            return None

        self._cache[program] = bullets
        logger.debug(
            "Cached notes template",
            extra={"event": "notes.template.cached", "program": program, "bullets": len(bullets)},
        )
        return bullets

    def bullets_for(self, program: Optional[str]) -> Tuple[NoteBullet, ...]:
        """Template bullets, or the fixed placeholder bullets."""
        return self.get(program) or tuple(NoteBullet(text) for text in DEFAULT_NOTE_BULLETS)

    def _fetch(self, url: str) -> str:
        if self._fetcher is not None:
            return self._fetcher(url)
        return self.loader.fetch(url).text


def parse_note_bullets(html: str) -> Tuple[NoteBullet, ...]:
    """Flatten a template's lists (or paragraphs) into leveled bullets."""
    root = parse_markup(html)
    bullets: List[NoteBullet] = []

    top_lists = [
        node for tag in LIST_TAGS for node in root.find_all(tag)
        if not node.has_ancestor("li")
    ]
    if top_lists:
        for node in _in_document_order(root, top_lists):
            _walk_list(node, 0, bullets)
    else:
        for p in root.find_all("p"):
            text = " ".join(p.text().split())
            if text:
                bullets.append(NoteBullet(text, 0))
    return tuple(bullets)


def _in_document_order(root: MarkupNode, nodes: List[MarkupNode]) -> List[MarkupNode]:
    wanted = set(nodes)
    return [node for node in root.find_all(None) if node in wanted]


def _walk_list(list_node: MarkupNode, depth: int, out: List[NoteBullet]) -> None:
    for li in list_node.children("li"):
        text = " ".join(li.text_excluding(*LIST_TAGS).split())
        if text:
            out.append(NoteBullet(text, depth))
        for child in li.children(*LIST_TAGS):
            _walk_list(child, depth + 1, out)
