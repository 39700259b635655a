"""
Markup query interface.

The parsers and overlays only ever ask a handful of questions of an HTML
audit: find elements by tag and class, list direct children, read an
attribute, read text, check whether an element sits inside another. Those
questions are the MarkupNode interface; SoupNode answers them with
BeautifulSoup so the rest of the package never touches bs4 directly.
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from bs4 import BeautifulSoup, Tag
from bs4.element import PreformattedString

from ..exceptions import DocumentParseError

INVISIBLE_TAGS = ["script", "style", "head", "title", "noscript", "template"]


class MarkupNode(ABC):
    """Read-only view of one element of a parsed markup document."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Lowercase tag name."""

    @abstractmethod
    def text(self) -> str:
        """Concatenated text content of the element and its descendants."""

    @abstractmethod
    def text_excluding(self, *tags: str) -> str:
        """Text content without the text of any descendant with one of these tags."""

    @abstractmethod
    def visible_text(self) -> str:
        """Text a reader would see, one text run per line."""

    @abstractmethod
    def attr(self, name: str, default: str = "") -> str:
        ...

    @abstractmethod
    def classes(self) -> List[str]:
        ...

    @abstractmethod
    def find_all(self, tag: Optional[str], class_: Optional[str] = None) -> List["MarkupNode"]:
        """Descendant elements with this tag (any tag if None) and class, in document order."""

    @abstractmethod
    def children(self, *tags: str) -> List["MarkupNode"]:
        """Direct child elements, optionally restricted to the given tags."""

    @abstractmethod
    def has_ancestor(self, tag: str, class_: Optional[str] = None) -> bool:
        ...

    def has_class(self, class_: str) -> bool:
        return class_ in self.classes()

    def find(self, tag: Optional[str], class_: Optional[str] = None) -> Optional["MarkupNode"]:
        found = self.find_all(tag, class_)
        return found[0] if found else None

    def select(
        self,
        tag: str,
        class_: Optional[str] = None,
        predicate: Optional[Callable[["MarkupNode"], bool]] = None,
    ) -> List["MarkupNode"]:
        """find_all filtered by an arbitrary predicate."""
        found = self.find_all(tag, class_)
        if predicate is None:
            return found
        return [node for node in found if predicate(node)]


class SoupNode(MarkupNode):
    """MarkupNode backed by a BeautifulSoup Tag."""

    def __init__(self, tag: Tag):
        self._tag = tag

    def __repr__(self):
        return f"SoupNode(<{self.name} class={self.classes()!r}>)"

    def __eq__(self, other):
        return isinstance(other, SoupNode) and self._tag is other._tag

    def __hash__(self):
        return id(self._tag)

    @property
    def name(self) -> str:
        return (self._tag.name or "").lower()

    def text(self) -> str:
        return self._tag.get_text()

    def visible_text(self) -> str:
        runs = []
        for string in self._tag.find_all(string=True):
            if isinstance(string, PreformattedString):
                continue
            if string.find_parent(INVISIBLE_TAGS) is not None:
                continue
            runs.append(str(string))
        return "\n".join(runs)

    def text_excluding(self, *tags: str) -> str:
        runs = []
        for string in self._tag.find_all(string=True):
            if isinstance(string, PreformattedString):
                continue
            parent = string.parent
            skipped = False
            while parent is not None and parent is not self._tag:
                if parent.name in tags:
                    skipped = True
                    break
                parent = parent.parent
            if not skipped:
                runs.append(str(string))
        return "".join(runs)

    def attr(self, name: str, default: str = "") -> str:
        value = self._tag.get(name)
        if value is None:
            return default
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    def classes(self) -> List[str]:
        value = self._tag.get("class") or []
        if isinstance(value, str):
            return value.split()
        return list(value)

    def find_all(self, tag: Optional[str], class_: Optional[str] = None) -> List[MarkupNode]:
        if class_:
            found = self._tag.find_all(tag, class_=class_)
        else:
            found = self._tag.find_all(tag)
        return [SoupNode(t) for t in found]

    def children(self, *tags: str) -> List[MarkupNode]:
        if tags:
            found = self._tag.find_all(list(tags), recursive=False)
        else:
            found = self._tag.find_all(True, recursive=False)
        return [SoupNode(t) for t in found]

    def has_ancestor(self, tag: str, class_: Optional[str] = None) -> bool:
        if class_:
            return self._tag.find_parent(tag, class_=class_) is not None
        return self._tag.find_parent(tag) is not None


def parse_markup(html: str) -> MarkupNode:
    """
    Parse an HTML string into a queryable document root.

    Raises:
        DocumentParseError: If the input contains no markup element at all
    """
    soup = BeautifulSoup(str(html or ""), "html.parser")
    if soup.find() is None:
        raise DocumentParseError("Document contains no markup elements")
    return SoupNode(soup)
