"""
Element / document abstraction used by hit-testing and selector synthesis.

Two backends implement it:
- SoupDocument: static HTML parsed with BeautifulSoup. Declarative shadow
  DOM (<template shadowrootmode="open|closed">) becomes real shadow roots,
  and an optional layout map gives elements geometry for hit-testing.
- PageDocument (page_dom.py): a live Playwright page.
"""
from enum import Enum
from typing import Dict, List, Optional, Tuple
import soupsieve
from bs4 import BeautifulSoup, Tag

from ..utils.schema import HighlightRect


class InvalidSelectorError(ValueError):
    """Raised by a root when a selector cannot be parsed."""


class ShadowState(str, Enum):
    """What an element exposes as a shadow root."""
    NONE = "none"
    OPEN = "open"
    CLOSED = "closed"  # attached but opaque to page code


class Element:
    """A single DOM element. Subclasses define identity via __eq__."""

    @property
    def tag_name(self) -> str:
        raise NotImplementedError

    def get_attribute(self, name: str) -> Optional[str]:
        raise NotImplementedError

    @property
    def parent(self) -> Optional["Element"]:
        """parentElement: None at the top of a document or shadow tree."""
        raise NotImplementedError

    def children(self) -> List["Element"]:
        raise NotImplementedError

    def class_list(self) -> List[str]:
        raise NotImplementedError

    def outer_html(self) -> str:
        raise NotImplementedError

    def text_content(self) -> str:
        raise NotImplementedError

    def shadow_state(self) -> ShadowState:
        return ShadowState.NONE

    def shadow_root(self) -> Optional["Root"]:
        """The open shadow root, or None for NONE and CLOSED."""
        return None

    def bounding_box(self) -> Optional[HighlightRect]:
        return None

    def root_node(self) -> Optional["Root"]:
        """getRootNode(): the shadow root holding the element, or None for the document."""
        return None

    @property
    def id(self) -> Optional[str]:
        return self.get_attribute("id")

    def contains(self, other: "Element") -> bool:
        """Node.contains(): true for self and light-DOM descendants."""
        current: Optional[Element] = other
        while current is not None:
            if current == self:
                return True
            current = current.parent
        return False


class Root:
    """A document or shadow root: the scope of queries and hit-tests."""

    def element_from_point(self, x: float, y: float) -> Optional[Element]:
        raise NotImplementedError

    def count_matches(self, selector: str) -> int:
        """querySelectorAll(selector).length; InvalidSelectorError if unparsable."""
        raise NotImplementedError

    def get_element_by_id(self, element_id: str) -> Optional[Element]:
        raise NotImplementedError


class Document(Root):

    @property
    def url(self) -> str:
        raise NotImplementedError


def has_open_shadow_root(element: Element) -> Optional[Root]:
    """Return the element's shadow root if it is open, else None."""
    if element.shadow_state() is ShadowState.OPEN:
        return element.shadow_root()
    return None


# ---------------------------------------------------------------------------
# BeautifulSoup backend
# ---------------------------------------------------------------------------

Box = Tuple[float, float, float, float]  # x, y, width, height


class SoupElement(Element):

    def __init__(self, tag: Tag, owner: "SoupDocument"):
        self._tag = tag
        self._owner = owner

    def __eq__(self, other):
        return isinstance(other, SoupElement) and other._tag is self._tag

    def __hash__(self):
        return id(self._tag)

    def __repr__(self):
        return f"<SoupElement {self.tag_name} {self._tag.attrs!r}>"

    @property
    def tag(self) -> Tag:
        return self._tag

    @property
    def tag_name(self) -> str:
        return self._tag.name.lower()

    def get_attribute(self, name: str) -> Optional[str]:
        value = self._tag.get(name)
        if isinstance(value, list):
            # multi-valued attributes (class, rel, ...)
            return " ".join(value)
        return value

    @property
    def parent(self) -> Optional[Element]:
        parent = self._tag.parent
        if parent is None or parent.name == "[document]" or self._owner.is_shadow_container(parent):
            return None
        return self._owner.wrap(parent)

    def children(self) -> List[Element]:
        return [self._owner.wrap(child) for child in self._tag.find_all(True, recursive=False)]

    def class_list(self) -> List[str]:
        return [cls for cls in self._tag.get("class", []) if cls.strip()]

    def outer_html(self) -> str:
        return str(self._tag)

    def text_content(self) -> str:
        return self._tag.get_text()

    def shadow_state(self) -> ShadowState:
        return self._owner.shadow_state_of(self._tag)

    def shadow_root(self) -> Optional[Root]:
        return self._owner.shadow_root_of(self._tag)

    def bounding_box(self) -> Optional[HighlightRect]:
        box = self._owner.box_of(self._tag)
        if box is None:
            return None
        x, y, width, height = box
        return HighlightRect(top=y, left=x, width=width, height=height)

    def root_node(self) -> Optional[Root]:
        return self._owner.root_of(self._tag)


class SoupRoot(Root):
    """Query scope over a BeautifulSoup subtree."""

    def __init__(self, container: Tag, owner: "SoupDocument"):
        self._container = container
        self._owner = owner

    def _elements(self) -> List[Tag]:
        return self._container.find_all(True)

    def element_from_point(self, x: float, y: float) -> Optional[Element]:
        # last hit in document order approximates paint order
        hit = None
        for tag in self._elements():
            box = self._owner.box_of(tag)
            if box is None:
                continue
            bx, by, bw, bh = box
            if bx <= x < bx + bw and by <= y < by + bh:
                hit = tag
        return self._owner.wrap(hit) if hit is not None else None

    def select(self, selector: str) -> List[Tag]:
        try:
            return self._container.select(selector)
        except soupsieve.SelectorSyntaxError as exc:
            raise InvalidSelectorError(str(exc)) from exc

    def count_matches(self, selector: str) -> int:
        return len(self.select(selector))

    def get_element_by_id(self, element_id: str) -> Optional[Element]:
        tag = self._container.find(True, attrs={"id": element_id})
        return self._owner.wrap(tag) if tag is not None else None


class SoupDocument(SoupRoot, Document):
    """
    Static HTML document.

    Args:
        html: Markup to parse
        url: Value reported as the page URL
        layout: Optional {css selector: (x, y, width, height)} map. Each
            selector is matched in the document and in every shadow root.
    """

    def __init__(self, html: str, url: str = "", layout: Optional[Dict[str, Box]] = None):
        self._soup = BeautifulSoup(html, "html.parser")
        self._url = url
        self._wrapped: Dict[int, SoupElement] = {}
        self._shadow: Dict[int, Tuple[ShadowState, SoupRoot]] = {}
        self._containers: Dict[int, SoupRoot] = {}  # shadow template -> its root
        self._boxes: Dict[int, Box] = {}
        super().__init__(self._soup, self)
        self._attach_shadow_roots(self._soup)
        for selector, box in (layout or {}).items():
            self.place(selector, box)

    def _attach_shadow_roots(self, scope: Tag) -> None:
        templates = [
            t for t in scope.find_all("template")
            if t.get("shadowrootmode") in ("open", "closed")
        ]
        for template in templates:
            host = template.parent
            if host is None or id(host) in self._shadow:
                continue
            template.extract()
            mode = ShadowState.OPEN if template["shadowrootmode"] == "open" else ShadowState.CLOSED
            root = SoupRoot(template, self)
            self._containers[id(template)] = root
            self._shadow[id(host)] = (mode, root)
            self._attach_shadow_roots(template)

    def roots(self) -> List[SoupRoot]:
        return [self] + [root for _, root in self._shadow.values()]

    def place(self, selector: str, box: Box) -> None:
        """Assign geometry to every element matching selector in any root."""
        for root in self.roots():
            for tag in root.select(selector):
                self._boxes[id(tag)] = box

    def wrap(self, tag: Tag) -> SoupElement:
        key = id(tag)
        if key not in self._wrapped:
            self._wrapped[key] = SoupElement(tag, self)
        return self._wrapped[key]

    def is_shadow_container(self, tag: Tag) -> bool:
        return id(tag) in self._containers

    def root_of(self, tag: Tag) -> Optional[SoupRoot]:
        """Shadow root containing tag, or None when tag is in the light DOM."""
        for ancestor in tag.parents:
            root = self._containers.get(id(ancestor))
            if root is not None:
                return root
        return None

    def shadow_state_of(self, tag: Tag) -> ShadowState:
        entry = self._shadow.get(id(tag))
        return entry[0] if entry else ShadowState.NONE

    def shadow_root_of(self, tag: Tag) -> Optional[Root]:
        entry = self._shadow.get(id(tag))
        if entry and entry[0] is ShadowState.OPEN:
            return entry[1]
        return None

    def box_of(self, tag: Tag) -> Optional[Box]:
        return self._boxes.get(id(tag))

    def query_selector(self, selector: str) -> Optional[SoupElement]:
        """First light-DOM match, convenient for picking a target element."""
        matches = self.select(selector)
        return self.wrap(matches[0]) if matches else None

    @property
    def url(self) -> str:
        return self._url
