"""
Live-page backend for the DOM abstraction, built on Playwright's sync API.
Every query is a small script evaluated in the page against ElementHandles.

Page script cannot observe closed shadow roots (element.shadowRoot is null
for them), so live elements only ever report NONE or OPEN.
"""
from typing import List, Optional
from playwright.sync_api import ElementHandle, JSHandle, Page

from ..utils.schema import HighlightRect
from .dom import Document, Element, InvalidSelectorError, Root, ShadowState


# querySelectorAll(...).length, or -1 when the selector does not parse
COUNT_MATCHES_JS = '''([scope, selector]) => {
    try {
        return (scope || document).querySelectorAll(selector).length;
    } catch (e) {
        return -1;
    }
}'''

ELEMENT_FROM_POINT_JS = '''([scope, x, y]) => (scope || document).elementFromPoint(x, y)'''

SHADOW_ELEMENT_FROM_POINT_JS = '''(host, [x, y]) => host.shadowRoot ? host.shadowRoot.elementFromPoint(x, y) : null'''

GET_ELEMENT_BY_ID_JS = '''([scope, id]) => (scope || document).getElementById(id)'''

SAME_NODE_JS = '''([a, b]) => a === b'''

CHILDREN_JS = '''el => Array.from(el.children)'''

# host of the shadow root holding el, or null when el lives in the document
ROOT_HOST_JS = '''el => { const root = el.getRootNode(); return root instanceof ShadowRoot ? root.host : null; }'''


def _as_element(handle: JSHandle) -> Optional[ElementHandle]:
    element = handle.as_element()
    if element is None:
        handle.dispose()
    return element


class PageElement(Element):
    """ElementHandle wrapper. Identity is checked in the page (a === b)."""

    def __init__(self, handle: ElementHandle, page: Page):
        self.handle = handle
        self._page = page

    def __eq__(self, other):
        if not isinstance(other, PageElement):
            return False
        if other.handle is self.handle:
            return True
        return bool(self._page.evaluate(SAME_NODE_JS, [self.handle, other.handle]))

    __hash__ = None

    @property
    def tag_name(self) -> str:
        return self.handle.evaluate("el => el.tagName.toLowerCase()")

    def get_attribute(self, name: str) -> Optional[str]:
        return self.handle.get_attribute(name)

    @property
    def parent(self) -> Optional[Element]:
        element = _as_element(self.handle.evaluate_handle("el => el.parentElement"))
        return PageElement(element, self._page) if element else None

    def children(self) -> List[Element]:
        array = self.handle.evaluate_handle(CHILDREN_JS)
        try:
            elements = []
            for prop in array.get_properties().values():
                element = prop.as_element()
                if element is not None:
                    elements.append(PageElement(element, self._page))
            return elements
        finally:
            array.dispose()

    def class_list(self) -> List[str]:
        return self.handle.evaluate("el => Array.from(el.classList)")

    def outer_html(self) -> str:
        return self.handle.evaluate("el => el.outerHTML")

    def text_content(self) -> str:
        return self.handle.text_content() or ""

    def shadow_state(self) -> ShadowState:
        has_root = self.handle.evaluate("el => !!el.shadowRoot")
        return ShadowState.OPEN if has_root else ShadowState.NONE

    def shadow_root(self) -> Optional[Root]:
        if self.shadow_state() is ShadowState.OPEN:
            return PageShadowRoot(self)
        return None

    def bounding_box(self) -> Optional[HighlightRect]:
        box = self.handle.bounding_box()
        if not box:
            return None
        return HighlightRect(top=box["y"], left=box["x"], width=box["width"], height=box["height"])

    def root_node(self) -> Optional[Root]:
        host = _as_element(self.handle.evaluate_handle(ROOT_HOST_JS))
        return PageShadowRoot(PageElement(host, self._page)) if host else None


class PageShadowRoot(Root):
    """Open shadow root of a live host element."""

    def __init__(self, host: PageElement):
        self._host = host
        self._page = host._page

    def _scope(self) -> JSHandle:
        return self._host.handle.evaluate_handle("el => el.shadowRoot")

    def element_from_point(self, x: float, y: float) -> Optional[Element]:
        element = _as_element(self._host.handle.evaluate_handle(SHADOW_ELEMENT_FROM_POINT_JS, [x, y]))
        return PageElement(element, self._page) if element else None

    def count_matches(self, selector: str) -> int:
        scope = self._scope()
        try:
            count = self._page.evaluate(COUNT_MATCHES_JS, [scope, selector])
        finally:
            scope.dispose()
        if count < 0:
            raise InvalidSelectorError(selector)
        return count

    def get_element_by_id(self, element_id: str) -> Optional[Element]:
        scope = self._scope()
        try:
            element = _as_element(self._page.evaluate_handle(GET_ELEMENT_BY_ID_JS, [scope, element_id]))
        finally:
            scope.dispose()
        return PageElement(element, self._page) if element else None


class PageDocument(Document):
    """
    The main frame's document of an already-open Playwright page.

    Args:
        page: Playwright sync Page (already navigated)
    """

    def __init__(self, page: Page):
        self.page = page

    def element_from_point(self, x: float, y: float) -> Optional[Element]:
        element = _as_element(self.page.evaluate_handle(ELEMENT_FROM_POINT_JS, [None, x, y]))
        return PageElement(element, self.page) if element else None

    def count_matches(self, selector: str) -> int:
        count = self.page.evaluate(COUNT_MATCHES_JS, [None, selector])
        if count < 0:
            raise InvalidSelectorError(selector)
        return count

    def get_element_by_id(self, element_id: str) -> Optional[Element]:
        element = _as_element(self.page.evaluate_handle(GET_ELEMENT_BY_ID_JS, [None, element_id]))
        return PageElement(element, self.page) if element else None

    def query_selector(self, selector: str) -> Optional[PageElement]:
        element = self.page.query_selector(selector)
        return PageElement(element, self.page) if element else None

    @property
    def url(self) -> str:
        return self.page.url
