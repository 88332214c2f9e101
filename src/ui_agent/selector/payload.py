"""
Selection payload builder: packages a selected element for resolution.
"""
from ..scraper.dom import Document, Element
from ..utils.schema import SelectionPayload
from .selector import build_selector, find_test_id_info


MAX_OUTER_HTML = 1000
MAX_TEXT_SNIPPET = 100


def build_payload(element: Element, document: Document) -> SelectionPayload:
    """
    Snapshot element into a SelectionPayload. No I/O beyond DOM reads.

    The selector is made unique within the element's own root, so a hit
    inside a shadow root gets a selector that matches in that root.
    """
    root = element.root_node()
    return SelectionPayload(
        page_url=document.url,
        selector=build_selector(element, document if root is None else root),
        test_id=find_test_id_info(element),
        dom_outer_html=element.outer_html()[:MAX_OUTER_HTML],
        text_snippet=(element.text_content() or "").strip()[:MAX_TEXT_SNIPPET],
        classes=list(element.class_list()),
    )
