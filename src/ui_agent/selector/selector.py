"""
Selector synthesis for a selected element.
Builds a minimal CSS selector that matches exactly one element, preferring
data-testid anchors, then ids, then a short structural path.
"""
from typing import List, Optional, Tuple
import soupsieve

from ..scraper.dom import Element, InvalidSelectorError, Root
from ..utils.schema import TestIdInfo


TEST_ID_ATTR = "data-testid"
MAX_CLASSES = 3
MAX_PATH_DEPTH = 4


def css_escape(value: str) -> str:
    """CSS.escape() for identifiers and attribute values."""
    return soupsieve.escape(value)


def is_unique(selector: str, root: Root) -> bool:
    """True if selector matches exactly one element in root. Invalid selectors are never unique."""
    try:
        return root.count_matches(selector) == 1
    except InvalidSelectorError:
        return False


def get_simple_selector(element: Element) -> str:
    """tag#id, or tag.cls1.cls2.cls3, or bare tag."""
    tag = element.tag_name

    element_id = element.get_attribute("id")
    if element_id:
        return f"{tag}#{css_escape(element_id)}"

    classes = "".join(
        f".{css_escape(cls)}" for cls in element.class_list()[:MAX_CLASSES]
    )
    return f"{tag}{classes}" if classes else tag


def add_nth_of_type_selector(element: Element, base_selector: str) -> str:
    """Append :nth-of-type(n) when the element has same-tag siblings."""
    parent = element.parent
    if parent is None:
        return base_selector

    tag = element.tag_name
    siblings = [child for child in parent.children() if child.tag_name == tag]
    if len(siblings) <= 1:
        return base_selector

    index = siblings.index(element) + 1
    return f"{base_selector}:nth-of-type({index})"


def find_test_id_ancestor(element: Element) -> Optional[Tuple[Element, str]]:
    """Nearest element (self first) carrying a non-empty data-testid."""
    current: Optional[Element] = element
    while current is not None:
        test_id = current.get_attribute(TEST_ID_ATTR)
        if test_id:
            return current, test_id
        current = current.parent
    return None


def find_test_id_info(element: Element) -> Optional[TestIdInfo]:
    """
    Describe the nearest data-testid relative to element.

    depth counts parent hops from element to the testid carrier
    (0 = the element itself).
    """
    current: Optional[Element] = element
    depth = 0
    while current is not None:
        test_id = current.get_attribute(TEST_ID_ATTR)
        if test_id:
            return TestIdInfo(
                value=test_id,
                on_self=depth == 0,
                depth=depth,
                ancestor_tag_name=current.tag_name,
            )
        current = current.parent
        depth += 1
    return None


def build_path_selector(element: Element, root: Root, max_depth: int = MAX_PATH_DEPTH) -> str:
    """
    Structural selector from up to max_depth segments (element and ancestors).

    Candidates run from the full path down to the leaf alone; the first
    unique one wins. Then nth-of-type on the leaf is tried. If nothing is
    unique the full path is returned anyway.
    """
    segments: List[str] = []
    current: Optional[Element] = element
    while current is not None and len(segments) < max_depth:
        segments.insert(0, get_simple_selector(current))
        current = current.parent

    for i in range(len(segments)):
        candidate = " > ".join(segments[i:])
        if is_unique(candidate, root):
            return candidate

    full_path = " > ".join(segments)
    refined = add_nth_of_type_selector(element, full_path)
    if is_unique(refined, root):
        return refined

    return full_path or element.tag_name


def build_selector(element: Element, root: Root) -> str:
    """
    Build a CSS selector for element, unique within root when possible.

    Priority:
    1. [data-testid] on the element or nearest ancestor
    2. #id
    3. structural path (see build_path_selector)

    Never fails; degrades to a possibly ambiguous path.
    """
    # 1. testid anchor
    anchor = find_test_id_ancestor(element)
    if anchor is not None:
        carrier, test_id = anchor
        base = f'[{TEST_ID_ATTR}="{css_escape(test_id)}"]'

        if carrier == element:
            if is_unique(base, root):
                return base
            refined = add_nth_of_type_selector(element, base)
            if is_unique(refined, root):
                return refined
        else:
            child = get_simple_selector(element)
            refined = f"{base} {child}"
            if is_unique(refined, root):
                return refined
            # ">" only when the carrier is the direct parent, so the
            # refined selector still matches element
            combinator = " > " if element.parent == carrier else " "
            refined = add_nth_of_type_selector(element, f"{base}{combinator}{child}")
            if is_unique(refined, root):
                return refined

    # 2. id
    element_id = element.get_attribute("id")
    if element_id:
        id_selector = f"#{css_escape(element_id)}"
        if is_unique(id_selector, root):
            return id_selector

    # 3. structural path
    return build_path_selector(element, root)
