"""
Tests for deep hit-testing and the selection payload builder.
"""
import pytest

from ui_agent.scraper.dom import Element, Root, ShadowState, SoupDocument, has_open_shadow_root
from ui_agent.scraper.hit_test import deep_element_from_point, element_at_point, is_overlay_element
from ui_agent.selector.payload import build_payload


PAGE = """
<body>
  <div id="page">
    <button id="plain" data-testid="plain-button" class="btn primary">  Plain  </button>
    <my-widget id="widget">
      <template shadowrootmode="open"><div class="inner"><span class="label">Deep</span></div></template>
    </my-widget>
    <locked-widget id="locked">
      <template shadowrootmode="closed"><p class="secret">secret</p></template>
    </locked-widget>
  </div>
  <div id="ui-agent-root"><div id="ui-agent-panel"><button class="close">Close</button></div></div>
</body>
"""

LAYOUT = {
    "#page": (0, 0, 800, 600),
    "#plain": (10, 10, 100, 30),
    "#widget": (10, 100, 200, 100),
    ".inner": (10, 100, 100, 50),
    ".label": (20, 110, 50, 20),
    "#locked": (10, 300, 200, 100),
    ".secret": (10, 300, 200, 100),
    "#ui-agent-root": (600, 0, 200, 200),
    "#ui-agent-panel": (600, 0, 200, 200),
    ".close": (610, 10, 50, 20),
}


@pytest.fixture
def doc():
    return SoupDocument(PAGE, url="http://localhost:5173/", layout=LAYOUT)


def test_plain_element_hit(doc):
    element = deep_element_from_point(doc, 20, 20)
    assert element.id == "plain"


def test_nothing_at_point(doc):
    assert deep_element_from_point(doc, 900, 900) is None


def test_pierces_open_shadow_root(doc):
    element = deep_element_from_point(doc, 30, 115)
    assert element.tag_name == "span"
    assert element.class_list() == ["label"]


def test_open_shadow_root_without_inner_hit_returns_host(doc):
    element = deep_element_from_point(doc, 150, 180)
    assert element.id == "widget"


def test_closed_shadow_root_is_opaque(doc):
    host = doc.get_element_by_id("locked")
    assert host.shadow_state() is ShadowState.CLOSED
    assert has_open_shadow_root(host) is None

    element = deep_element_from_point(doc, 30, 320)
    assert element == host


def test_shadow_content_is_not_light_dom(doc):
    """Shadow tree elements are invisible to document queries and have no parentElement."""
    assert doc.count_matches(".label") == 0
    label = deep_element_from_point(doc, 30, 115)
    assert label.parent.class_list() == ["inner"]
    assert label.parent.parent is None


def test_overlay_elements_are_excluded(doc):
    close = deep_element_from_point(doc, 615, 15)
    assert close.class_list() == ["close"]
    assert is_overlay_element(doc, close) == True
    assert element_at_point(doc, 615, 15) is None


def test_custom_exclusion_list(doc):
    assert element_at_point(doc, 20, 20, exclude_ids=["page"]) is None
    assert element_at_point(doc, 615, 15, exclude_ids=[]).class_list() == ["close"]


class LoopingHost(Element):
    """Host whose shadow root reports the host itself at every point."""

    def __init__(self):
        self.queries = 0

    @property
    def tag_name(self):
        return "x-loop"

    def get_attribute(self, name):
        return None

    @property
    def parent(self):
        return None

    def shadow_state(self):
        return ShadowState.OPEN

    def shadow_root(self):
        host = self

        class SelfRoot(Root):
            def element_from_point(self, x, y):
                host.queries += 1
                return host

        return SelfRoot()


class SingleElementRoot(Root):

    def __init__(self, element):
        self.element = element

    def element_from_point(self, x, y):
        return self.element


def test_shadow_fixed_point_terminates():
    host = LoopingHost()
    assert deep_element_from_point(SingleElementRoot(host), 1, 1) is host
    assert host.queries == 1


def test_build_payload(doc):
    button = doc.get_element_by_id("plain")
    payload = build_payload(button, doc)

    assert payload.page_url == "http://localhost:5173/"
    assert payload.selector == '[data-testid="plain-button"]'
    assert payload.test_id.value == "plain-button"
    assert payload.test_id.on_self == True
    assert payload.text_snippet == "Plain"
    assert payload.classes == ["btn", "primary"]
    assert payload.dom_outer_html.startswith("<button")


def test_build_payload_truncates_context():
    long_text = "word " * 100
    cells = "".join(f'<td class="c{i}">{long_text}</td>' for i in range(5))
    doc = SoupDocument(f'<table><tr id="row">{cells}</tr></table>')
    row = doc.get_element_by_id("row")

    payload = build_payload(row, doc)

    assert len(payload.dom_outer_html) == 1000
    assert len(payload.text_snippet) == 100
    assert payload.text_snippet.startswith("word word")
    assert payload.test_id is None
    assert payload.classes == []
    assert payload.selector == "#row"


def test_root_node(doc):
    label = deep_element_from_point(doc, 30, 115)
    widget_root = doc.get_element_by_id("widget").shadow_root()

    assert doc.get_element_by_id("plain").root_node() is None
    assert label.root_node() is widget_root
    assert label.parent.root_node() is widget_root


def test_shadow_payload_selector_matches_in_its_root(doc):
    label = deep_element_from_point(doc, 30, 115)
    widget_root = doc.get_element_by_id("widget").shadow_root()

    payload = build_payload(label, doc)

    assert payload.selector == "div.inner > span.label"
    assert widget_root.count_matches(payload.selector) == 1
    assert doc.count_matches(payload.selector) == 0
    assert payload.page_url == "http://localhost:5173/"


def test_shadow_payload_selector_disambiguates_within_its_root():
    doc = SoupDocument("""
    <div>
      <span class="label">Light</span>
      <x-list id="list">
        <template shadowrootmode="open">
          <div class="inner"><span class="label">One</span><span class="label">Two</span></div>
        </template>
      </x-list>
    </div>
    """)
    list_root = doc.get_element_by_id("list").shadow_root()
    second = list_root.select("span.label")[1]

    payload = build_payload(doc.wrap(second), doc)

    assert payload.selector == "div.inner > span.label:nth-of-type(2)"
    assert list_root.count_matches(payload.selector) == 1
    assert payload.text_snippet == "Two"


def test_payload_wire_format(doc):
    payload = build_payload(doc.get_element_by_id("plain"), doc)
    wire = payload.to_wire()
    assert set(wire) == {"pageUrl", "selector", "testId", "domOuterHtml", "textSnippet", "classes"}
    assert wire["testId"] == {"value": "plain-button", "onSelf": True, "depth": 0, "ancestorTagName": "button"}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
