"""
Inspector lifecycle: the picking half of the overlay.

The embedding application owns the Inspector returned by create() and
feeds it pointer events from its own thread, calling tick() from its event
loop so throttled hover updates run on that same thread. destroy() ends the
session. There is no module-level state, so several inspectors (e.g. one
per page) can coexist.
"""
import logging
from typing import Callable, Iterable, Optional, Tuple

from ..scraper.dom import Document, Element
from ..scraper.hit_test import OVERLAY_IDS, element_at_point
from ..selector.payload import build_payload
from ..utils.schema import HighlightRect, SelectionPayload
from ..utils.throttle import Throttle


logger = logging.getLogger(__name__)

HOVER_THROTTLE = 0.3  # seconds


class Inspector:
    """
    Args:
        document: Document being inspected
        on_hover: Receives the highlight rect of the hovered element, or None
        on_select: Receives the payload of a clicked element
        exclude_ids: Overlay root ids that can never be selected
        throttle_interval: Minimum seconds between hover updates
        throttle: Factory wrapping the hover update in a Throttle;
            Throttle(func, throttle_interval) when omitted
    """

    def __init__(
        self,
        document: Document,
        on_hover: Callable[[Optional[HighlightRect]], None],
        on_select: Callable[[SelectionPayload], None],
        exclude_ids: Iterable[str] = OVERLAY_IDS,
        throttle_interval: float = HOVER_THROTTLE,
        throttle: Optional[Callable[[Callable], Throttle]] = None,
    ):
        self.document = document
        self.on_hover = on_hover
        self.on_select = on_select
        self.exclude_ids = tuple(exclude_ids)
        if throttle is None:
            self._throttled_update = Throttle(self.update_highlight, throttle_interval)
        else:
            self._throttled_update = throttle(self.update_highlight)
        self._last_hovered: Optional[Element] = None
        self._last_position: Optional[Tuple[float, float]] = None
        self._destroyed = False

    @classmethod
    def create(cls, document: Document, on_hover, on_select, **kwargs) -> "Inspector":
        inspector = cls(document, on_hover, on_select, **kwargs)
        logger.info("[ui-agent] Inspector attached to %s", document.url or "document")
        return inspector

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def element_under_point(self, x: float, y: float) -> Optional[Element]:
        return element_at_point(self.document, x, y, self.exclude_ids)

    def update_highlight(self, x: float, y: float) -> None:
        """Hit-test (x, y) and report the hovered element's rect when it changes."""
        if self._destroyed:
            return
        element = self.element_under_point(x, y)
        if element == self._last_hovered:
            return
        self._last_hovered = element
        self.on_hover(element.bounding_box() if element is not None else None)

    def pointer_move(self, x: float, y: float) -> None:
        if self._destroyed:
            return
        self._last_position = (x, y)
        self._throttled_update(x, y)

    def scroll(self) -> None:
        """Content moved under a stationary pointer: re-check the last position."""
        if self._destroyed or self._last_position is None:
            return
        self._throttled_update(*self._last_position)

    def tick(self) -> bool:
        """Run a throttled hover update that has become due. Returns True if one ran."""
        if self._destroyed:
            return False
        return self._throttled_update.tick()

    @property
    def next_tick(self) -> Optional[float]:
        """Clock time when tick() has work to do, or None."""
        return None if self._destroyed else self._throttled_update.deadline

    def pointer_leave(self) -> None:
        if self._destroyed:
            return
        self._throttled_update.cancel()
        self._last_hovered = None
        self._last_position = None
        self.on_hover(None)

    def click(self, x: float, y: float) -> Optional[SelectionPayload]:
        """Select the element under (x, y); returns the payload sent to on_select."""
        if self._destroyed:
            return None
        element = self.element_under_point(x, y)
        if element is None:
            return None
        payload = build_payload(element, self.document)
        logger.info("[ui-agent] Element selected: %s", payload.selector)
        self.on_select(payload)
        return payload

    def destroy(self) -> None:
        """Stop reacting to events and drop any pending hover update."""
        if self._destroyed:
            return
        self._destroyed = True
        self._throttled_update.cancel()
        self._last_hovered = None
        self._last_position = None
        logger.info("[ui-agent] Inspector destroyed")
