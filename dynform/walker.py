from __future__ import annotations

from typing import Iterator, List

from dynform.widgets import Page, ScrollView, Stack, Widget

TRAVERSABLE = (Page, ScrollView, Stack)


def flatten(root: Widget) -> Iterator[Widget]:
    """Yield the interactive widgets under ``root`` depth-first, pre-order.

    Pages, scroll views and stacks are walked through without being yielded.
    Any other wrapper is treated as opaque. Uses an explicit stack so nesting
    depth is not bounded by the interpreter's recursion limit.
    """
    pending: List[Widget] = [root]
    while pending:
        node = pending.pop()
        if node.interactive:
            yield node
        if isinstance(node, TRAVERSABLE):
            pending.extend(reversed(node.children()))
