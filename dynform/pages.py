from __future__ import annotations

import logging

from dynform.factory import BuildContext, build_field
from dynform.schema import PageSpec
from dynform.widgets import Button, Page, ScrollView, Stack

log = logging.getLogger(__name__)

VALIDATE_ACTION = "validate"
VALIDATE_BUTTON_TEXT = "Validate Page"


def build_page(spec: PageSpec, ctx: BuildContext) -> Page:
    """Build one page: a scrollable body with every field in order, then the validate trigger."""
    body = Stack(spacing=10, padding=10)
    for field_spec in spec.fields:
        body.add(build_field(field_spec, ctx))

    trigger = Button(text=VALIDATE_BUTTON_TEXT, action=VALIDATE_ACTION)
    body.add(trigger)

    page = Page(title=spec.title, content=ScrollView(content=body))
    page.validate_button = trigger
    log.debug("pages.build: title=%r fields=%d", spec.title, len(spec.fields))
    return page
