"""
Composition of a test's status message from its captured output.
"""

import html
from typing import List, Optional
from xml.etree.ElementTree import Element

from .document import TrxDocument, local_name

DESCRIPTION_TEMPLATE = "<p class='description'>Description: {}</p>"
PREFORMATTED_TEMPLATE = "<pre>{}</pre>"


def _text(element: Optional[Element]) -> str:
    """Return all text inside element, or "" when it is missing."""
    if element is None:
        return ""
    return "".join(element.itertext())


def _first(elements: List[Element]) -> Optional[Element]:
    return elements[0] if elements else None


def description_block(std_out: str) -> str:
    return DESCRIPTION_TEMPLATE.format(std_out) if std_out else ""


def error_block(message: str, stack_trace: str) -> str:
    body = message + stack_trace.replace("\r", "").replace("\n", "")
    return PREFORMATTED_TEMPLATE.format(body) if body else ""


def trace_block(debug_trace: str) -> str:
    return PREFORMATTED_TEMPLATE.format(html.escape(debug_trace)) if debug_trace else ""


def compose_status_message(document: TrxDocument, record: Element) -> str:
    """
    Build the status message for one UnitTestResult record.

    The message is the description, error and trace blocks in that order;
    a block is left out when its text is empty.

    Args:
        document: Document the record belongs to
        record: UnitTestResult element

    Returns:
        Combined message, or "" when the record has no output
    """
    std_out = message = stack_trace = debug_trace = ""

    for output in document.children_named(record, "Output"):
        for node in output:
            name = local_name(node).casefold()
            if name == "stdout":
                std_out += _text(node)
            elif name == "errorinfo":
                message = _text(_first(document.children_named(node, "Message")))
                stack_trace = _text(_first(document.children_named(node, "StackTrace")))
            elif name == "debugtrace":
                debug_trace += _text(node)

    return description_block(std_out) + error_block(message, stack_trace) + trace_block(debug_trace)
