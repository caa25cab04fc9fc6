"""
================================================================================
Identifier Extraction
================================================================================

Pure functions that turn rendered HTML into named element identifiers.

Each element carrying a discriminating attribute yields exactly one
identifier, picked by a fixed attribute priority:

    id > test-id family > name > class > role / aria-label / title / placeholder

so the same element keeps the same identifier name across captures for as
long as the attribute that produced it is unchanged.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup
from bs4.element import Tag


TEST_ID_ATTRIBUTES: Tuple[str, ...] = (
    "data-testid",
    "data-test-id",
    "data-test",
    "data-qa",
    "data-cy",
)

SECONDARY_ATTRIBUTES: Tuple[str, ...] = (
    "role",
    "aria-label",
    "title",
    "placeholder",
)

_CSS_IDENTIFIER = re.compile(r"^-?[_a-zA-Z][_a-zA-Z0-9-]*$")
_WHITESPACE = re.compile(r"\s+")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")

# Content of these elements is not part of the live document.
INERT_CONTAINERS: Tuple[str, ...] = ("template", "noscript")


# =============================================================================
# Selector Builders
# =============================================================================

def is_css_identifier(value: str) -> bool:
    """True if ``value`` can be used unescaped after ``#`` or ``.``."""
    return bool(_CSS_IDENTIFIER.match(value))


def css_string(value: str) -> str:
    """
    Double-quoted CSS string literal.

    Control characters become hex escapes (``\\a `` for a newline) since a
    raw newline ends a CSS string.
    """
    escaped = _CONTROL_CHARS.sub(
        lambda m: f"\\{ord(m.group()):x} ",
        value.replace("\\", "\\\\").replace('"', '\\"'),
    )
    return f'"{escaped}"'


def attribute_selector(attribute: str, value: str) -> str:
    return f"[{attribute}={css_string(value)}]"


def id_selector(value: str) -> str:
    if is_css_identifier(value):
        return f"#{value}"
    return attribute_selector("id", value)


def class_selector(value: str) -> str:
    if is_css_identifier(value):
        return f".{value}"
    return f"[class~={css_string(value)}]"


def has_text_selector(tag_name: str, text: str) -> str:
    return f"{tag_name}:has-text({css_string(text)})"


# =============================================================================
# Attribute Access
# =============================================================================

def _attr(element: Tag, name: str) -> str:
    value = element.get(name)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return value


def _first_class(element: Tag) -> str:
    classes = element.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    for cls in classes:
        if cls.strip():
            return cls.strip()
    return ""


def _test_id(element: Tag) -> Optional[Tuple[str, str]]:
    for attribute in TEST_ID_ATTRIBUTES:
        value = _attr(element, attribute)
        if value:
            return attribute, value
    return None


def element_text(element: Tag) -> str:
    """Text content with whitespace collapsed."""
    return _WHITESPACE.sub(" ", element.get_text()).strip()


# =============================================================================
# Identifier Derivation
# =============================================================================

def derive_identifier(element: Tag) -> Optional[Tuple[str, str]]:
    """
    Derive ``(name, selector)`` for one element.

    Returns:
        None when the element has no discriminating attribute
    """
    tag_name = element.name.lower()

    element_id = _attr(element, "id")
    if element_id:
        return f"{tag_name}-{element_id}", id_selector(element_id)

    test_id = _test_id(element)
    if test_id:
        attribute, value = test_id
        return f"{tag_name}-{value}", attribute_selector(attribute, value)

    name = _attr(element, "name")
    if name:
        return f"{tag_name}-{name}", attribute_selector("name", name)

    first_class = _first_class(element)
    if first_class:
        return f"{tag_name}-class-{first_class}", class_selector(first_class)

    for attribute in SECONDARY_ATTRIBUTES:
        value = _attr(element, attribute)
        if value:
            slug = _WHITESPACE.sub("-", value.strip())
            return f"{tag_name}-{attribute}-{slug}", attribute_selector(attribute, value)

    return None


def extract_identifiers(html: str) -> Dict[str, str]:
    """
    Derive the identifier map for a full HTML document.

    On a name collision the first element in document order wins.
    Descendants of ``<template>`` and ``<noscript>`` are skipped.

    Args:
        html: Serialized page markup (``page.content()``)

    Returns:
        Mapping of identifier name -> selector
    """
    soup = BeautifulSoup(html, "html.parser")
    identifiers: Dict[str, str] = {}
    for element in soup.find_all(True):
        if element.find_parent(list(INERT_CONTAINERS)) is not None:
            continue
        derived = derive_identifier(element)
        if derived is None:
            continue
        name, selector = derived
        identifiers.setdefault(name, selector)
    return identifiers


def candidate_selectors(element_html: str) -> List[str]:
    """
    All selectors that could target one element, most stable first.

    Order: id, test-id, name, first class, tag + text, role, aria-label.

    Args:
        element_html: ``outerHTML`` of the element
    """
    soup = BeautifulSoup(element_html, "html.parser")
    element = soup.find(True)
    if element is None:
        return []

    candidates: List[str] = []

    element_id = _attr(element, "id")
    if element_id:
        candidates.append(id_selector(element_id))

    test_id = _test_id(element)
    if test_id:
        candidates.append(attribute_selector(*test_id))

    name = _attr(element, "name")
    if name:
        candidates.append(attribute_selector("name", name))

    first_class = _first_class(element)
    if first_class:
        candidates.append(class_selector(first_class))

    text = element_text(element)
    if text:
        candidates.append(has_text_selector(element.name.lower(), text))

    for attribute in ("role", "aria-label"):
        value = _attr(element, attribute)
        if value:
            candidates.append(attribute_selector(attribute, value))

    return candidates


__all__ = [
    "INERT_CONTAINERS",
    "TEST_ID_ATTRIBUTES",
    "SECONDARY_ATTRIBUTES",
    "attribute_selector",
    "candidate_selectors",
    "class_selector",
    "css_string",
    "derive_identifier",
    "element_text",
    "extract_identifiers",
    "has_text_selector",
    "id_selector",
    "is_css_identifier",
]
