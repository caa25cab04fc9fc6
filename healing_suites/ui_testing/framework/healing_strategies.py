"""
================================================================================
Heuristic Healing Strategies
================================================================================

Recovery strategies used when neither the primary selector nor any supplied
fallback matches.

Every strategy has the same shape:

    async def strategy(expression: str, page: Page) -> Optional[str]

It guesses what the original selector was aiming at (see ``parse_intent``),
probes the live page with its own candidates and returns the first
candidate that matches at least one element, or None. Strategies do not
depend on each other; the resolver runs ``DEFAULT_STRATEGIES`` in order.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Tuple

from playwright.async_api import Page

from .identifier_extractor import (
    TEST_ID_ATTRIBUTES,
    attribute_selector,
    css_string,
    has_text_selector,
    id_selector,
    is_css_identifier,
)


HealingStrategy = Callable[[str, Page], Awaitable[Optional[str]]]

# Words that describe the widget rather than what it is for
NOISE_WORDS = frozenset({
    "btn", "button", "input", "inp", "field", "fld", "txt", "text", "lbl",
    "label", "el", "elem", "element", "container", "wrapper", "wrap", "div",
    "span", "link", "lnk", "id", "the", "box", "icon", "css", "xpath",
})

KEYWORD_ROLES: Dict[str, str] = {
    "btn": "button",
    "button": "button",
    "submit": "button",
    "link": "link",
    "lnk": "link",
    "checkbox": "checkbox",
    "chk": "checkbox",
    "radio": "radio",
    "select": "combobox",
    "dropdown": "combobox",
    "combo": "combobox",
    "combobox": "combobox",
    "textbox": "textbox",
    "search": "searchbox",
    "heading": "heading",
    "tab": "tab",
    "dialog": "dialog",
    "modal": "dialog",
}

TAG_ROLES: Dict[str, str] = {
    "button": "button",
    "a": "link",
    "select": "combobox",
    "textarea": "textbox",
    "h1": "heading",
    "h2": "heading",
    "h3": "heading",
    "h4": "heading",
    "h5": "heading",
    "h6": "heading",
    "nav": "navigation",
    "dialog": "dialog",
}

INPUT_TYPE_ROLES: Dict[str, str] = {
    "checkbox": "checkbox",
    "radio": "radio",
    "submit": "button",
    "button": "button",
    "reset": "button",
    "search": "searchbox",
    "text": "textbox",
    "email": "textbox",
    "tel": "textbox",
    "url": "textbox",
}

KEYWORD_TAGS: Dict[str, str] = {
    "btn": "button",
    "button": "button",
    "submit": "button",
    "link": "a",
    "lnk": "a",
    "input": "input",
    "field": "input",
    "username": "input",
    "email": "input",
    "password": "input",
    "search": "input",
    "checkbox": "input",
    "select": "select",
    "dropdown": "select",
    "textarea": "textarea",
}

_IGNORED_ATTRIBUTES = frozenset({"href", "src", "style", "for"})

_ATTRIBUTE = re.compile(
    r"""\[\s*([\w-]+)\s*(?:[*^$|~]?=\s*(?:"([^"]*)"|'([^']*)'|([^\]\s]+))\s*[is]?\s*)?\]"""
)
_TEXT_PSEUDO = re.compile(r""":(?:has-text|text|text-is)\(\s*(?:"([^"]*)"|'([^']*)')\s*\)""")
_XPATH_ATTRIBUTE = re.compile(r"""@([\w-]+)\s*,?\s*=?\s*(?:"([^"]*)"|'([^']*)')""")
_XPATH_TEXT = re.compile(r"""text\(\)\s*,?\s*=?\s*(?:"([^"]*)"|'([^']*)')""")
_XPATH_TAG = re.compile(r"/([a-zA-Z][\w-]*)\b(?!\()")
_ROLE_NAME = re.compile(r"""\[\s*name\s*=\s*(?:"([^"]*)"|'([^']*)')""")
_PARENS = re.compile(r"""\((?:[^()"']|"[^"]*"|'[^']*')*\)""")
_BRACKETS = re.compile(r"""\[(?:[^\]"']|"[^"]*"|'[^']*')*\]""")
_CAMEL = re.compile(r"([a-z0-9])([A-Z])")
_NON_WORD = re.compile(r"[^A-Za-z0-9]+")


# =============================================================================
# Selector Intent
# =============================================================================

@dataclass
class SelectorIntent:
    """
    What a selector was most likely aiming at.

    Attributes:
        expression: The original selector
        tag: Tag name of the targeted element, if the selector names one
        element_id: Targeted id
        classes: Targeted classes
        attributes: Other attribute constraints (name -> value)
        text: Text constraint (``:has-text``, ``text=``, ``text()``)
        role: ARIA role from a ``role=`` selector
        raw_words: Every word found in the selector values
    """
    expression: str
    tag: Optional[str] = None
    element_id: Optional[str] = None
    classes: List[str] = field(default_factory=list)
    attributes: Dict[str, str] = field(default_factory=dict)
    text: Optional[str] = None
    role: Optional[str] = None
    raw_words: List[str] = field(default_factory=list)

    @property
    def words(self) -> List[str]:
        """Meaningful words (widget noise removed)."""
        return [w for w in self.raw_words if w not in NOISE_WORDS]

    @property
    def phrase(self) -> str:
        return " ".join(self.words)

    @property
    def test_ids(self) -> List[str]:
        return [self.attributes[a] for a in TEST_ID_ATTRIBUTES if a in self.attributes]

    @property
    def guessed_role(self) -> Optional[str]:
        if self.role:
            return self.role
        if self.tag == "input":
            return INPUT_TYPE_ROLES.get(self.attributes.get("type", "text"))
        if self.tag in TAG_ROLES:
            return TAG_ROLES[self.tag]
        for word in self.raw_words:
            if word in KEYWORD_ROLES:
                return KEYWORD_ROLES[word]
        return None

    @property
    def guessed_tag(self) -> Optional[str]:
        if self.tag:
            return self.tag
        for word in self.raw_words:
            if word in KEYWORD_TAGS:
                return KEYWORD_TAGS[word]
        return None

    def search_terms(self) -> List[str]:
        """Text to look for on the page: explicit text, phrase, then long words."""
        terms = []
        if self.text:
            terms.append(self.text)
        if self.phrase:
            terms.append(self.phrase)
        terms.extend(sorted((w for w in self.words if len(w) >= 3), key=len, reverse=True))
        return _unique(terms)


def split_words(value: str) -> List[str]:
    """``loginButton`` / ``login-btn`` / ``login_btn`` -> ``['login', 'btn']``."""
    spaced = _CAMEL.sub(r"\1 \2", value)
    return [
        word.lower()
        for word in _NON_WORD.split(spaced)
        if len(word) > 1 and not word.isdigit()
    ]


def _first_group(match: "re.Match[str]") -> str:
    return next((g for g in match.groups() if g is not None), "")


def _last_compound(selector: str) -> str:
    """Right-most compound of a CSS selector (the element it targets)."""
    selector = selector.split(">>")[-1].strip()
    depth = 0
    quote = ""
    start = 0
    for index, char in enumerate(selector):
        if quote:
            if char == quote:
                quote = ""
            continue
        if char in "\"'":
            quote = char
        elif char in "[(":
            depth += 1
        elif char in "])":
            depth -= 1
        elif depth == 0 and (char.isspace() or char in ">+~,"):
            start = index + 1
    return selector[start:].strip() or selector


def _parse_css(intent: SelectorIntent, selector: str) -> None:
    compound = _last_compound(selector)

    for match in _ATTRIBUTE.finditer(compound):
        name = match.group(1).lower()
        value = next((g for g in match.groups()[1:] if g is not None), "")
        if name == "id" and value:
            intent.element_id = value
        elif name == "class" and value:
            intent.classes.extend(value.split())
        elif value:
            intent.attributes[name] = value

    text_match = _TEXT_PSEUDO.search(compound)
    if text_match:
        intent.text = _first_group(text_match)

    bare = _BRACKETS.sub("", _PARENS.sub("", compound))
    tag_match = re.match(r"([a-zA-Z][\w-]*)", bare)
    if tag_match:
        intent.tag = tag_match.group(1).lower()
    id_match = re.search(r"#([\w-]+)", bare)
    if id_match:
        intent.element_id = id_match.group(1)
    intent.classes.extend(re.findall(r"\.([\w-]+)", bare))


def _parse_xpath(intent: SelectorIntent, selector: str) -> None:
    for match in _XPATH_ATTRIBUTE.finditer(selector):
        name = match.group(1).lower()
        value = next((g for g in match.groups()[1:] if g is not None), "")
        if name == "id":
            intent.element_id = value
        elif name == "class":
            intent.classes.extend(value.split())
        elif value:
            intent.attributes[name] = value

    text_match = _XPATH_TEXT.search(selector)
    if text_match:
        intent.text = _first_group(text_match)

    tags = _XPATH_TAG.findall(selector)
    if tags:
        intent.tag = tags[-1].lower()


def parse_intent(expression: str) -> SelectorIntent:
    """
    Guess the target of a selector from its text alone.

    Understands CSS (with Playwright pseudo-classes), XPath and the
    ``text=`` / ``role=`` / ``id=`` / ``data-testid=`` engines.
    """
    selector = expression.strip()
    intent = SelectorIntent(expression=selector)

    engine, _, body = selector.partition("=")
    engine = engine.strip().lower()

    if selector.startswith(("//", "(//", "./")) or engine == "xpath":
        _parse_xpath(intent, body if engine == "xpath" else selector)
    elif engine == "text" and body:
        intent.text = body.strip().strip("\"'")
    elif engine == "role" and body:
        role_match = re.match(r"\s*([\w-]+)", body)
        if role_match:
            intent.role = role_match.group(1).lower()
        name_match = _ROLE_NAME.search(body)
        if name_match:
            intent.text = _first_group(name_match)
    elif engine == "id" and body:
        intent.element_id = body.strip().strip("\"'")
    elif engine in TEST_ID_ATTRIBUTES and body:
        intent.attributes[engine] = body.strip().strip("\"'")
    else:
        _parse_css(intent, body if engine == "css" else selector)

    values: List[str] = []
    if intent.element_id:
        values.append(intent.element_id)
    values.extend(intent.test_ids)
    values.extend(
        value
        for name, value in intent.attributes.items()
        if name not in TEST_ID_ATTRIBUTES and name not in _IGNORED_ATTRIBUTES
    )
    values.extend(intent.classes)
    if intent.text:
        values.append(intent.text)
    if intent.tag and not values:
        values.append(intent.tag)

    intent.raw_words = _unique(word for value in values for word in split_words(value))
    return intent


# =============================================================================
# Helpers
# =============================================================================

def _unique(items: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            result.append(item)
    return result


async def first_match(page: Page, candidates: Iterable[str]) -> Optional[str]:
    """First candidate selector that matches at least one element."""
    for candidate in _unique(candidates):
        if await page.locator(candidate).count() > 0:
            return candidate
    return None


def _contains(attribute: str, value: str, tag: str = "") -> str:
    return f"{tag}[{attribute}*={css_string(value)} i]"


# =============================================================================
# Strategies
# =============================================================================

async def by_visible_text(expression: str, page: Page) -> Optional[str]:
    """Match on visible text guessed from the selector."""
    intent = parse_intent(expression)
    candidates = [
        f"text={term}"
        for term in intent.search_terms()
        if not term.startswith(("\"", "'", "/"))
    ]
    return await first_match(page, candidates)


async def by_semantic_role(expression: str, page: Page) -> Optional[str]:
    """Match on ARIA role plus accessible name."""
    intent = parse_intent(expression)
    role = intent.guessed_role
    if not role:
        return None

    names = intent.search_terms()
    candidates = [f"role={role}[name={css_string(name)}]" for name in names]
    if not names:
        candidates.append(f"role={role}")
    return await first_match(page, candidates)


async def by_test_id_family(expression: str, page: Page) -> Optional[str]:
    """Match on data-testid and friends, exactly first, then partially."""
    intent = parse_intent(expression)

    values = list(intent.test_ids)
    if intent.element_id:
        values.append(intent.element_id)
    if "name" in intent.attributes:
        values.append(intent.attributes["name"])
    if intent.words:
        values.append("-".join(intent.words))

    candidates = [
        attribute_selector(attribute, value)
        for value in _unique(values)
        for attribute in TEST_ID_ATTRIBUTES
    ]
    candidates.extend(
        _contains(attribute, word)
        for word in intent.words
        if len(word) >= 3
        for attribute in TEST_ID_ATTRIBUTES
    )
    return await first_match(page, candidates)


async def by_placeholder(expression: str, page: Page) -> Optional[str]:
    """Match inputs whose placeholder mentions the target."""
    intent = parse_intent(expression)
    terms = []
    if "placeholder" in intent.attributes:
        terms.append(intent.attributes["placeholder"])
    terms.extend(intent.search_terms())
    return await first_match(page, (_contains("placeholder", term) for term in _unique(terms)))


async def by_associated_label(expression: str, page: Page) -> Optional[str]:
    """Match form controls through their <label> or aria-label."""
    intent = parse_intent(expression)
    terms = []
    if "aria-label" in intent.attributes:
        terms.append(intent.attributes["aria-label"])
    terms.extend(intent.search_terms())

    for term in _unique(terms):
        label = page.locator(f"label:has-text({css_string(term)})")
        if await label.count() > 0:
            target = await label.first.get_attribute("for")
            if target:
                candidate = id_selector(target)
                if await page.locator(candidate).count() > 0:
                    return candidate
            nested = f"label:has-text({css_string(term)}) >> input, textarea, select"
            if await page.locator(nested).count() > 0:
                return nested

        candidate = _contains("aria-label", term)
        if await page.locator(candidate).count() > 0:
            return candidate
    return None


async def by_class(expression: str, page: Page) -> Optional[str]:
    """Match on class names, exact then partial."""
    intent = parse_intent(expression)
    tag = intent.tag or ""

    candidates = [
        f"{tag}.{cls}" for cls in intent.classes if is_css_identifier(cls)
    ]
    fragments = _unique(
        [word for cls in intent.classes for word in split_words(cls)] + intent.words
    )
    candidates.extend(
        _contains("class", fragment, tag) for fragment in fragments if len(fragment) >= 3
    )
    return await first_match(page, candidates)


def tag_path(expression: str) -> Optional[str]:
    """
    Structural skeleton of a CSS selector: ``form#login > button.primary``
    becomes ``form > button``.

    Returns:
        None for non-CSS selectors or when no tag names remain
    """
    selector = expression.strip()
    if "=" in selector.split("[")[0] or selector.startswith(("/", "(")):
        return None

    skeleton = _PARENS.sub("", selector)
    skeleton = _BRACKETS.sub("", skeleton)
    skeleton = re.sub(r"::?[\w-]+", "", skeleton)
    skeleton = re.sub(r"[#.][\w-]+", "", skeleton)
    skeleton = re.sub(r"\s*([>+~])\s*", r" \1 ", skeleton)
    skeleton = re.sub(r"\s+", " ", skeleton).strip(" >+~")

    if not skeleton or not re.fullmatch(r"[a-zA-Z][\w-]*(?: [>+~]? ?[a-zA-Z][\w-]*)*", skeleton):
        return None
    return re.sub(r"\s+", " ", skeleton)


async def by_tag_path(expression: str, page: Page) -> Optional[str]:
    """Match on the tag skeleton of the selector, narrowed by text when possible."""
    intent = parse_intent(expression)
    candidates = []

    tag = intent.guessed_tag
    if tag:
        candidates.extend(has_text_selector(tag, term) for term in intent.search_terms())

    path = tag_path(expression)
    if path and path != expression.strip():
        candidates.append(path)
    return await first_match(page, candidates)


DEFAULT_STRATEGIES: Tuple[HealingStrategy, ...] = (
    by_visible_text,
    by_semantic_role,
    by_test_id_family,
    by_placeholder,
    by_associated_label,
    by_class,
    by_tag_path,
)


__all__ = [
    "DEFAULT_STRATEGIES",
    "HealingStrategy",
    "SelectorIntent",
    "by_associated_label",
    "by_class",
    "by_placeholder",
    "by_semantic_role",
    "by_tag_path",
    "by_test_id_family",
    "by_visible_text",
    "first_match",
    "parse_intent",
    "split_words",
    "tag_path",
]
