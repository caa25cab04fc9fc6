import pytest

from healing_suites.ui_testing.framework.healing_strategies import (
    parse_intent,
    split_words,
    tag_path,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("login-btn", ["login", "btn"]),
        ("loginButton", ["login", "button"]),
        ("user_email_2", ["user", "email"]),
        ("a", []),
    ],
)
def test_split_words(value, expected):
    assert split_words(value) == expected


def test_id_selector_intent():
    intent = parse_intent("#login-btn")

    assert intent.element_id == "login-btn"
    assert intent.tag is None
    assert intent.raw_words == ["login", "btn"]
    assert intent.words == ["login"]
    assert intent.guessed_role == "button"
    assert intent.guessed_tag == "button"
    assert intent.search_terms() == ["login"]


def test_css_with_text_pseudo_class():
    intent = parse_intent('button.primary:has-text("Sign in")')

    assert intent.tag == "button"
    assert intent.classes == ["primary"]
    assert intent.text == "Sign in"
    assert intent.guessed_role == "button"
    assert intent.search_terms()[0] == "Sign in"


def test_only_last_compound_is_the_target():
    intent = parse_intent("form#login > input[name='username']")

    assert intent.tag == "input"
    assert intent.element_id is None
    assert intent.attributes == {"name": "username"}
    assert intent.words == ["username"]
    assert intent.guessed_role == "textbox"


def test_attribute_selectors():
    intent = parse_intent('[data-testid="checkout-submit"][class*="wide"]')

    assert intent.test_ids == ["checkout-submit"]
    assert intent.classes == ["wide"]
    assert "checkout" in intent.words


def test_xpath_intent():
    intent = parse_intent("//form/button[@data-testid='submit-order' and contains(text(), 'Buy')]")

    assert intent.tag == "button"
    assert intent.test_ids == ["submit-order"]
    assert intent.text == "Buy"


def test_xpath_ignores_function_steps():
    assert parse_intent("//span/text()").tag == "span"


@pytest.mark.parametrize(
    "expression, field, value",
    [
        ("text=Log in", "text", "Log in"),
        ('text="Log in"', "text", "Log in"),
        ('role=button[name="Save"]', "role", "button"),
        ('role=button[name="Save"]', "text", "Save"),
        ("id=main-nav", "element_id", "main-nav"),
    ],
)
def test_engine_prefixes(expression, field, value):
    assert getattr(parse_intent(expression), field) == value


def test_input_type_drives_role():
    assert parse_intent("input[type='checkbox']").guessed_role == "checkbox"
    assert parse_intent("a.nav-home").guessed_role == "link"


@pytest.mark.parametrize(
    "expression, expected",
    [
        ("form#login > button.primary", "form > button"),
        ("div.card span", "div span"),
        ('button:has-text("Go")', "button"),
        ("#login-btn", None),
        ("text=Login", None),
        ("//div", None),
    ],
)
def test_tag_path(expression, expected):
    assert tag_path(expression) == expected
