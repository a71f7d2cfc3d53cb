import pytest

from question_extractor.text_normalizer import normalize

# =================================================================
# text_normalizer.py のテスト
# =================================================================

# --- Tests for normalize ---

@pytest.mark.parametrize("raw, expected", [
    ("a   b", "a b"),
    ("a   b", "a b"),
    ("a\tb\r c", "a b c"),
    ("$ x+1 $", "$x+1$"),
    ("Solve  $ x^2+1 $ .", "Solve $x^2+1$ ."),
    ("a \n b", "a\nb"),
    ("a\n\n\n\nb", "a\n\nb"),
    ("\n \n  a  \n\n", "a"),
    ("", ""),
])
def test_normalize_cases(raw, expected):
    assert normalize(raw) == expected


def test_normalize_keeps_spaces_inside_notation():
    """数式の中身の空白は変更しない"""
    assert normalize("Let $ x + 1 $ be") == "Let $x + 1$ be"
    assert normalize("$\\frac{a}{b} \\cdot c$") == "$\\frac{a}{b} \\cdot c$"


def test_normalize_multiple_formulas_on_one_line():
    assert normalize("If  $ a $ and $ b $ then") == "If $a$ and $b$ then"


def test_normalize_delimiters_do_not_pair_across_lines():
    assert normalize("cost $ 5\n and $ x") == "cost $ 5\nand $ x"


@pytest.mark.parametrize("count", [3, 4, 7])
def test_normalize_collapses_three_or_more_breaks_to_two(count):
    raw = "first" + "\n" * count + "second"
    assert normalize(raw) == "first\n\nsecond"


def test_normalize_keeps_single_blank_line():
    assert normalize("first\n\nsecond") == "first\n\nsecond"


def test_normalize_breaks_separated_by_spaces_are_collapsed():
    assert normalize("a\n \n \n \nb") == "a\n\nb"


def test_normalize_custom_delimiter():
    assert normalize("# a+b #", delimiter="#") == "#a+b#"


@pytest.mark.parametrize("raw", [
    "  Question 1 \n\n\n Compute  the value. ",
    "Solve  $ x^2+1 $ .\n\n\n\n $ $ end",
    "price $ 5 and $x$ here $ y",
    " \t$ a $ \n \n",
    "a $ b\nc $ d $ e $",
    "\n\n\n",
])
def test_normalize_is_idempotent(raw):
    once = normalize(raw)
    assert normalize(once) == once


# --- Tests for escaped delimiters ---

def test_normalize_escaped_dollar_is_not_a_delimiter():
    """金額の \\$ は数式の囲みと対にならない"""
    assert normalize("Pay \\$5 for $ x^2+1 $ units.") == "Pay \\$5 for $x^2+1$ units."


def test_normalize_escaped_dollars_keep_surrounding_spaces():
    assert normalize("from \\$ 5 to \\$ 10") == "from \\$ 5 to \\$ 10"


def test_normalize_escaped_dollar_inside_notation():
    assert normalize("cost $ a \\$ b $ now") == "cost $a \\$ b$ now"


@pytest.mark.parametrize("raw", [
    "Pay \\$5 for  $ x $  and \\$ 7",
    "\\$ a $ b $ c \\$",
    "$ a\\\\ $ b $",
])
def test_normalize_is_idempotent_with_escaped_dollars(raw):
    once = normalize(raw)
    assert normalize(once) == once
