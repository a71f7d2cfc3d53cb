import pytest
from unittest.mock import MagicMock

from question_extractor.formula_converter import (
    PandocMathConverter,
    convert_formula,
    decode_wiris_markup,
    load_math_converter,
    strip_outer_braces,
)

WIRIS_MARKUP = "«math xmlns=¨http://www.w3.org/1998/Math/MathML¨»«mi»x«/mi»«/math»"
DECODED_MARKUP = '<math xmlns="http://www.w3.org/1998/Math/MathML"><mi>x</mi></math>'

# =================================================================
# formula_converter.py のテスト
# =================================================================

# --- Tests for decode_wiris_markup ---

def test_decode_wiris_markup_restores_brackets_and_quotes():
    assert decode_wiris_markup(WIRIS_MARKUP) == DECODED_MARKUP


def test_decode_wiris_markup_restores_apostrophe_and_ampersand():
    assert decode_wiris_markup("«mo»§lt;«/mo»«mi mathvariant=`bold`»v«/mi»") == "<mo>&lt;</mo><mi mathvariant='bold'>v</mi>"


@pytest.mark.parametrize("markup", ["", None])
def test_decode_wiris_markup_empty(markup):
    assert decode_wiris_markup(markup) == ""


def test_decode_wiris_markup_leaves_standard_markup_alone():
    assert decode_wiris_markup(DECODED_MARKUP) == DECODED_MARKUP


# --- Tests for strip_outer_braces ---

@pytest.mark.parametrize("latex, expected", [
    ("{x+1}", "x+1"),
    ("  { x^2 }  ", "x^2"),
    ("{{x}}", "{x}"),
    ("{a}+{b}", "{a}+{b}"),
    ("x^{2}", "x^{2}"),
    ("{x", "{x"),
    ("{x\\}}", "x\\}"),
    ("", ""),
])
def test_strip_outer_braces(latex, expected):
    assert strip_outer_braces(latex) == expected


# --- Tests for convert_formula ---

@pytest.mark.parametrize("markup", ["", None, "   "])
def test_convert_formula_empty_input_returns_none(markup):
    converter = MagicMock()
    assert convert_formula(markup, converter) is None
    converter.assert_not_called()


def test_convert_formula_success_strips_outer_group():
    converter = MagicMock(return_value=" {x^2+1} \n")
    assert convert_formula(WIRIS_MARKUP, converter) == "x^2+1"
    converter.assert_called_once_with(DECODED_MARKUP)


def test_convert_formula_folds_newlines_in_result():
    converter = MagicMock(return_value="\\frac{1}{2}\n  + x\r\n")
    assert convert_formula(WIRIS_MARKUP, converter) == "\\frac{1}{2} + x"


def test_convert_formula_without_converter_returns_none():
    assert convert_formula(WIRIS_MARKUP, None) is None


def test_convert_formula_swallows_converter_errors():
    converter = MagicMock(side_effect=RuntimeError("pandoc failed"))
    assert convert_formula(WIRIS_MARKUP, converter) is None


@pytest.mark.parametrize("result", ["", "   ", "{}", None, 42])
def test_convert_formula_unusable_result_returns_none(result):
    converter = MagicMock(return_value=result)
    assert convert_formula(WIRIS_MARKUP, converter) is None


# --- Tests for PandocMathConverter ---

@pytest.mark.parametrize("written, expected", [
    ("\\(x^{2} + 1\\)\n", "x^{2} + 1"),
    ("$x$\n", "x"),
    ("\\[\n\\frac{1}{2}\n\\]\n", "\\frac{1}{2}"),
    ("x", "x"),
])
def test_pandoc_math_converter_strips_math_mode(mocker, written, expected):
    mock_pandoc = mocker.patch("question_extractor.formula_converter.pandoc")
    mock_pandoc.write.return_value = written

    result = PandocMathConverter("/usr/bin/pandoc")(DECODED_MARKUP)

    assert result == expected
    mock_pandoc.configure.assert_called_once_with(path="/usr/bin/pandoc")
    mock_pandoc.read.assert_called_once_with(DECODED_MARKUP, format="html")
    mock_pandoc.write.assert_called_once_with(mock_pandoc.read.return_value, format="latex")


# --- Tests for load_math_converter ---

def test_load_math_converter_missing_executable(mocker):
    mocker.patch("question_extractor.formula_converter.shutil.which", return_value=None)
    assert load_math_converter() is None


def test_load_math_converter_returns_pandoc_handle(mocker):
    mocker.patch("question_extractor.formula_converter.shutil.which", return_value="/opt/pandoc/bin/pandoc")
    mock_pandoc = mocker.patch("question_extractor.formula_converter.pandoc")

    converter = load_math_converter("/opt/pandoc/bin/pandoc")

    assert isinstance(converter, PandocMathConverter)
    assert converter.executable == "/opt/pandoc/bin/pandoc"
    mock_pandoc.configure.assert_called_once_with(path="/opt/pandoc/bin/pandoc")


def test_load_math_converter_missing_executable_logs_error_payload_hint(mocker):
    mocker.patch("question_extractor.formula_converter.shutil.which", return_value=None)
    mock_logger = mocker.patch("question_extractor.formula_converter.logger")

    load_math_converter()

    message = mock_logger.warning.call_args.args[0]
    assert "エラーメッセージ" in message
    assert "代替テキスト" not in message
