"""
Wiris 数式画像の MathML を LaTeX に変換する。

変換そのものは外部の能力 (MathML -> LaTeX の callable) に任せ、ここでは
Wiris 独自のエスケープの復元と、変換結果の後始末だけを行います。
変換に失敗しても例外は送出せず None を返し、代替表現の選択は呼び出し側に委ねます。
"""
import re
import shutil
from typing import Callable, Optional

import pandoc

from setup_logger import setup_logger

logger = setup_logger("formula_converter")

# MathML 文字列を受け取り LaTeX 文字列を返す callable
MathConverter = Callable[[str], str]

# Wiris の "safe XML" で使われる代替文字
WIRIS_SUBSTITUTES = {
    "«": "<",
    "»": ">",
    "¨": '"',
    "`": "'",
    "§": "&",
}

# pandoc の LaTeX 出力に付く数式モードの囲み
_MATH_WRAPPERS = (
    (r"\(", r"\)"),
    (r"\[", r"\]"),
    ("$$", "$$"),
    ("$", "$"),
)

_NEWLINE_RUN_RE = re.compile(r"\s*[\r\n]+\s*")


def decode_wiris_markup(markup: str) -> str:
    """Wiris の代替文字を通常の引用符・山括弧・アンパサンドに戻します。"""
    if not markup:
        return ""
    return "".join(WIRIS_SUBSTITUTES.get(ch, ch) for ch in markup)


def strip_outer_braces(latex: str) -> str:
    """
    全体がひとつの ``{...}`` で囲まれている場合だけ外側の波括弧を1組外します。

    ``{a}+{b}`` のように先頭と末尾の括弧が別の組であれば何もしません。
    """
    text = latex.strip()
    if len(text) < 2 or text[0] != "{" or text[-1] != "}":
        return text

    depth = 0
    for index, ch in enumerate(text):
        # エスケープされた波括弧 \{ \} は数えない
        if index > 0 and text[index - 1] == "\\":
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0 and index != len(text) - 1:
                return text
    if depth != 0:
        return text
    return text[1:-1].strip()


def convert_formula(native_markup: Optional[str], converter: Optional[MathConverter]) -> Optional[str]:
    """
    数式1つ分のネイティブマークアップを LaTeX に変換します。

    Args:
        native_markup: ``data-mathml`` 属性の値 (Wiris エスケープ済みでもよい)
        converter: MathML -> LaTeX の変換能力。利用できない場合は None。

    Returns:
        変換後の LaTeX。入力が空・変換不能・変換器なしの場合は None。
    """
    mathml = decode_wiris_markup(native_markup or "").strip()
    if not mathml:
        logger.debug("数式マークアップがありません。")
        return None

    if converter is None:
        logger.warning("MathML 変換器が利用できないため数式を変換できません。")
        return None

    try:
        latex = converter(mathml)
    except Exception as e:
        logger.warning(f"数式の変換に失敗しました ({type(e).__name__}: {e}): {mathml[:80]}")
        return None

    if not isinstance(latex, str):
        logger.warning(f"変換器が文字列以外を返しました: {type(latex).__name__}")
        return None

    # 数式内の改行は改行マーカーと区別できないため空白にまとめる
    latex = strip_outer_braces(_NEWLINE_RUN_RE.sub(" ", latex))
    return latex or None


def _strip_math_wrapper(latex: str) -> str:
    text = latex.strip()
    for opening, closing in _MATH_WRAPPERS:
        if text.startswith(opening) and text.endswith(closing) and len(text) >= len(opening) + len(closing):
            return text[len(opening):len(text) - len(closing)].strip()
    return text


class PandocMathConverter:
    """pandoc で MathML を LaTeX に変換する変換能力。"""

    def __init__(self, executable: str):
        self.executable = executable
        # PATH 上の別の pandoc ではなく、確認済みの実行ファイルを使う
        pandoc.configure(path=executable)

    def __call__(self, mathml: str) -> str:
        # pandoc の HTML リーダーは <math> を数式として読み込む
        document = pandoc.read(mathml, format="html")
        latex = pandoc.write(document, format="latex")
        latex = _NEWLINE_RUN_RE.sub(" ", latex.strip())
        return _strip_math_wrapper(latex)

    def __repr__(self) -> str:
        return f"PandocMathConverter(executable={self.executable!r})"


def load_math_converter(executable: str = "pandoc") -> Optional[MathConverter]:
    """
    MathML 変換能力が使えるか一度だけ確認し、使えれば変換器を返します。

    pandoc の実行ファイルが見つからない場合は None を返します。
    """
    path = shutil.which(executable)
    if path is None:
        logger.warning(f"'{executable}' が見つかりません。数式を含むページはエラーメッセージを返します。")
        return None
    logger.debug(f"MathML 変換器として pandoc を使用します: {path}")
    return PandocMathConverter(path)
