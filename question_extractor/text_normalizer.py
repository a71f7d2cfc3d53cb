import re
from functools import lru_cache

# 改行以外の空白 (NBSP、タブ、CR などを含む)
_SPACE_RUN_RE = re.compile(r"[^\S\n]+")
_SPACE_AROUND_BREAK_RE = re.compile(r" *\n *")
_EXCESS_BREAKS_RE = re.compile(r"\n{3,}")


@lru_cache(maxsize=8)
def _delimited_math_re(delimiter: str) -> re.Pattern:
    d = re.escape(delimiter)
    # 同じ行の中で対になった区切り文字。内側の境界にある空白1つだけを捕まえない。
    # \$ のようにエスケープされた区切り文字は本文の文字として扱い、対にしない
    return re.compile(rf"(?<!\\){d} ?((?:\\.|[^\\{d}\n])*?) ?{d}")


def normalize(raw: str, delimiter: str = "$") -> str:
    """
    抽出した生テキストを表示用に整形します。

    1. 改行以外の連続する空白を半角スペース1つにまとめる
    2. 数式区切り文字の内側にある空白を取り除く (``$ x+1 $`` -> ``$x+1$``)
    3. 改行の前後の空白を取り除く
    4. 3つ以上続く改行を2つにまとめる
    5. 全体の前後の空白・改行を取り除く

    数式の中身の空白には触れません。``\\$`` とエスケープされた区切り文字は数式の囲みとみなしません。
    何度適用しても結果は変わりません。
    """
    if not raw:
        return ""

    text = _SPACE_RUN_RE.sub(" ", raw)
    text = _delimited_math_re(delimiter).sub(lambda m: f"{delimiter}{m.group(1)}{delimiter}", text)
    text = _SPACE_AROUND_BREAK_RE.sub("\n", text)
    text = _EXCESS_BREAKS_RE.sub("\n\n", text)
    return text.strip()
