from typing import List, Optional, Set

from .config import DEFAULT_SETTINGS, ExtractorSettings
from .content_node import ContentNode, is_formula_node
from .formula_converter import MathConverter, convert_formula
from setup_logger import setup_logger

logger = setup_logger("tree_extractor")

LINE_BREAK = "\n"


def escape_delimiter(text: str, delimiter: str) -> str:
    """本文中の数式区切り文字 (金額の $ など) を \\$ にして、数式の囲みと区別できるようにします。"""
    if not delimiter:
        return text
    return text.replace(delimiter, "\\" + delimiter)


def extract(
    node: Optional[ContentNode],
    converter: Optional[MathConverter] = None,
    settings: ExtractorSettings = DEFAULT_SETTINGS,
    visited: Optional[Set[str]] = None,
) -> str:
    """
    部分木を再帰的にたどり、正規化前のテキストを返します。

    Args:
        node (ContentNode | None): 抽出対象のノード。None の場合は空文字。
        converter (MathConverter | None): MathML -> LaTeX の変換能力。
        settings (ExtractorSettings): ブロック要素や数式判定のルール。
        visited (set | None): 処理済みの数式 id。None の場合はこの呼び出し専用の集合を作ります。

    Returns:
        str: 改行マーカー ("\\n") を含む生のテキスト。
    """
    if node is None:
        return ""
    if visited is None:
        visited = set()

    stream: List[str] = []
    _walk(node, converter, settings, visited, stream)
    return "".join(stream)


def _walk(node: ContentNode, converter, settings: ExtractorSettings, visited: Set[str], stream: List[str]) -> None:
    if node.is_text:
        # ソース上の改行は HTML では単なる空白。改行マーカーと区別するため空白に置き換える
        text = node.text.replace("\r\n", " ").replace("\r", " ").replace("\n", " ")
        stream.append(escape_delimiter(text, settings.delimiter))
        return

    if is_formula_node(node, settings.formula_tag, settings.formula_class, settings.formula_role):
        stream.append(_formula_text(node, converter, settings, visited))
        return

    for child in node.children:
        _walk(child, converter, settings, visited, stream)

    if node.tag == "br" or node.tag in settings.block_tags:
        if not _ends_with_break(stream):
            stream.append(LINE_BREAK)


def _ends_with_break(stream: List[str]) -> bool:
    for chunk in reversed(stream):
        if chunk:
            return chunk.endswith(LINE_BREAK)
    return False


def _formula_text(node: ContentNode, converter, settings: ExtractorSettings, visited: Set[str]) -> str:
    formula_id = node.get("id")
    if formula_id:
        if formula_id in visited:
            logger.debug(f"重複した数式 id をスキップします: {formula_id}")
            return ""
        visited.add(formula_id)

    latex = convert_formula(node.get(settings.markup_attribute), converter)
    if latex:
        return f" {settings.delimiter}{latex}{settings.delimiter} "

    label = (node.get(settings.label_attribute) or "").strip()
    if label:
        return f" {escape_delimiter(label, settings.delimiter)} "

    logger.debug("数式データも代替テキストもないためプレースホルダーを出力します。")
    return f" {settings.formula_no_data} "
