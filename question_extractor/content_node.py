import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple, Union

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction

# 設定はアプリケーションの入口で行う
logger = logging.getLogger(__name__)

TEXT = "text"
ELEMENT = "element"

# テキストとして扱わない NavigableString の派生クラス
_NON_CONTENT_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)

DEFAULT_SKIP_TAGS = frozenset({"script", "style", "noscript", "template"})


@dataclass(frozen=True)
class ContentNode:
    """
    ホスト文書ツリーの読み取り専用ビュー。

    要素ノードは tag / attributes / children を、テキストノードは text だけを持ちます。
    親への参照は持たず、元のツリーを変更することもありません。
    """
    kind: str = ELEMENT
    tag: str = ""
    attributes: Dict[str, str] = field(default_factory=dict)
    children: Tuple["ContentNode", ...] = ()
    text: str = ""

    @property
    def is_text(self) -> bool:
        return self.kind == TEXT

    @property
    def is_element(self) -> bool:
        return self.kind == ELEMENT

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """属性値を返します。テキストノードでは常に default。"""
        return self.attributes.get(name, default)

    @property
    def class_list(self) -> Tuple[str, ...]:
        return tuple(filter(None, (self.attributes.get("class") or "").split()))

    @classmethod
    def from_soup(
        cls,
        node: Union[Tag, NavigableString, None],
        skip_tags: Iterable[str] = DEFAULT_SKIP_TAGS,
    ) -> Optional["ContentNode"]:
        """
        BeautifulSoup のノードからビューを作ります。

        コメントや DOCTYPE、script/style などの非コンテンツ要素は None になり、
        親の children からも除外されます。
        """
        if node is None:
            return None
        skip_tags = frozenset(skip_tags)
        return _convert_soup_node(node, skip_tags)

    def __repr__(self) -> str:
        """ノードの情報を見やすく表示"""
        if self.is_text:
            return f"ContentNode(text={self.text!r})"
        info = [
            f"Tag: {self.tag}",
            f"Attributes: {self.attributes}" if self.attributes else "Attributes: None",
            f"Children: {len(self.children)}",
        ]
        return "ContentNode(" + ", ".join(info) + ")"


def _convert_soup_node(node, skip_tags: frozenset) -> Optional[ContentNode]:
    if isinstance(node, NavigableString):
        if isinstance(node, _NON_CONTENT_STRINGS):
            return None
        return ContentNode(kind=TEXT, text=str(node))

    if not isinstance(node, Tag):
        logger.debug(f"未対応のノード型を無視します: {type(node)}")
        return None

    tag = (node.name or "").lower()
    if tag in skip_tags:
        return None

    children = []
    for child in node.children:
        converted = _convert_soup_node(child, skip_tags)
        if converted is not None:
            children.append(converted)

    return ContentNode(
        kind=ELEMENT,
        tag=tag,
        attributes=_flatten_attributes(node.attrs),
        children=tuple(children),
    )


def _flatten_attributes(attrs: Dict) -> Dict[str, str]:
    # bs4 は class などの複数値属性を list で返す
    flattened = {}
    for name, value in (attrs or {}).items():
        if isinstance(value, (list, tuple)):
            value = " ".join(value)
        flattened[name] = "" if value is None else str(value)
    return flattened


def text_node(text: str) -> ContentNode:
    return ContentNode(kind=TEXT, text=text)


def element(tag: str, *children: ContentNode, **attributes: str) -> ContentNode:
    """
    要素ノードを組み立てるヘルパー。

    Python の予約語と衝突する属性名は末尾に ``_`` を付け (``class_``)、
    ``-`` を含む属性名は ``_`` で書けます (``data_mathml`` -> ``data-mathml``)。
    """
    attrs = {}
    for name, value in attributes.items():
        attrs[name.rstrip("_").replace("_", "-")] = value
    return ContentNode(kind=ELEMENT, tag=tag.lower(), attributes=attrs, children=tuple(children))


def parse_html(html: str) -> BeautifulSoup:
    """HTML文字列を BeautifulSoup の文書ツリーに変換します。"""
    return BeautifulSoup(html or "", "html.parser")


def is_formula_node(node: Optional[ContentNode], tag: str = "img", css_class: str = "Wirisformula", role: str = "math") -> bool:
    """数式画像 (Wiris の img) かどうかを判定します。"""
    if node is None or not node.is_element or node.tag != tag:
        return False
    if css_class and css_class in node.class_list:
        return True
    return bool(role) and node.get("role") == role
