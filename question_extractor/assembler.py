from dataclasses import dataclass
from functools import partial
from typing import Callable, Iterable, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from .config import DEFAULT_SETTINGS, ExtractorSettings
from .content_node import ContentNode, parse_html
from .formula_converter import MathConverter
from .text_normalizer import normalize
from .tree_extractor import extract
from setup_logger import setup_logger

logger = setup_logger("assembler")

# 候補を1つ返す関数。見つからなければ None か空文字
Candidate = Callable[[], Optional[str]]


@dataclass(frozen=True)
class QuestionRecord:
    """1問分の抽出結果"""
    title: str
    body: str
    options: Tuple[str, ...] = ()

    def format(self, settings: ExtractorSettings = DEFAULT_SETTINGS) -> str:
        """タイトル・本文・選択肢を1つのテキストにまとめます。"""
        body = self.body
        if self.options:
            option_lines = "\n".join(f"{settings.option_marker}{option}" for option in self.options)
            option_block = f"{settings.options_header}\n{option_lines}"
            body = f"{body}\n\n{option_block}" if body else option_block
        if not body:
            return self.title
        return f"{self.title}\n{body}"


def first_available(candidates: Iterable[Candidate]) -> Optional[str]:
    """候補関数を順に評価し、最初に得られた空でない値を返します。"""
    for candidate in candidates:
        value = candidate()
        if value:
            return value
    return None


class QuestionAssembler:
    """
    ページ内の問題コンテナごとに抽出・正規化を行い、1つのテキストに結合します。

    Args:
        converter (MathConverter | None): MathML -> LaTeX の変換能力。
        settings (ExtractorSettings): セレクタや出力文字列の設定。
    """

    def __init__(self, converter: Optional[MathConverter] = None, settings: ExtractorSettings = DEFAULT_SETTINGS):
        self.converter = converter
        self.settings = settings

    def _text_of(self, element: Optional[Tag]) -> str:
        if element is None:
            return ""
        node = ContentNode.from_soup(element, skip_tags=self.settings.skip_tags)
        raw = extract(node, self.converter, self.settings)
        return normalize(raw, self.settings.delimiter)

    def _select_text(self, container: Tag, selector: str) -> Optional[str]:
        return self._text_of(container.select_one(selector)) or None

    def find_questions(self, document_root: Tag) -> List[Tag]:
        return document_root.select(self.settings.question_selector)

    def title_of(self, container: Tag, position: int) -> str:
        settings = self.settings
        candidates: List[Candidate] = [
            partial(self._select_text, container, selector) for selector in settings.title_selectors
        ]
        candidates.append(partial(self._number_title, container))
        return first_available(candidates) or settings.title_template.format(number=position)

    def _number_title(self, container: Tag) -> Optional[str]:
        number = self._select_text(container, self.settings.number_selector)
        if not number:
            return None
        return self.settings.title_template.format(number=number)

    def body_of(self, container: Tag) -> str:
        # 本文はコンテナが存在すれば中身が空でも採用する
        for selector in self.settings.body_selectors:
            element = container.select_one(selector)
            if element is not None:
                return self._text_of(element)
        return self.settings.body_not_found

    def options_of(self, container: Tag) -> Tuple[str, ...]:
        options = []
        for index, element in enumerate(container.select(self.settings.option_selector), start=1):
            try:
                text = self._text_of(element)
            except Exception as e:
                logger.warning(f"選択肢 {index} の抽出に失敗しました ({type(e).__name__}: {e})")
                continue
            if text:
                options.append(text)
        return tuple(options)

    def assemble_question(self, container: Tag, position: int) -> QuestionRecord:
        """問題コンテナ1つから QuestionRecord を作ります。"""
        title = self.title_of(container, position)
        body = self.body_of(container)
        # 本文コンテナにタイトルが含まれている場合は重複を取り除く
        if title and body.startswith(title):
            body = body[len(title):].strip()
        return QuestionRecord(title=title, body=body, options=self.options_of(container))

    def has_formulas(self, containers: Iterable[Tag]) -> bool:
        """問題コンテナ内に数式画像があるか (ヘッダーなどコンテナ外の画像は数えない)"""
        selector = self.settings.formula_selector
        return any(container.select_one(selector) is not None for container in containers)

    def assemble_all(self, document_root: Optional[Tag]) -> str:
        """
        ページ全体の問題を抽出し、区切り文字で結合したテキストを返します。

        数式があるのに変換器が使えない場合は、数式抜きのテキストではなくエラーメッセージを返します。
        """
        if document_root is None:
            return ""

        settings = self.settings
        containers = self.find_questions(document_root)
        if not containers:
            logger.info(f"問題コンテナ ('{settings.question_selector}') が見つかりませんでした。")
            return ""

        if self.converter is None and self.has_formulas(containers):
            logger.error("数式が含まれていますが MathML 変換器が利用できません。")
            return settings.converter_unavailable

        records = []
        failures = 0
        for position, container in enumerate(containers, start=1):
            try:
                record = self.assemble_question(container, position)
                records.append(record.format(settings))
            except Exception as e:
                failures += 1
                logger.error(f"問題 {position} の抽出中にエラーが発生しました ({type(e).__name__}: {e})")
                placeholder = QuestionRecord(
                    title=settings.title_template.format(number=position),
                    body=settings.question_failed,
                )
                records.append(placeholder.format(settings))

        logger.notice(f"{len(records)} 問を抽出しました (失敗: {failures})")
        return settings.separator.join(records)


def assemble_all(
    document_root: Optional[Tag],
    converter: Optional[MathConverter] = None,
    settings: ExtractorSettings = DEFAULT_SETTINGS,
) -> str:
    """QuestionAssembler(converter, settings).assemble_all(document_root) の短縮形"""
    return QuestionAssembler(converter, settings).assemble_all(document_root)


def extract_from_html(
    html: str,
    converter: Optional[MathConverter] = None,
    settings: ExtractorSettings = DEFAULT_SETTINGS,
) -> str:
    """HTML文字列から問題テキストを抽出します。"""
    document: BeautifulSoup = parse_html(html)
    return assemble_all(document, converter, settings)
