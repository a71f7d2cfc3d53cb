import os
import json
from dataclasses import dataclass, field
from typing import Dict, Tuple

from setup_logger import setup_logger

logger = setup_logger("question_extractor_config")

def _load_json_config(filename: str, default_config: dict) -> dict:
    """
    指定されたJSON設定ファイルを読み込みます。
    失敗した場合はハードコードされたデフォルト値を返します。
    """
    # このファイルの場所から2つ上のディレクトリ（プロジェクトルート）の config/ を参照する
    PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    CONFIG_FILE_PATH = os.path.join(PROJECT_ROOT, 'config', filename)
    try:
        with open(CONFIG_FILE_PATH, 'r', encoding='utf-8') as f:
            config = json.load(f)
        logger.debug(f"設定を '{CONFIG_FILE_PATH}' から読み込みました。")
        return config
    except (FileNotFoundError, json.JSONDecodeError) as e:
        logger.warning(f"設定ファイル '{CONFIG_FILE_PATH}' の読み込みに失敗しました ({e})。デフォルト値を使用します。")
        return default_config

# 抽出ルール (Moodle の小テスト受験ページ向け)
EXTRACTOR_DEFAULT = {
    "selectors": {
        "question": "div.que",
        "title": [".info .no"],
        "number": ".qno",
        "body": [".qtext", ".formulation", ".content"],
        "options": ".answer > div",
    },
    "formula": {
        "tag": "img",
        "class": "Wirisformula",
        "role": "math",
        "markup_attribute": "data-mathml",
        "label_attribute": "alt",
        "delimiter": "$",
    },
    "block_tags": [
        "p", "div", "h1", "h2", "h3", "h4", "h5", "h6", "li", "tr", "td", "th",
        "dt", "dd", "blockquote", "fieldset", "legend", "ul", "ol", "dl", "table",
    ],
    "skip_tags": ["script", "style", "noscript", "template"],
    "text": {
        "title_template": "Question {number}",
        "body_not_found": "[question text not found]",
        "question_failed": "[question could not be extracted]",
        "formula_no_data": "[Formula Image - No Data]",
        "options_header": "Options:",
        "option_marker": "- ",
        "separator": "\n\n---\n\n",
        "converter_unavailable": "[Error] Math converter is not available; formulas could not be converted.",
    },
}
EXTRACTOR_CONFIG = _load_json_config('extractor_config.json', EXTRACTOR_DEFAULT)

# ページ読み込み (Playwright) の設定
LOADER_DEFAULT = {
    "viewport": {"width": 1920, "height": 1080},
    "goto_timeout": 30000,
    "networkidle_timeout": 15000,
    "ready_timeout": 10000,
    "fallback_delay": 2000,
}
LOADER_CONFIG = _load_json_config('loader_config.json', LOADER_DEFAULT)


def _as_tuple(value) -> Tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    return tuple(value or ())


@dataclass(frozen=True)
class ExtractorSettings:
    """抽出ルールをまとめた不変オブジェクト。"""
    question_selector: str = "div.que"
    title_selectors: Tuple[str, ...] = (".info .no",)
    number_selector: str = ".qno"
    body_selectors: Tuple[str, ...] = (".qtext", ".formulation", ".content")
    option_selector: str = ".answer > div"
    formula_tag: str = "img"
    formula_class: str = "Wirisformula"
    formula_role: str = "math"
    markup_attribute: str = "data-mathml"
    label_attribute: str = "alt"
    delimiter: str = "$"
    block_tags: frozenset = field(default_factory=lambda: frozenset(EXTRACTOR_DEFAULT["block_tags"]))
    skip_tags: frozenset = field(default_factory=lambda: frozenset(EXTRACTOR_DEFAULT["skip_tags"]))
    title_template: str = "Question {number}"
    body_not_found: str = "[question text not found]"
    question_failed: str = "[question could not be extracted]"
    formula_no_data: str = "[Formula Image - No Data]"
    options_header: str = "Options:"
    option_marker: str = "- "
    separator: str = "\n\n---\n\n"
    converter_unavailable: str = "[Error] Math converter is not available; formulas could not be converted."

    @property
    def formula_selector(self) -> str:
        """数式画像を探すためのCSSセレクタ"""
        selectors = [f"{self.formula_tag}.{self.formula_class}"]
        if self.formula_role:
            selectors.append(f'{self.formula_tag}[role="{self.formula_role}"]')
        return ", ".join(selectors)

    @classmethod
    def from_config(cls, config: Dict) -> "ExtractorSettings":
        """JSON設定 (EXTRACTOR_DEFAULT と同じ形) から生成します。欠けたキーはデフォルト値を使います。"""
        selectors = {**EXTRACTOR_DEFAULT["selectors"], **config.get("selectors", {})}
        formula = {**EXTRACTOR_DEFAULT["formula"], **config.get("formula", {})}
        text = {**EXTRACTOR_DEFAULT["text"], **config.get("text", {})}
        return cls(
            question_selector=selectors["question"],
            title_selectors=_as_tuple(selectors["title"]),
            number_selector=selectors["number"],
            body_selectors=_as_tuple(selectors["body"]),
            option_selector=selectors["options"],
            formula_tag=formula["tag"],
            formula_class=formula["class"],
            formula_role=formula["role"],
            markup_attribute=formula["markup_attribute"],
            label_attribute=formula["label_attribute"],
            delimiter=formula["delimiter"],
            block_tags=frozenset(config.get("block_tags", EXTRACTOR_DEFAULT["block_tags"])),
            skip_tags=frozenset(config.get("skip_tags", EXTRACTOR_DEFAULT["skip_tags"])),
            **{key: value for key, value in text.items() if key in EXTRACTOR_DEFAULT["text"]},
        )


DEFAULT_SETTINGS = ExtractorSettings.from_config(EXTRACTOR_CONFIG)
