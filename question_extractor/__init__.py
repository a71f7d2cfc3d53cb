from .assembler import (
    QuestionAssembler,
    QuestionRecord,
    assemble_all,
    extract_from_html,
    first_available,
)
from .config import ExtractorSettings, DEFAULT_SETTINGS
from .content_node import ContentNode, element, text_node, is_formula_node, parse_html
from .exceptions import ExtractionError, PageLoadError
from .formula_converter import convert_formula, load_math_converter, PandocMathConverter
from .text_normalizer import normalize
from .tree_extractor import extract
