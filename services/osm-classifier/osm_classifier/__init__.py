"""Rule-based functional classification of OpenStreetMap features."""

from .classifier import ClassificationEngine, ClassificationResult, classify
from .errors import ClassificationError, ConfigurationError, SchemaError
from .extractor import extract_tags, tag_frequencies
from .rules_loader import Category, Classification, TagRule, load_builtin, load_classification
from .value_spec import MatchAll, MatchAllExcept, MatchSet, parse_value_spec

__all__ = [
    "Category",
    "Classification",
    "ClassificationEngine",
    "ClassificationError",
    "ClassificationResult",
    "ConfigurationError",
    "MatchAll",
    "MatchAllExcept",
    "MatchSet",
    "SchemaError",
    "TagRule",
    "classify",
    "extract_tags",
    "load_builtin",
    "load_classification",
    "parse_value_spec",
    "tag_frequencies",
]
