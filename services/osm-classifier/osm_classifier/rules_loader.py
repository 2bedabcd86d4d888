"""Load and validate classification tables."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

import yaml

from .errors import ConfigurationError
from .value_spec import MatchAll, MatchAllExcept, MatchSet, ValueSpec, parse_value_spec

LOGGER = logging.getLogger(__name__)

BUILTIN_DIR = Path(__file__).with_name("classifications")
INFO_TAGS_FILE = "line_info_tags.yml"


@dataclass(frozen=True)
class TagRule:
    tag: str
    spec: ValueSpec

    def __post_init__(self) -> None:
        if not isinstance(self.tag, str) or not self.tag:
            raise ConfigurationError(f"tag rules need a non-empty tag name, got {self.tag!r}")
        if not isinstance(self.spec, (MatchAll, MatchSet, MatchAllExcept)):
            raise ConfigurationError(f"tag '{self.tag}' has no valid value specification: {self.spec!r}")


@dataclass(frozen=True)
class Category:
    """A named group of tag rules. Lower ``priority`` values are matched first."""

    name: str
    rules: Tuple[TagRule, ...]
    priority: int

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ConfigurationError(f"categories need a non-empty name, got {self.name!r}")
        if not self.rules:
            raise ConfigurationError(f"category '{self.name}' has no tags")
        if any(not isinstance(rule, TagRule) for rule in self.rules):
            raise ConfigurationError(f"category '{self.name}' rules must be TagRule instances")


@dataclass(frozen=True)
class Classification:
    categories: Tuple[Category, ...]

    def __post_init__(self) -> None:
        if not self.categories:
            raise ConfigurationError("classification must contain at least one category")
        if any(not isinstance(category, Category) for category in self.categories):
            raise ConfigurationError("classification entries must be Category instances")

    def __len__(self) -> int:
        return len(self.categories)

    def __iter__(self) -> Iterator[Category]:
        return iter(self.ordered())

    @property
    def names(self) -> List[str]:
        return [category.name for category in self.ordered()]

    def ordered(self) -> List[Category]:
        """Categories by ascending priority; equal priorities keep their position."""
        return sorted(self.categories, key=lambda category: category.priority)

    def reprioritize(self, priorities: Mapping[str, int]) -> "Classification":
        """Return a copy with new priorities for the named categories."""
        unknown = set(priorities) - {category.name for category in self.categories}
        if unknown:
            raise ConfigurationError(f"unknown categories: {sorted(unknown)}")
        categories = tuple(
            replace(category, priority=int(priorities[category.name]))
            if category.name in priorities
            else category
            for category in self.categories
        )
        return Classification(categories)

    def reorder(self, names: Sequence[str]) -> "Classification":
        """Move the named categories to the front, in the given order.

        Categories not named keep their relative order after them. Priorities
        are renumbered from zero.
        """
        current = self.ordered()
        known = {category.name for category in current}
        unknown = [name for name in names if name not in known]
        if unknown:
            raise ConfigurationError(f"unknown categories: {unknown}")
        front: List[Category] = []
        for name in dict.fromkeys(names):
            front.extend(category for category in current if category.name == name)
        rest = [category for category in current if category.name not in set(names)]
        return Classification(
            tuple(replace(category, priority=index) for index, category in enumerate(front + rest))
        )

    def to_mapping(self) -> Dict[str, Any]:
        """Serialise to the YAML shape. Duplicate names need the list form and are merged here."""
        raw: Dict[str, Any] = {}
        for category in self.ordered():
            body = raw.setdefault(category.name, {})
            for rule in category.rules:
                body[rule.tag] = rule.spec.to_raw()
        return raw

    @classmethod
    def from_mapping(cls, raw: Any) -> "Classification":
        """Validate a parsed classification table.

        ``raw`` maps category names to mappings of tag names to value
        specifications. A list of single-entry mappings may stand in for
        either level when names repeat.
        """
        entries = _entries(raw, "classification")
        if not entries:
            raise ConfigurationError("classification must contain at least one category")
        categories: List[Category] = []
        for position, (name, body) in enumerate(entries):
            if not isinstance(name, str) or not name:
                raise ConfigurationError(f"category #{position + 1} needs a non-empty name, got {name!r}")
            categories.append(Category(name=name, rules=_parse_rules(name, body), priority=position))
        return cls(tuple(categories))


def _entries(raw: Any, what: str) -> List[Tuple[Any, Any]]:
    if isinstance(raw, Mapping):
        return list(raw.items())
    if isinstance(raw, list):
        entries = []
        for item in raw:
            if not isinstance(item, Mapping) or len(item) != 1:
                raise ConfigurationError(f"{what} list entries must be single-key mappings, got {item!r}")
            entries.extend(item.items())
        return entries
    raise ConfigurationError(f"{what} must be a mapping, got {type(raw).__name__}")


def _parse_rules(category: str, body: Any) -> Tuple[TagRule, ...]:
    entries = _entries(body, f"category '{category}'")
    if not entries:
        raise ConfigurationError(f"category '{category}' has no tags")
    rules = []
    for tag, raw_spec in entries:
        if not isinstance(tag, str) or not tag:
            raise ConfigurationError(f"category '{category}' has an invalid tag name {tag!r}")
        try:
            spec = parse_value_spec(raw_spec)
        except ConfigurationError as exc:
            raise ConfigurationError(f"category '{category}', tag '{tag}': {exc}") from exc
        rules.append(TagRule(tag=tag, spec=spec))
    return tuple(rules)


def _read_yaml(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"Classification file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        try:
            return yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"{path} is not valid YAML: {exc}") from exc


def load_classification(path: Union[str, Path]) -> Classification:
    """Load a classification from YAML, either bare or under a ``categories`` key."""
    content = _read_yaml(Path(path))
    if not content:
        raise ConfigurationError(f"Classification file {path} is empty")
    if isinstance(content, Mapping) and "categories" in content:
        content = content["categories"]
    classification = Classification.from_mapping(content)
    LOGGER.info("Loaded %s categories from %s", len(classification), path)
    return classification


def builtin_names() -> List[str]:
    return sorted(
        path.stem for path in BUILTIN_DIR.glob("*.yml") if path.name != INFO_TAGS_FILE
    )


def load_builtin(name: str) -> Classification:
    """Load a classification bundled with the package, e.g. ``point_polygon`` or ``line``."""
    if name not in builtin_names():
        raise ConfigurationError(f"Unknown built-in classification '{name}'; available: {builtin_names()}")
    return load_classification(BUILTIN_DIR / f"{name}.yml")


def resolve_classification(name_or_path: Union[str, Path]) -> Classification:
    path = Path(name_or_path)
    if path.exists():
        return load_classification(path)
    if str(name_or_path) in builtin_names():
        return load_builtin(str(name_or_path))
    raise FileNotFoundError(f"Classification not found: {name_or_path}")


def load_info_tags(group: Optional[str] = None) -> Union[List[str], Dict[str, List[str]]]:
    """Tags worth extracting for line features, per line category.

    Each group is the shared leading tags, then the group's own tags, then the
    shared trailing tags, without repeats.
    """
    raw = _read_yaml(BUILTIN_DIR / INFO_TAGS_FILE) or {}
    prefix = raw.get("common_prefix") or []
    suffix = raw.get("common_suffix") or []
    groups = {
        name: list(dict.fromkeys([*prefix, *(tags or []), *suffix]))
        for name, tags in (raw.get("groups") or {}).items()
    }
    if group is None:
        return groups
    if group not in groups:
        raise ConfigurationError(f"Unknown info tag group '{group}'; available: {sorted(groups)}")
    return groups[group]


__all__ = [
    "Category",
    "Classification",
    "TagRule",
    "builtin_names",
    "load_builtin",
    "load_classification",
    "load_info_tags",
    "resolve_classification",
]
