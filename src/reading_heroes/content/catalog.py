"""Content catalog: the immutable set of passages loaded at startup."""

import json
from collections.abc import Iterable, Iterator
from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from reading_heroes.errors import CatalogLoadError, ContentValidationError
from reading_heroes.models.content import Passage, Question

logger = structlog.get_logger()


class Catalog:
    """Ordered, read-only collection of passages.

    Args:
        passages: Validated passages. Passage and question ids must be unique.
    """

    def __init__(self, passages: Iterable[Passage]):
        self._passages: tuple[Passage, ...] = tuple(passages)
        if not self._passages:
            raise CatalogLoadError("catalog contains no passages")
        self._by_id: dict[str, Passage] = {}
        seen_questions: set[str] = set()
        for passage in self._passages:
            if passage.id in self._by_id:
                raise ContentValidationError(f"duplicate passage id {passage.id!r}")
            self._by_id[passage.id] = passage
            for q in passage.questions:
                if q.id in seen_questions:
                    raise ContentValidationError(f"duplicate question id {q.id!r}")
                seen_questions.add(q.id)

    def __len__(self) -> int:
        return len(self._passages)

    def __iter__(self) -> Iterator[Passage]:
        return iter(self._passages)

    @property
    def passages(self) -> tuple[Passage, ...]:
        return self._passages

    def get(self, passage_id: str) -> Passage | None:
        return self._by_id.get(passage_id)

    def questions(self) -> Iterator[tuple[Passage, Question]]:
        """Every question paired with its owning passage, in catalog order."""
        for passage in self._passages:
            for q in passage.questions:
                yield passage, q

    def question_count(self, skill_id: int | None = None) -> int:
        return sum(1 for _, q in self.questions() if skill_id is None or q.skill_id == skill_id)

    @classmethod
    def from_dict(cls, data: dict) -> "Catalog":
        """Build a catalog from ``{"texts": [...]}`` or ``{"passages": [...]}``."""
        raw = data.get("passages", data.get("texts"))
        if not isinstance(raw, list):
            raise CatalogLoadError("catalog data has no passage list")
        try:
            passages = [Passage.model_validate(item) for item in raw]
        except ValidationError as e:
            raise ContentValidationError(f"malformed catalog content: {e}") from e
        return cls(passages)


def load_catalog(path: Path) -> Catalog:
    """Load a catalog from a YAML or JSON file.

    Raises:
        CatalogLoadError: The file is missing, unreadable or has no passages.
        ContentValidationError: A passage or question is malformed.
    """
    path = Path(path)
    if not path.exists():
        raise CatalogLoadError(f"catalog file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise CatalogLoadError(f"could not read catalog {path}: {e}") from e
    if not isinstance(data, dict):
        raise CatalogLoadError(f"catalog {path} is not a mapping")

    catalog = Catalog.from_dict(data)
    logger.info(
        "catalog_loaded",
        path=str(path),
        passages=len(catalog),
        questions=catalog.question_count(),
    )
    return catalog
