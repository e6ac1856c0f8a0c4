"""Template Store: indexed, read-only knowledge base of workflow templates.

The store is an explicitly constructed object. Build one per process (or per
test) and share it; nothing in it changes between ``load`` calls, so concurrent
readers need no locking.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from loguru import logger
from pydantic import ValidationError

from contracts import (
    Difficulty,
    SearchFilters,
    TemplateCategory,
    TemplateStats,
    WorkflowTemplate,
)
from errors import PreconditionError, TemplateLoadError, require_list
from librarian.catalog import BUILTIN_TEMPLATES


RECOMMENDATION_LIMIT = 10

# Recommend weights: a keyword hit in the name outranks description, which outranks tags
NAME_WEIGHT = 3
DESCRIPTION_WEIGHT = 2
TAG_WEIGHT = 1

TemplateRecord = Union[WorkflowTemplate, Dict[str, Any]]


class TemplateStore:
    """Holds WorkflowTemplate records and three insertion-ordered indexes.

    Indexes (rebuilt fully on every ``load``):
    - category -> templates
    - tag -> templates
    - integration service name (case-folded) -> templates
    """

    def __init__(self, templates: Optional[Iterable[TemplateRecord]] = None):
        """Initialize the store.

        Args:
            templates: Optional initial records (WorkflowTemplate or dicts).
        """
        self._templates: List[WorkflowTemplate] = []
        self._by_id: Dict[str, WorkflowTemplate] = {}
        self._by_category: Dict[TemplateCategory, List[WorkflowTemplate]] = {}
        self._by_tag: Dict[str, List[WorkflowTemplate]] = {}
        self._by_integration: Dict[str, List[WorkflowTemplate]] = {}
        if templates is not None:
            self.load(templates)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, templates: Iterable[TemplateRecord]) -> int:
        """Replace the store contents and rebuild every index.

        Dict records that fail validation are skipped with a warning. Later
        duplicates of an id are skipped; the first occurrence wins.

        Args:
            templates: List of WorkflowTemplate instances or template dicts.

        Returns:
            Number of templates held after loading.

        Raises:
            PreconditionError: If ``templates`` is not a list, or an item is
                neither a WorkflowTemplate nor a dict.
        """
        records = require_list(templates, "templates")

        accepted: List[WorkflowTemplate] = []
        seen: set = set()
        for record in records:
            template = self._coerce(record)
            if template is None:
                continue
            if template.id in seen:
                logger.warning(f"Duplicate template id '{template.id}' skipped")
                continue
            seen.add(template.id)
            accepted.append(template)

        self._templates = accepted
        self._build_indexes()
        logger.info(f"Template store loaded {len(self._templates)} templates")
        return len(self._templates)

    @staticmethod
    def _coerce(record: Any) -> Optional[WorkflowTemplate]:
        if isinstance(record, WorkflowTemplate):
            return record
        if not isinstance(record, dict):
            raise PreconditionError(
                f"template records must be WorkflowTemplate or dict, got {type(record).__name__}"
            )
        try:
            return WorkflowTemplate.model_validate(record)
        except ValidationError as e:
            logger.warning(
                f"Skipping malformed template '{record.get('id', '?')}': {e.error_count()} validation error(s)"
            )
            return None

    def _build_indexes(self) -> None:
        self._by_id = {}
        self._by_category = {}
        self._by_tag = {}
        self._by_integration = {}

        for template in self._templates:
            self._by_id[template.id] = template
            self._by_category.setdefault(template.category, []).append(template)
            for tag in template.tags:
                self._by_tag.setdefault(tag, []).append(template)
            for service in dict.fromkeys(i.service.casefold() for i in template.integrations):
                self._by_integration.setdefault(service, []).append(template)

    def load_directory(self, directory: Union[str, Path]) -> int:
        """Merge ``*.json`` template files after the current contents.

        Files are read in name order; each holds a template object or a list
        of them.

        Args:
            directory: Directory to scan (not recursive).

        Returns:
            Number of templates held after loading.

        Raises:
            TemplateLoadError: If the directory is missing, or a file is not
                valid JSON or not an object/list.
        """
        path = Path(directory)
        if not path.is_dir():
            raise TemplateLoadError(f"Templates directory not found: {path}")

        extra: List[Any] = []
        for json_file in sorted(path.glob("*.json")):
            try:
                data = json.loads(json_file.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                raise TemplateLoadError(f"Could not read template file {json_file}: {e}") from e

            if isinstance(data, dict):
                extra.append(data)
            elif isinstance(data, list):
                extra.extend(data)
            else:
                raise TemplateLoadError(
                    f"{json_file} must contain a template object or a list of templates"
                )
            logger.debug(f"Read template file {json_file.name}")

        return self.load(self._templates + extra)

    @classmethod
    def from_directory(cls, directory: Union[str, Path]) -> "TemplateStore":
        """Build a store holding only the templates found in ``directory``."""
        store = cls()
        store.load_directory(directory)
        return store

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_by_id(self, template_id: str) -> Optional[WorkflowTemplate]:
        return self._by_id.get(template_id)

    def get_by_category(self, category: Union[TemplateCategory, str]) -> List[WorkflowTemplate]:
        """Templates of ``category`` in load order (empty for unknown values)."""
        try:
            key = TemplateCategory(category)
        except ValueError:
            return []
        return list(self._by_category.get(key, []))

    def get_by_tag(self, tag: str) -> List[WorkflowTemplate]:
        return list(self._by_tag.get(tag, []))

    def get_by_integration(self, service: str) -> List[WorkflowTemplate]:
        """Templates declaring ``service`` (case-insensitive)."""
        return list(self._by_integration.get(service.casefold(), []))

    def get_popular(self, n: int = 10) -> List[WorkflowTemplate]:
        """Top ``n`` by popularity; ties keep load order. Never reorders the store."""
        return sorted(self._templates, key=lambda t: -t.popularity)[:max(n, 0)]

    def categories(self) -> List[TemplateCategory]:
        """Categories present, in first-seen order."""
        return list(self._by_category.keys())

    def all(self) -> List[WorkflowTemplate]:
        return list(self._templates)

    def stats(self) -> TemplateStats:
        total = len(self._templates)
        avg = sum(t.popularity for t in self._templates) / total if total else 0.0
        return TemplateStats(
            total=total,
            categories=len(self._by_category),
            tags=len(self._by_tag),
            integrations=len(self._by_integration),
            avg_popularity=avg,
        )

    def __len__(self) -> int:
        return len(self._templates)

    def __iter__(self) -> Iterator[WorkflowTemplate]:
        return iter(list(self._templates))

    def __contains__(self, template_id: object) -> bool:
        if isinstance(template_id, WorkflowTemplate):
            template_id = template_id.id
        return template_id in self._by_id

    # ------------------------------------------------------------------
    # Search & recommend
    # ------------------------------------------------------------------

    def search(self, query: str = "", filters: Optional[SearchFilters] = None) -> List[WorkflowTemplate]:
        """Free-text search with conjunctive token semantics.

        Every whitespace token of the case-folded query must occur as a
        substring of the name, the description or any tag. Filters are then
        applied as further conjunctions. Results are ordered by popularity
        (descending, stable).

        Args:
            query: Free text. Blank matches every template.
            filters: Optional structured filters.

        Returns:
            Matching templates.
        """
        if not isinstance(query, str):
            raise PreconditionError(f"query must be a string, got {type(query).__name__}")

        tokens = [t for t in query.casefold().split() if t]
        results = [t for t in self._templates if all(_token_hit(t, tok) for tok in tokens)]

        if filters is not None:
            results = _apply_filters(results, filters)

        return sorted(results, key=lambda t: -t.popularity)

    def recommend(self, requirement_texts: List[str], limit: int = RECOMMENDATION_LIMIT) -> List[WorkflowTemplate]:
        """Rank templates by weighted keyword overlap with requirement texts.

        Each text, case-folded, is one keyword. Per keyword a template scores
        3 for a name hit, 2 for a description hit and 1 for a tag hit.
        Zero-score templates are dropped; the rest are sorted by score
        (descending, stable) and truncated to at most 10.

        Args:
            requirement_texts: Requirement answer texts.
            limit: Optional smaller cut-off (capped at 10).

        Returns:
            Recommended templates, best first.

        Raises:
            PreconditionError: If ``requirement_texts`` is not a list.
        """
        texts = require_list(requirement_texts, "requirement_texts")
        keywords = [str(t).casefold() for t in texts if str(t).strip()]

        scored = []
        for template in self._templates:
            score = sum(_keyword_score(template, kw) for kw in keywords)
            if score > 0:
                scored.append((score, template))

        scored.sort(key=lambda pair: -pair[0])
        cutoff = min(max(limit, 0), RECOMMENDATION_LIMIT)
        return [template for _, template in scored[:cutoff]]


def _token_hit(template: WorkflowTemplate, token: str) -> bool:
    return (
        token in template.name.casefold()
        or token in template.description.casefold()
        or any(token in tag.casefold() for tag in template.tags)
    )


def _keyword_score(template: WorkflowTemplate, keyword: str) -> int:
    score = 0
    if keyword in template.name.casefold():
        score += NAME_WEIGHT
    if keyword in template.description.casefold():
        score += DESCRIPTION_WEIGHT
    if any(keyword in tag.casefold() for tag in template.tags):
        score += TAG_WEIGHT
    return score


def _apply_filters(templates: List[WorkflowTemplate], filters: SearchFilters) -> List[WorkflowTemplate]:
    results = templates
    if filters.category is not None:
        results = [t for t in results if t.category == filters.category]
    if filters.difficulty is not None:
        results = [t for t in results if t.difficulty == Difficulty(filters.difficulty)]
    if filters.tags:
        wanted = set(filters.tags)
        results = [t for t in results if wanted.intersection(t.tags)]
    if filters.integration:
        service = filters.integration.casefold()
        results = [
            t for t in results
            if any(i.service.casefold() == service for i in t.integrations)
        ]
    return results


def load_default_store(templates_dir: Optional[Union[str, Path]] = None) -> TemplateStore:
    """Build a new store from the built-in catalog, plus ``templates_dir`` if given.

    Each call returns a fresh, independent store.
    """
    store = TemplateStore(BUILTIN_TEMPLATES)
    if templates_dir:
        store.load_directory(templates_dir)
    return store
