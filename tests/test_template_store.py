"""Tests for the template store: loading, indexing and lookups."""

import json

import pytest

from contracts import TemplateCategory, WorkflowTemplate
from errors import PreconditionError, TemplateLoadError
from librarian import BUILTIN_TEMPLATES, TemplateStore, load_default_store


def make_record(template_id, **overrides):
    record = {
        "id": template_id,
        "name": f"Template {template_id}",
        "description": "A test template",
        "category": "e-commerce",
        "tags": ["test"],
        "popularity": 50,
    }
    record.update(overrides)
    return record


class TestLoading:
    """Test loading records into the store."""

    def test_builtin_catalog_loads(self, store):
        """Test every built-in template validates."""
        assert len(store) == len(BUILTIN_TEMPLATES) == 7
        assert "ecommerce-order-processing" in store

    def test_load_accepts_models_and_dicts(self):
        """Test mixed WorkflowTemplate and dict records."""
        model = WorkflowTemplate(id="m1", name="Model", category="crm-sales")
        store = TemplateStore([model, make_record("d1")])
        assert [t.id for t in store.all()] == ["m1", "d1"]

    def test_load_rejects_non_list(self):
        """Test a single dict is not a template list."""
        with pytest.raises(PreconditionError):
            TemplateStore().load(make_record("x"))

    def test_load_rejects_non_dict_items(self):
        """Test a string item is a caller error, not a skip."""
        with pytest.raises(PreconditionError):
            TemplateStore().load([make_record("a"), "not a template"])

    def test_invalid_records_are_skipped(self):
        """Test records failing validation are dropped."""
        store = TemplateStore([
            make_record("good"),
            make_record("bad", category="not-a-category"),
            make_record("also-bad", popularity=500),
        ])
        assert [t.id for t in store.all()] == ["good"]

    def test_duplicate_ids_keep_first(self):
        """Test the first record with an id wins."""
        store = TemplateStore([make_record("x", name="First"), make_record("x", name="Second")])
        assert len(store) == 1
        assert store.get_by_id("x").name == "First"

    def test_load_replaces_contents(self):
        """Test load rebuilds every index from scratch."""
        store = TemplateStore([make_record("a", tags=["old"])])
        store.load([make_record("b", tags=["new"])])
        assert store.get_by_id("a") is None
        assert store.get_by_tag("old") == []
        assert [t.id for t in store.get_by_tag("new")] == ["b"]

    def test_load_default_store_is_fresh(self):
        """Test separate calls return independent stores."""
        first = load_default_store()
        second = load_default_store()
        first.load([])
        assert len(first) == 0
        assert len(second) == 7


class TestLoadDirectory:
    """Test merging template JSON files."""

    def test_merges_after_builtins(self, tmp_path):
        """Test directory templates are appended in file-name order."""
        (tmp_path / "b.json").write_text(json.dumps(make_record("from-b")))
        (tmp_path / "a.json").write_text(json.dumps([make_record("from-a1"), make_record("from-a2")]))

        store = load_default_store(tmp_path)

        assert len(store) == 10
        assert [t.id for t in store.all()[-3:]] == ["from-a1", "from-a2", "from-b"]

    def test_missing_directory(self, tmp_path):
        """Test a missing directory raises TemplateLoadError."""
        with pytest.raises(TemplateLoadError):
            TemplateStore.from_directory(tmp_path / "nope")

    def test_invalid_json(self, tmp_path):
        """Test an unreadable file raises TemplateLoadError."""
        (tmp_path / "broken.json").write_text("{not json")
        with pytest.raises(TemplateLoadError):
            TemplateStore.from_directory(tmp_path)

    def test_wrong_top_level_type(self, tmp_path):
        """Test a JSON scalar is rejected."""
        (tmp_path / "scalar.json").write_text("42")
        with pytest.raises(TemplateLoadError):
            TemplateStore.from_directory(tmp_path)


class TestLookups:
    """Test index lookups."""

    def test_get_by_id(self, store):
        """Test id lookup and miss."""
        assert store.get_by_id("lead-scoring-qualification").category == TemplateCategory.CRM_SALES
        assert store.get_by_id("missing") is None

    def test_get_by_category(self, store):
        """Test category lookup accepts the enum or its value."""
        assert [t.id for t in store.get_by_category("crm-sales")] == ["lead-scoring-qualification"]
        assert store.get_by_category(TemplateCategory.E_COMMERCE)[0].id == "ecommerce-order-processing"
        assert store.get_by_category("hr-recruiting") == []
        assert store.get_by_category("bogus") == []

    def test_get_by_tag(self, store):
        """Test tag lookup keeps load order."""
        assert [t.id for t in store.get_by_tag("automation")] == [
            "ecommerce-order-processing",
            "social-media-content-pipeline",
            "invoice-processing-automation",
        ]

    def test_get_by_integration_case_insensitive(self, store):
        """Test integration lookup ignores case."""
        assert [t.id for t in store.get_by_integration("STRIPE")] == ["ecommerce-order-processing"]
        assert [t.id for t in store.get_by_integration("openai")] == [
            "lead-scoring-qualification",
            "social-media-content-pipeline",
        ]

    def test_get_popular(self, store):
        """Test top-n by popularity without reordering the store."""
        before = [t.id for t in store.all()]
        popular = store.get_popular(3)
        assert [t.id for t in popular] == [
            "ecommerce-order-processing",
            "social-media-content-pipeline",
            "ai-customer-support",
        ]
        assert [t.id for t in store.all()] == before

    def test_get_popular_ties_keep_load_order(self):
        """Test equal popularity keeps insertion order."""
        store = TemplateStore([make_record("a"), make_record("b"), make_record("c", popularity=60)])
        assert [t.id for t in store.get_popular()] == ["c", "a", "b"]

    def test_stats(self, store):
        """Test the summary counts."""
        summary = store.stats()
        assert summary.total == 7
        assert summary.categories == 7
        assert summary.avg_popularity == pytest.approx(626 / 7)

    def test_stats_empty_store(self):
        """Test an empty store reports zero average."""
        summary = TemplateStore().stats()
        assert summary.total == 0
        assert summary.avg_popularity == 0.0

    def test_iteration_is_a_snapshot(self, store):
        """Test iterating while reloading is safe."""
        ids = []
        for template in store:
            ids.append(template.id)
            store.load([])
        assert len(ids) == 7
