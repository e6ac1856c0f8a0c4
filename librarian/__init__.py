"""Librarian module: the workflow template knowledge base."""

from .template_store import TemplateStore, load_default_store, RECOMMENDATION_LIMIT
from .catalog import BUILTIN_TEMPLATES

__all__ = ["TemplateStore", "load_default_store", "RECOMMENDATION_LIMIT", "BUILTIN_TEMPLATES"]
