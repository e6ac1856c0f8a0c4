"""Shared fixtures for flowsmith tests."""

import itertools

import pytest

from blueprint import BlueprintSynthesizer, FixedTimeSavingsEstimator
from builder import GraphBuilder
from librarian import load_default_store
from router import RequirementClassifier


@pytest.fixture
def store():
    """A fresh store holding the built-in catalog."""
    return load_default_store()


@pytest.fixture
def id_factory():
    """Deterministic ids: id-1, id-2, ..."""
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def classifier(id_factory):
    return RequirementClassifier(id_factory=id_factory)


@pytest.fixture
def fixed_estimator():
    return FixedTimeSavingsEstimator(20)


@pytest.fixture
def synthesizer(id_factory, fixed_estimator):
    return BlueprintSynthesizer(id_factory=id_factory, estimator=fixed_estimator)


@pytest.fixture
def builder(id_factory):
    return GraphBuilder(id_factory=id_factory)


@pytest.fixture
def ecommerce_requirements():
    return [
        {"category": "business-process", "text": "automate e-commerce order processing"},
        {"category": "integrations", "text": "connect to a payment API"},
    ]


@pytest.fixture
def complete_requirements():
    """One record for each of the four critical categories."""
    return [
        {"category": "business-process", "text": "Automate lead follow-up for the sales team"},
        {"category": "technical-specs", "text": "Runs on our self-hosted n8n instance"},
        {"category": "integrations", "text": "Sync contacts to HubSpot"},
        {"category": "scale-volume", "text": "About hundreds of leads per day"},
    ]
