"""Pydantic contracts for the flowsmith system.

Every hand-off between the store, classifier, synthesizer and graph builder
is typed through these contracts.
"""

from .template_contracts import (
    TemplateCategory,
    Difficulty,
    ConnectionType,
    IntegrationType,
    AuthMethod,
    TemplateNode,
    TemplateConnection,
    TemplateVariable,
    TemplateIntegration,
    WorkflowTemplate,
    SearchFilters,
    TemplateStats,
)

from .requirement_contracts import (
    RequirementCategory,
    Priority,
    ConversationPhase,
    Requirement,
    MessageRole,
    Message,
    ConversationContext,
    IntentClassification,
)

from .blueprint_contracts import (
    ProjectType,
    Complexity,
    Timeline,
    Budget,
    RiskTolerance,
    DataVolume,
    RiskLevel,
    RiskCategory,
    ComponentType,
    BlueprintConfig,
    RequirementAnalysis,
    ArchitectureTemplate,
    Component,
    DataFlowStep,
    IntegrationSpec,
    Architecture,
    Task,
    ImplementationPhase,
    ImplementationPlan,
    Risk,
    RiskAssessment,
    SuccessMetric,
    BusinessCase,
    DevelopmentCost,
    RecurringCost,
    TotalCost,
    CostEstimation,
    ROIProjection,
    Blueprint,
)

from .graph_contracts import (
    TRIGGER_NODE_TYPES,
    SecurityLevel,
    ScalabilityPattern,
    GraphOptions,
    GraphNode,
    Edge,
    WorkflowGraph,
)

__all__ = [
    # Templates
    "TemplateCategory",
    "Difficulty",
    "ConnectionType",
    "IntegrationType",
    "AuthMethod",
    "TemplateNode",
    "TemplateConnection",
    "TemplateVariable",
    "TemplateIntegration",
    "WorkflowTemplate",
    "SearchFilters",
    "TemplateStats",
    # Requirements / conversation
    "RequirementCategory",
    "Priority",
    "ConversationPhase",
    "Requirement",
    "MessageRole",
    "Message",
    "ConversationContext",
    "IntentClassification",
    # Blueprint
    "ProjectType",
    "Complexity",
    "Timeline",
    "Budget",
    "RiskTolerance",
    "DataVolume",
    "RiskLevel",
    "RiskCategory",
    "ComponentType",
    "BlueprintConfig",
    "RequirementAnalysis",
    "ArchitectureTemplate",
    "Component",
    "DataFlowStep",
    "IntegrationSpec",
    "Architecture",
    "Task",
    "ImplementationPhase",
    "ImplementationPlan",
    "Risk",
    "RiskAssessment",
    "SuccessMetric",
    "BusinessCase",
    "DevelopmentCost",
    "RecurringCost",
    "TotalCost",
    "CostEstimation",
    "ROIProjection",
    "Blueprint",
    # Graphs
    "TRIGGER_NODE_TYPES",
    "SecurityLevel",
    "ScalabilityPattern",
    "GraphOptions",
    "GraphNode",
    "Edge",
    "WorkflowGraph",
]
