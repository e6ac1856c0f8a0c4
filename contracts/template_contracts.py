"""Template contracts for the reusable workflow knowledge base."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional, Tuple
from enum import Enum


class TemplateCategory(str, Enum):
    """Closed set of business domains a template belongs to."""
    E_COMMERCE = "e-commerce"
    CRM_SALES = "crm-sales"
    MARKETING_AUTOMATION = "marketing-automation"
    DATA_PROCESSING = "data-processing"
    CUSTOMER_SUPPORT = "customer-support"
    FINANCE_ACCOUNTING = "finance-accounting"
    HR_RECRUITING = "hr-recruiting"
    SOCIAL_MEDIA = "social-media"
    CONTENT_MANAGEMENT = "content-management"
    ANALYTICS_REPORTING = "analytics-reporting"
    COMMUNICATION = "communication"
    PROJECT_MANAGEMENT = "project-management"
    SECURITY_MONITORING = "security-monitoring"
    AI_ML_AUTOMATION = "ai-ml-automation"
    API_WEBHOOKS = "api-webhooks"
    DATA_TRANSFORMATION = "data-transformation"


class Difficulty(str, Enum):
    """How hard a template is to adapt."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"

    @property
    def rank(self) -> int:
        """1 for beginner up to 4 for expert."""
        return list(Difficulty).index(self) + 1


class ConnectionType(str, Enum):
    """Output channel of a template connection."""
    MAIN = "main"
    ERROR = "error"


class IntegrationType(str, Enum):
    """Kind of external dependency a template declares."""
    API = "api"
    DATABASE = "database"
    WEBHOOK = "webhook"
    AUTH = "auth"
    STORAGE = "storage"


class AuthMethod(str, Enum):
    """How a template authenticates against an integration."""
    API_KEY = "api_key"
    OAUTH = "oauth"
    BASIC = "basic"
    NONE = "none"


class TemplateNode(BaseModel):
    """A single pre-authored node inside a template."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(...)
    name: str = Field(...)
    type: str = Field(..., description="Engine node type, e.g. n8n-nodes-base.webhook")
    description: str = Field("")
    parameters: Dict[str, Any] = Field(default_factory=dict)
    position: Tuple[int, int] = Field((0, 0), description="Canvas position (x, y)")
    notes: Optional[str] = Field(None)


class TemplateConnection(BaseModel):
    """A directed edge between two template nodes (by node id)."""
    model_config = ConfigDict(frozen=True)

    source: str = Field(...)
    target: str = Field(...)
    source_index: int = Field(0, ge=0)
    target_index: int = Field(0, ge=0)
    type: ConnectionType = Field(ConnectionType.MAIN)


class TemplateVariable(BaseModel):
    """A variable the template expects to be configured before use."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(...)
    description: str = Field("")
    type: str = Field("string", description="string, number, boolean or object")
    required: bool = Field(True)
    default: Optional[Any] = Field(None)
    example: Optional[Any] = Field(None)


class TemplateIntegration(BaseModel):
    """An external service the template talks to."""
    model_config = ConfigDict(frozen=True)

    service: str = Field(..., description="Service name, e.g. Stripe")
    type: IntegrationType = Field(IntegrationType.API)
    auth_method: AuthMethod = Field(AuthMethod.API_KEY)
    rate_limit: Optional[int] = Field(None, ge=0, description="Requests per minute")
    documentation: str = Field("")


class WorkflowTemplate(BaseModel):
    """A reusable, pre-authored automation pattern. Immutable once loaded."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: str = Field("")
    category: TemplateCategory = Field(...)
    subcategory: str = Field("")
    tags: Tuple[str, ...] = Field(default_factory=tuple)
    difficulty: Difficulty = Field(Difficulty.INTERMEDIATE)
    estimated_time: str = Field("")
    nodes: Tuple[TemplateNode, ...] = Field(default_factory=tuple)
    connections: Tuple[TemplateConnection, ...] = Field(default_factory=tuple)
    variables: Tuple[TemplateVariable, ...] = Field(default_factory=tuple)
    integrations: Tuple[TemplateIntegration, ...] = Field(default_factory=tuple)
    use_case: str = Field("")
    business_value: str = Field("")
    requirements: Tuple[str, ...] = Field(default_factory=tuple)
    popularity: int = Field(0, ge=0, le=100)
    last_updated: Optional[str] = Field(None, description="ISO date of the last revision")

    def service_names(self) -> List[str]:
        """Names of every declared integration, in declaration order."""
        return [i.service for i in self.integrations]


class SearchFilters(BaseModel):
    """Structured filters applied after the free-text match."""
    category: Optional[TemplateCategory] = Field(None)
    difficulty: Optional[Difficulty] = Field(None)
    tags: List[str] = Field(default_factory=list, description="Template must carry at least one of these")
    integration: Optional[str] = Field(None, description="Service name, matched case-insensitively")


class TemplateStats(BaseModel):
    """Summary of what a template store holds."""
    total: int = Field(..., ge=0)
    categories: int = Field(..., ge=0)
    tags: int = Field(..., ge=0)
    integrations: int = Field(..., ge=0)
    avg_popularity: float = Field(..., ge=0)
