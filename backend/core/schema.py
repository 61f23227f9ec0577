"""Pydantic models shared by the console service layer and the development backend.

Entities accept both the snake_case and camelCase spellings the admin API has
used over time and tolerate null collections, so list views can render
whatever the backend returns.
"""
from typing import List, Dict, Optional, Any, Literal, Tuple
from pydantic import BaseModel, ConfigDict, Field, AliasChoices, field_validator

Priority = Literal["CRITICAL", "HIGH", "MEDIUM", "LOW"]
CriticalityLevel = Literal["low", "medium", "high", "critical"]
Environment = Literal["development", "testing", "staging", "production"]
AccuracyTrend = Literal["improving", "stable", "declining", "insufficient_data"]

PRIORITIES: Tuple[str, ...] = ("LOW", "MEDIUM", "HIGH", "CRITICAL")
CRITICALITY_LEVELS: Tuple[str, ...] = ("low", "medium", "high", "critical")
ENVIRONMENTS: Tuple[str, ...] = ("development", "testing", "staging", "production")
SYSTEM_CATEGORIES: Tuple[str, ...] = (
    "Core Business",
    "Support Tools",
    "Infrastructure",
    "Communication",
    "Security",
    "Analytics",
    "Other",
)


def _list_or_empty(value: Any) -> Any:
    return [] if value is None else value


class _Entity(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ==================== BUSINESS CONTEXT ====================

class AssignmentRules(_Entity):
    responsible_person: str = ""
    affected_systems: List[str] = Field(default_factory=list)
    default_priority: Priority = "MEDIUM"

    @field_validator("responsible_person", mode="before")
    @classmethod
    def _blank_responsible(cls, v: Any) -> Any:
        return v or ""

    @field_validator("affected_systems", mode="before")
    @classmethod
    def _systems(cls, v: Any) -> Any:
        return _list_or_empty(v)

    @field_validator("default_priority", mode="before")
    @classmethod
    def _priority(cls, v: Any) -> Any:
        value = str(v or "").upper()
        return value if value in PRIORITIES else "MEDIUM"


class CriticalityHints(_Entity):
    high: List[str] = Field(default_factory=list)
    medium: List[str] = Field(default_factory=list)
    low: List[str] = Field(default_factory=list)


class BusinessContext(_Entity):
    id: Optional[str] = Field(None, validation_alias=AliasChoices("id", "_id"))
    name: str = ""
    description: str = ""
    keywords: List[str] = Field(default_factory=list)
    alias: List[str] = Field(default_factory=list)
    project_manager: Optional[str] = Field(
        None, validation_alias=AliasChoices("project_manager", "projectManager")
    )
    assignment_rules: AssignmentRules = Field(
        default_factory=AssignmentRules,
        validation_alias=AliasChoices("assignment_rules", "assignmentRules"),
    )
    criticality_hints: Optional[CriticalityHints] = Field(
        None, validation_alias=AliasChoices("criticality_hints", "criticalityHints")
    )
    is_active: bool = Field(True, validation_alias=AliasChoices("is_active", "isActive"))
    created_at: Optional[str] = Field(None, validation_alias=AliasChoices("created_at", "createdAt"))
    updated_at: Optional[str] = Field(None, validation_alias=AliasChoices("updated_at", "updatedAt"))
    created_by: Optional[str] = Field(None, validation_alias=AliasChoices("created_by", "createdBy"))
    updated_by: Optional[str] = Field(None, validation_alias=AliasChoices("updated_by", "updatedBy"))

    @field_validator("name", "description", mode="before")
    @classmethod
    def _blank_text(cls, v: Any) -> Any:
        return v or ""

    @field_validator("keywords", "alias", mode="before")
    @classmethod
    def _lists(cls, v: Any) -> Any:
        return _list_or_empty(v)

    @field_validator("project_manager", mode="before")
    @classmethod
    def _project_manager(cls, v: Any) -> Any:
        # Older rules stored {name, azure_user}
        if isinstance(v, dict):
            return v.get("azure_user") or v.get("name")
        return v or None

    @field_validator("assignment_rules", mode="before")
    @classmethod
    def _rules(cls, v: Any) -> Any:
        return v or {}

    @field_validator("is_active", mode="before")
    @classmethod
    def _active(cls, v: Any) -> Any:
        return v is not False


class BusinessContextCreate(_Entity):
    name: str
    description: str
    keywords: List[str] = Field(min_length=1)
    alias: List[str] = Field(default_factory=list)
    project_manager: Optional[str] = None
    assignment_rules: AssignmentRules = Field(default_factory=AssignmentRules)
    criticality_hints: Optional[CriticalityHints] = None
    created_by: Optional[str] = None


class BusinessContextUpdate(_Entity):
    name: Optional[str] = None
    description: Optional[str] = None
    keywords: Optional[List[str]] = None
    alias: Optional[List[str]] = None
    project_manager: Optional[str] = None
    assignment_rules: Optional[AssignmentRules] = None
    criticality_hints: Optional[CriticalityHints] = None
    is_active: Optional[bool] = None
    updated_by: Optional[str] = None


class DuplicateRequest(BaseModel):
    name: str


class ConflictIssue(BaseModel):
    # keyword_overlap, assignment_conflict or missing_field; newer backends may add kinds
    type: str
    message: str
    conflicting_rule_id: Optional[str] = None
    severity: str = "medium"


class ValidationResult(BaseModel):
    valid: bool
    conflicts: List[ConflictIssue] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


class ClassificationPreviewRequest(BaseModel):
    title: str
    description: str = ""


class ClassificationPreview(BaseModel):
    ticket_type: str
    priority: str
    responsible_person: str
    affected_systems: List[str] = Field(default_factory=list)
    confidence_score: float
    reasoning: str


# ==================== RESPONSIBLES ====================

class Responsible(_Entity):
    id: Optional[str] = Field(None, validation_alias=AliasChoices("id", "_id"))
    name: str = ""
    email: str = Field("", validation_alias=AliasChoices("email", "responsible_email"))
    department: Optional[str] = None
    is_active: bool = Field(True, validation_alias=AliasChoices("is_active", "active", "isActive"))
    created_at: Optional[str] = Field(None, validation_alias=AliasChoices("created_at", "createdAt"))
    updated_at: Optional[str] = Field(None, validation_alias=AliasChoices("updated_at", "updatedAt"))

    @field_validator("name", "email", mode="before")
    @classmethod
    def _blank_text(cls, v: Any) -> Any:
        return v or ""

    @field_validator("is_active", mode="before")
    @classmethod
    def _active(cls, v: Any) -> Any:
        return v is not False


class ResponsibleCreate(_Entity):
    name: str
    email: str


class ResponsibleUpdate(_Entity):
    name: Optional[str] = None
    email: Optional[str] = None


class ResponsibleList(BaseModel):
    responsibles: List[Responsible] = Field(default_factory=list)
    count: int = 0


# ==================== SYSTEMS ====================

class System(_Entity):
    id: Optional[str] = Field(None, validation_alias=AliasChoices("id", "_id"))
    name: str = Field("", validation_alias=AliasChoices("name", "system_name"))
    description: Optional[str] = None
    category: Optional[str] = None
    owner: Optional[str] = None
    # Free text on read: labels fall back for values the console does not know
    environment: str = "production"
    criticality_level: str = "medium"
    monitoring_url: Optional[str] = None
    documentation_url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_active: bool = Field(True, validation_alias=AliasChoices("is_active", "active", "isActive"))
    created_at: Optional[str] = Field(None, validation_alias=AliasChoices("created_at", "createdAt"))
    updated_at: Optional[str] = Field(None, validation_alias=AliasChoices("updated_at", "updatedAt"))
    incident_count: int = Field(0, validation_alias=AliasChoices("incident_count", "incidentCount"))

    @field_validator("name", mode="before")
    @classmethod
    def _blank_name(cls, v: Any) -> Any:
        return v or ""

    @field_validator("environment", mode="before")
    @classmethod
    def _environment(cls, v: Any) -> Any:
        return v or "production"

    @field_validator("criticality_level", mode="before")
    @classmethod
    def _criticality(cls, v: Any) -> Any:
        return v or "medium"

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, v: Any) -> Any:
        return _list_or_empty(v)

    @field_validator("incident_count", mode="before")
    @classmethod
    def _incidents(cls, v: Any) -> Any:
        return v or 0

    @field_validator("is_active", mode="before")
    @classmethod
    def _active(cls, v: Any) -> Any:
        return v is not False


class SystemCreate(_Entity):
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    owner: Optional[str] = None
    environment: Environment = "production"
    criticality_level: CriticalityLevel = "medium"
    monitoring_url: Optional[str] = None
    documentation_url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class SystemUpdate(_Entity):
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    owner: Optional[str] = None
    environment: Optional[Environment] = None
    criticality_level: Optional[CriticalityLevel] = None
    monitoring_url: Optional[str] = None
    documentation_url: Optional[str] = None
    tags: Optional[List[str]] = None
    is_active: Optional[bool] = None


class SystemList(BaseModel):
    systems: List[System] = Field(default_factory=list)
    count: int = 0


# ==================== CATALOG / MISC ====================

class CatalogResponsibles(BaseModel):
    responsibles: List[str] = Field(default_factory=list)
    count: int = 0


class CatalogSystems(BaseModel):
    systems: List[str] = Field(default_factory=list)
    count: int = 0


class MessageResponse(BaseModel):
    message: str


class ToggleActiveRequest(BaseModel):
    active: bool


class Availability(BaseModel):
    available: bool
    message: Optional[str] = None


class ImportResult(BaseModel):
    imported: int = 0
    errors: List[str] = Field(default_factory=list)


# ==================== AI METRICS ====================

class CommonMistake(BaseModel):
    wrong: str
    correct: str
    frequency: int


class AIAccuracyMetrics(BaseModel):
    total_classifications: int = 0
    total_corrections: int = 0
    accuracy_percentage: float = 0.0
    classifications_with_errors: int = 0
    most_problematic_systems: List[Tuple[str, int]] = Field(default_factory=list)
    period_days: int = 7
    analysis_date: str = ""
    common_mistakes: List[CommonMistake] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)

    @field_validator("most_problematic_systems", "common_mistakes", "recommendations", mode="before")
    @classmethod
    def _lists(cls, v: Any) -> Any:
        return _list_or_empty(v)


class ValidationSummary(BaseModel):
    period_days: int = 0
    total_validations: int = 0
    validations_with_corrections: int = 0
    success_rate_percentage: float = 0.0


class ProblematicSystem(BaseModel):
    system_name: str
    error_count: int
    error_percentage: float


class SystemsValidationStats(BaseModel):
    validation_summary: ValidationSummary = Field(default_factory=ValidationSummary)
    most_problematic_systems: List[ProblematicSystem] = Field(default_factory=list)
    improvement_suggestions: List[str] = Field(default_factory=list)

    @field_validator("most_problematic_systems", "improvement_suggestions", mode="before")
    @classmethod
    def _lists(cls, v: Any) -> Any:
        return _list_or_empty(v)


class AITrends(BaseModel):
    accuracy_trend: AccuracyTrend = "insufficient_data"
    total_corrections_last_week: int = 0
    avg_daily_classifications: int = 0


class AIDashboardData(BaseModel):
    accuracy_metrics: AIAccuracyMetrics
    validation_stats: SystemsValidationStats
    trends: AITrends


class AIMetricsConfig(BaseModel):
    days_back: int = 7
    refresh_interval_minutes: int = 15
    accuracy_threshold: float = 80.0
    error_threshold: float = 10.0


class ImprovementReport(BaseModel):
    summary: str
    critical_issues: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    systems_to_review: List[str] = Field(default_factory=list)


def model_payload(model: BaseModel) -> Dict[str, Any]:
    """JSON body for a request model, omitting unset optionals."""
    return model.model_dump(mode="json", exclude_none=True)
