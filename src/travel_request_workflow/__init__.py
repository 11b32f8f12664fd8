"""Travel Request Workflow - Business-trip requests, validation and approval lifecycle."""

from .api import ApiResponse, TravelRequestAPI
from .config import LabelTables, SubmitterConfig, WorkflowConfig
from .draft import WIZARD_STEPS, RequestDraft
from .errors import (
    ConfigurationError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
    ValidationIssue,
    WorkflowError,
)
from .export import ExportService
from .lifecycle import LifecycleService, StatusMachine, parse_status
from .models import (
    Accommodation,
    ArrangeType,
    RequestDetail,
    RequestStatus,
    RequestSummary,
    StatusChange,
    Transportation,
    TransportationMode,
    Traveler,
    TravelRequest,
    User,
)
from .schemas import (
    AccommodationInput,
    RequestSubmission,
    TransportationInput,
    TravelerInput,
    TravelRequestInput,
    UserInput,
    validate_accommodation,
    validate_request,
    validate_submission,
    validate_transportation,
    validate_traveler,
    validate_user,
)
from .store import EntityCollection, EntityStore

__all__ = [
    "Accommodation",
    "AccommodationInput",
    "ApiResponse",
    "ArrangeType",
    "ConfigurationError",
    "EntityCollection",
    "EntityStore",
    "ExportService",
    "InvalidTransitionError",
    "LabelTables",
    "LifecycleService",
    "NotFoundError",
    "RequestDetail",
    "RequestDraft",
    "RequestStatus",
    "RequestSubmission",
    "RequestSummary",
    "StatusChange",
    "StatusMachine",
    "SubmitterConfig",
    "Transportation",
    "TransportationInput",
    "TransportationMode",
    "TravelRequest",
    "TravelRequestAPI",
    "TravelRequestInput",
    "Traveler",
    "TravelerInput",
    "User",
    "UserInput",
    "ValidationError",
    "ValidationIssue",
    "WIZARD_STEPS",
    "WorkflowConfig",
    "WorkflowError",
    "parse_status",
    "validate_accommodation",
    "validate_request",
    "validate_submission",
    "validate_transportation",
    "validate_traveler",
    "validate_user",
    "__version__",
]
__version__ = "0.1.0"
