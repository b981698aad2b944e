"""AI Agents package."""

from budget_buddy.agents.plan_advisor import (
    CredentialConfigurationError,
    PlanAdvisorAgent,
    PlanFeedback,
    PlanFeedbackError,
    PlanFeedbackFlow,
    is_credential_error,
)

__all__ = [
    "CredentialConfigurationError",
    "PlanAdvisorAgent",
    "PlanFeedback",
    "PlanFeedbackError",
    "PlanFeedbackFlow",
    "is_credential_error",
]
