"""
AI Plan Advisor

DESIGN DECISION: Plan feedback is an opaque text-in/text-out call.
The agent receives the user's own plan document and returns coaching
prose. It never sees transactions or budgets and its output never
becomes state.

CRITICAL BOUNDARY:
   - CAN: Comment on a plan the user wrote
   - CANNOT: Create, edit or delete records
   - MUST: Distinguish a credential problem from any other failure,
     so the caller can ask the user to reconfigure the key instead of
     showing a generic error
"""

from typing import Optional

import google.generativeai as genai
from pydantic import BaseModel

from budget_buddy.audit import AuditLogger
from budget_buddy.config import GeminiSettings, get_settings
from budget_buddy.models.records import BudgetPlan


# Substrings of provider error messages that mean the key itself is the problem
CREDENTIAL_ERROR_MARKERS = (
    "api key not valid",
    "api_key_invalid",
    "invalid api key",
    "api key not found",
    "api key is not configured",
    "permission denied",
    "permission_denied",
    "unauthenticated",
    "requested entity was not found",
)

NO_PLAN_MESSAGE = "Upload a budget plan first to get AI feedback."
RECONFIGURE_MESSAGE = (
    "The AI feedback service is not configured or its API key was rejected. "
    "Please select or reconfigure your Gemini API key and try again."
)
GENERIC_FAILURE_MESSAGE = (
    "Sorry, I encountered an error while analyzing your plan. "
    "Please try again later."
)


class PlanFeedbackError(Exception):
    """The feedback call failed for a reason other than credentials."""
    pass


class CredentialConfigurationError(PlanFeedbackError):
    """The API key is missing, invalid or not permitted for the model."""
    pass


def is_credential_error(error: Exception) -> bool:
    """Classify a provider error by inspecting its message."""
    message = str(error).lower()
    return any(marker in message for marker in CREDENTIAL_ERROR_MARKERS)


class PlanAdvisorAgent:
    """
    Gemini-backed budget coach.

    The model is configured on first use so that a missing key surfaces
    as a CredentialConfigurationError at call time, not at construction.
    """

    def __init__(self, settings: Optional[GeminiSettings] = None):
        self._settings = settings or get_settings().gemini
        self._model = None

    def _configure_genai(self):
        """Configure Google Generative AI."""
        if not self._settings.is_configured:
            raise CredentialConfigurationError("Gemini API key is not configured.")
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    @staticmethod
    def build_prompt(plan_text: str) -> str:
        return f"""You are a friendly and encouraging financial coach named BudgetBuddy AI.
Analyze the following personal budget plan. Provide constructive feedback, identify potential areas for improvement,
and offer actionable tips. Be positive and supportive in your tone.
Structure your response in Markdown format. Include headings for different sections like "Strengths", "Areas for Improvement", and "Actionable Tips".

Here is the user's budget plan:
---
{plan_text}
---
"""

    async def analyze(self, plan_text: str) -> str:
        """
        Get coaching feedback for a plan document.

        Raises:
            CredentialConfigurationError: Missing, invalid or unpermitted key
            PlanFeedbackError: Any other failure, including an empty response
        """
        if self._model is None:
            self._configure_genai()

        try:
            response = await self._model.generate_content_async(
                self.build_prompt(plan_text)
            )
            text = response.text
        except Exception as e:
            if is_credential_error(e):
                raise CredentialConfigurationError(str(e)) from e
            raise PlanFeedbackError(str(e)) from e

        if not text or not text.strip():
            raise PlanFeedbackError("Empty response from model")
        return text.strip()


class PlanFeedback(BaseModel):
    """What the view shows after asking for plan feedback."""

    text: str
    succeeded: bool
    needs_reconfiguration: bool = False


class PlanFeedbackFlow:
    """
    Turns the advisor's outcomes into displayable results.

    Credential errors branch to a reconfigure prompt; everything else
    gets the generic failure message. Nothing here raises.
    """

    def __init__(
        self,
        agent: Optional[PlanAdvisorAgent] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._agent = agent or PlanAdvisorAgent()
        self._audit = audit_logger or AuditLogger()

    async def get_feedback(self, plan: BudgetPlan) -> PlanFeedback:
        if plan.is_empty:
            return PlanFeedback(text=NO_PLAN_MESSAGE, succeeded=False)

        try:
            text = await self._agent.analyze(plan.content)
        except CredentialConfigurationError as e:
            self._audit.log_plan_feedback_failed(
                error_type=type(e).__name__,
                error_message=str(e),
                needs_reconfiguration=True,
            )
            return PlanFeedback(
                text=RECONFIGURE_MESSAGE,
                succeeded=False,
                needs_reconfiguration=True,
            )
        except PlanFeedbackError as e:
            self._audit.log_plan_feedback_failed(
                error_type=type(e).__name__,
                error_message=str(e),
                needs_reconfiguration=False,
            )
            return PlanFeedback(text=GENERIC_FAILURE_MESSAGE, succeeded=False)

        return PlanFeedback(text=text, succeeded=True)
