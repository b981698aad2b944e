"""
Tests for the plan advisor and feedback flow.

Gemini is always mocked; no real API calls.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from budget_buddy.agents import (
    CredentialConfigurationError,
    PlanAdvisorAgent,
    PlanFeedbackError,
    PlanFeedbackFlow,
    is_credential_error,
)
from budget_buddy.agents.plan_advisor import (
    GENERIC_FAILURE_MESSAGE,
    NO_PLAN_MESSAGE,
    RECONFIGURE_MESSAGE,
)
from budget_buddy.config import GeminiSettings
from budget_buddy.models.records import BudgetPlan


PLAN = BudgetPlan(file_name="plan.txt", content="Rent 15000, food 6000, save the rest")


def configured_settings() -> GeminiSettings:
    return GeminiSettings(api_key="test-key")


def mock_model(text: str = "## Strengths\nGood savings rate.", error: Exception = None) -> MagicMock:
    model = MagicMock()
    if error is not None:
        model.generate_content_async = AsyncMock(side_effect=error)
    else:
        model.generate_content_async = AsyncMock(return_value=MagicMock(text=text))
    return model


class TestCredentialClassification:
    """Tests for telling key problems apart from other failures."""

    @pytest.mark.parametrize("message", [
        "400 API key not valid. Please pass a valid API key.",
        "INVALID_ARGUMENT: API_KEY_INVALID",
        "403 Permission denied on resource project",
        "Requested entity was not found.",
    ])
    def test_credential_messages(self, message):
        assert is_credential_error(Exception(message))

    @pytest.mark.parametrize("message", [
        "503 The model is overloaded",
        "Deadline exceeded",
    ])
    def test_other_messages(self, message):
        assert not is_credential_error(Exception(message))


class TestPlanAdvisorAgent:
    """Tests for the Gemini-backed agent."""

    @pytest.mark.asyncio
    async def test_missing_key_is_credential_error(self):
        agent = PlanAdvisorAgent(GeminiSettings(api_key=None))
        with pytest.raises(CredentialConfigurationError):
            await agent.analyze("my plan")

    @pytest.mark.asyncio
    async def test_returns_model_text(self):
        with patch("budget_buddy.agents.plan_advisor.genai") as genai:
            genai.GenerativeModel.return_value = mock_model("  Looks solid.  ")
            agent = PlanAdvisorAgent(configured_settings())

            feedback = await agent.analyze("Rent 15000")

        assert feedback == "Looks solid."
        genai.configure.assert_called_once_with(api_key="test-key")
        prompt = genai.GenerativeModel.return_value.generate_content_async.call_args.args[0]
        assert "BudgetBuddy AI" in prompt
        assert "Rent 15000" in prompt

    @pytest.mark.asyncio
    async def test_invalid_key_from_provider(self):
        with patch("budget_buddy.agents.plan_advisor.genai") as genai:
            genai.GenerativeModel.return_value = mock_model(error=Exception("API key not valid"))
            agent = PlanAdvisorAgent(configured_settings())

            with pytest.raises(CredentialConfigurationError):
                await agent.analyze("plan")

    @pytest.mark.asyncio
    async def test_other_provider_failure(self):
        with patch("budget_buddy.agents.plan_advisor.genai") as genai:
            genai.GenerativeModel.return_value = mock_model(error=Exception("503 overloaded"))
            agent = PlanAdvisorAgent(configured_settings())

            with pytest.raises(PlanFeedbackError) as exc_info:
                await agent.analyze("plan")

        assert not isinstance(exc_info.value, CredentialConfigurationError)

    @pytest.mark.asyncio
    async def test_empty_response_is_failure(self):
        with patch("budget_buddy.agents.plan_advisor.genai") as genai:
            genai.GenerativeModel.return_value = mock_model("   ")
            agent = PlanAdvisorAgent(configured_settings())

            with pytest.raises(PlanFeedbackError):
                await agent.analyze("plan")


class TestPlanFeedbackFlow:
    """Tests for turning advisor outcomes into displayable results."""

    @pytest.mark.asyncio
    async def test_success(self, audit_logger):
        agent = MagicMock(spec=PlanAdvisorAgent)
        agent.analyze = AsyncMock(return_value="Great plan.")
        flow = PlanFeedbackFlow(agent, audit_logger)

        result = await flow.get_feedback(PLAN)

        assert result.succeeded
        assert result.text == "Great plan."
        assert not result.needs_reconfiguration
        agent.analyze.assert_awaited_once_with(PLAN.content)

    @pytest.mark.asyncio
    async def test_no_plan(self, audit_logger):
        agent = MagicMock(spec=PlanAdvisorAgent)
        agent.analyze = AsyncMock()
        flow = PlanFeedbackFlow(agent, audit_logger)

        result = await flow.get_feedback(BudgetPlan())

        assert not result.succeeded
        assert result.text == NO_PLAN_MESSAGE
        agent.analyze.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_credential_error_asks_for_reconfiguration(self, audit_logger):
        agent = MagicMock(spec=PlanAdvisorAgent)
        agent.analyze = AsyncMock(side_effect=CredentialConfigurationError("API key not valid"))
        flow = PlanFeedbackFlow(agent, audit_logger)

        result = await flow.get_feedback(PLAN)

        assert not result.succeeded
        assert result.needs_reconfiguration
        assert result.text == RECONFIGURE_MESSAGE
        audit_logger.log_plan_feedback_failed.assert_called_once()
        assert audit_logger.log_plan_feedback_failed.call_args.kwargs["needs_reconfiguration"]

    @pytest.mark.asyncio
    async def test_generic_error_shows_generic_message(self, audit_logger):
        agent = MagicMock(spec=PlanAdvisorAgent)
        agent.analyze = AsyncMock(side_effect=PlanFeedbackError("503 overloaded"))
        flow = PlanFeedbackFlow(agent, audit_logger)

        result = await flow.get_feedback(PLAN)

        assert not result.succeeded
        assert not result.needs_reconfiguration
        assert result.text == GENERIC_FAILURE_MESSAGE
