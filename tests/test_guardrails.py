"""Tests for guardrail modules."""

import pytest
from agents import RunContextWrapper

from agentdesk.guardrails import (
    PromptReviewContext,
    placeholder_guardrail,
    validate_edit_request,
)


class TestValidateEditRequest:
    """Tests for edit request validation."""

    def test_empty_input(self):
        """Test empty input rejection."""
        with pytest.raises(ValueError, match="empty"):
            validate_edit_request("")

    def test_too_long_input(self):
        """Test too long input rejection."""
        with pytest.raises(ValueError, match="too long"):
            validate_edit_request("x" * 2001)

    @pytest.mark.parametrize(
        "message",
        [
            "<script>alert('xss')</script>",
            "javascript:void(0)",
            "onclick='malicious()'",
            "run eval(code)",
        ],
    )
    def test_suspicious_patterns(self, message):
        """Test suspicious pattern detection."""
        with pytest.raises(ValueError, match="suspicious"):
            validate_edit_request(message)

    def test_normal_input(self):
        """Test normal input passes."""
        assert validate_edit_request("  Make the greeting more casual \n") == (
            "Make the greeting more casual"
        )


class TestPlaceholderGuardrail:
    """Tests for the review agent's output guardrail."""

    @pytest.fixture
    def context(self):
        return RunContextWrapper(
            context=PromptReviewContext(current_prompt="{{botName}} at {{restaurantName}}")
        )

    def test_keeps_placeholders(self, context):
        """Test a rewrite keeping every placeholder passes."""
        result = placeholder_guardrail.guardrail_function(
            context, None, "Hi, {{botName}} here from {{restaurantName}}!"
        )

        assert result.tripwire_triggered is False

    def test_dropped_placeholder_trips(self, context):
        """Test a rewrite dropping a placeholder trips the guardrail."""
        result = placeholder_guardrail.guardrail_function(
            context, None, "Hi, Sofia here from {{restaurantName}}!"
        )

        assert result.tripwire_triggered is True
        assert result.output_info == {"missing_placeholders": ["botName"]}
