"""Tests for prompt generation and placeholder substitution."""

import pytest

from agentdesk.errors import MissingFieldError
from agentdesk.models import Mode, ModeSettings
from agentdesk.prompts import (
    PLACEHOLDERS,
    extract_placeholders,
    load_prompt,
    missing_placeholders,
    resolve_prompt,
    substitute_placeholders,
)
from agentdesk.prompts.builder import MODE_ROLES
from tests.conftest import make_profile


class TestResolvePrompt:
    """Test default prompt generation."""

    @pytest.mark.parametrize("mode", list(Mode))
    def test_default_contains_each_placeholder_once(self, mode):
        """Test the default prompt has each placeholder once."""
        profile = make_profile(modes={})

        prompt = resolve_prompt(profile, mode)

        for name in PLACEHOLDERS:
            assert prompt.count(f"{{{{{name}}}}}") == 1, name
        assert MODE_ROLES[mode] in prompt

    def test_default_differs_per_mode(self):
        """Test default prompts differ per mode."""
        profile = make_profile(modes={})

        prompts = {resolve_prompt(profile, mode) for mode in Mode}

        assert len(prompts) == len(Mode)

    def test_override_returned_unchanged(self):
        """Test the override is returned unchanged."""
        override = "You are {{botName}}. Keep it short."
        profile = make_profile(
            modes={Mode.CUSTOMER: ModeSettings(general_prompt=override)}
        )

        assert resolve_prompt(profile, Mode.CUSTOMER) == override
        # other modes still get the default
        assert "{{restaurantName}}" in resolve_prompt(profile, Mode.SALES)

    def test_empty_override_uses_default(self):
        """Test an empty override falls back to the default."""
        profile = make_profile(modes={Mode.CUSTOMER: ModeSettings(general_prompt="")})

        assert resolve_prompt(profile, Mode.CUSTOMER).startswith("You are an AI assistant")


class TestSubstitution:
    """Test placeholder substitution."""

    def test_substitutes_restaurant_and_mode_fields(self):
        """Test substituting restaurant and mode fields."""
        profile = make_profile()
        template = "Welcome to {{restaurantName}}, I'm {{botName}} and I sound {{tone}}."

        result = substitute_placeholders(template, profile, Mode.CUSTOMER)

        assert result == "Welcome to Luigi's, I'm Sofia and I sound friendly."

    def test_mode_scoped_values(self):
        """Test mode scoped values."""
        profile = make_profile()

        assert substitute_placeholders("{{botName}}", profile, Mode.SALES) == "Marco"

    def test_numeric_field(self):
        """Test substituting a numeric field."""
        profile = make_profile()

        result = substitute_placeholders("Seats: {{seatingCapacity}}", profile, Mode.CUSTOMER)

        assert result == "Seats: 40"

    def test_default_template_fully_resolved(self):
        """Test the default template resolves fully."""
        profile = make_profile()
        template = resolve_prompt(profile, Mode.CUSTOMER)

        result = substitute_placeholders(template, profile, Mode.CUSTOMER)

        assert "{{" not in result
        assert "Luigi's" in result
        assert "Margherita pizza" in result

    def test_idempotent_without_placeholders(self):
        """Test text without placeholders is unchanged."""
        profile = make_profile()
        text = "Greet callers warmly and ask for their name."

        once = substitute_placeholders(text, profile, Mode.CUSTOMER)

        assert once == text
        assert substitute_placeholders(once, profile, Mode.CUSTOMER) == text

    def test_values_not_rescanned(self):
        """A value that looks like a placeholder is inserted literally."""
        profile = make_profile(restaurant_name="{{menu}}")

        result = substitute_placeholders("{{restaurantName}}", profile, Mode.CUSTOMER)

        assert result == "{{menu}}"

    def test_unknown_placeholder_left_alone(self):
        """Test unknown placeholders are left alone."""
        profile = make_profile()

        result = substitute_placeholders("Hi {{callerName}}", profile, Mode.CUSTOMER)

        assert result == "Hi {{callerName}}"

    def test_missing_field_raises(self):
        """Test a missing field raises."""
        profile = make_profile(address=None)

        with pytest.raises(MissingFieldError) as exc_info:
            substitute_placeholders("Find us at {{address}}", profile, Mode.CUSTOMER)

        assert exc_info.value.field == "address"
        assert exc_info.value.placeholder == "address"

    def test_missing_mode_field_raises(self):
        """Test a missing mode field raises."""
        profile = make_profile()

        with pytest.raises(MissingFieldError):
            substitute_placeholders("I'm {{botName}}", profile, Mode.OPERATIONS)

    def test_unused_missing_field_ignored(self):
        """Test an unused missing field is ignored."""
        profile = make_profile(menu=None)

        assert substitute_placeholders("{{address}}", profile, Mode.CUSTOMER) == "1 Main Street"


class TestPlaceholderHelpers:
    def test_extract_in_order_without_duplicates(self):
        """Test extracting placeholders in order."""
        template = "{{botName}} at {{restaurantName}}, {{botName}} again, {{unknown}}"

        assert extract_placeholders(template) == ["botName", "restaurantName"]

    def test_missing_placeholders(self):
        """Test finding dropped placeholders."""
        original = "{{restaurantName}} {{botName}} {{tone}}"
        candidate = "{{restaurantName}} is great, tone: {{tone}}"

        assert missing_placeholders(original, candidate) == ["botName"]
        assert missing_placeholders(original, original) == []


class TestLoadPrompt:
    def test_editor_instruction(self):
        """Test loading the editor instruction."""
        instruction = load_prompt(
            "prompt_editor",
            current_prompt="You are {{botName}}.",
            protected_fields="restaurant name, tone",
        )

        assert instruction.rstrip().endswith("You are {{botName}}.")
        assert "restaurant name, tone" in instruction
        assert '"configurationRequest": true' in instruction

    def test_missing_template(self):
        """Test loading a missing template."""
        with pytest.raises(FileNotFoundError):
            load_prompt("does_not_exist")
