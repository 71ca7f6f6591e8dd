"""Command-line prompt editor - HTTP client for the AgentDesk API."""

import argparse
import logging
import sys

import httpx
from pydantic import ValidationError

from agentdesk.config import get_config, setup_logging
from agentdesk.models import Mode

logger = logging.getLogger(__name__)

CONFIRM_WORDS = {"y", "yes", "apply", "confirm"}


class PromptEditorCLI:
    """Chat with the AI prompt engineer for one user and mode."""

    def __init__(self, user_id: str, mode: Mode) -> None:
        """Initialize the CLI."""
        self.config = get_config()
        setup_logging(self.config)
        self.user_id = user_id
        self.mode = mode
        self.base_path = f"{self.config.server_url}/users/{user_id}/modes/{mode.value}"
        self.client = httpx.Client(timeout=self.config.request_timeout * 4)

        logger.info("AgentDesk CLI initialized as HTTP client")

    def _display_header(self) -> None:
        print("\n" + "=" * 60)
        print("AGENTDESK - AI Prompt Engineer")
        print(f"user: {self.user_id}   mode: {self.mode.value}")
        print("=" * 60 + "\n")

    def run(self) -> None:
        """Run the CLI application."""
        self._display_header()
        print("Describe how the assistant should change. Examples:")
        print('  "Make the greeting more casual"')
        print('  "Ask callers for their phone number before ending the call"')
        print("Type 'prompt' to show the current prompt, 'quit' to exit.\n")

        while True:
            try:
                user_input = input("\nYou: ").strip()

                if not user_input:
                    continue

                if user_input.lower() in ["quit", "exit", "q"]:
                    print("\nGoodbye!")
                    break

                if user_input.lower() == "prompt":
                    self._show_prompt()
                    continue

                self._process_message(user_input)

            except KeyboardInterrupt:
                print("\n\nExiting AgentDesk. Goodbye!")
                break
            except httpx.TimeoutException:
                logger.exception("Request timed out")
                print("\n⚠ Request timed out. Please try again.")
            except httpx.ConnectError:
                logger.exception("Cannot connect to server")
                print(f"\n⚠ Cannot connect to server at {self.config.server_url}")
                print("Make sure the server is running:")
                print("  python -m agentdesk.server")
            except Exception as e:
                logger.error(f"Unexpected error: {e}", exc_info=True)
                print(f"\n⚠ An unexpected error occurred: {e}")

        self.client.close()

    def _show_prompt(self) -> None:
        response = self.client.get(f"{self.base_path}/prompt")
        if self._report_error(response):
            return
        data = response.json()
        label = "custom" if data["is_custom"] else "default"
        print(f"\nCurrent {label} prompt:\n\n{data['prompt']}")

    def _process_message(self, message: str) -> None:
        response = self.client.post(
            f"{self.base_path}/editor/messages", json={"message": message}
        )
        if self._report_error(response):
            return

        result = response.json()
        print(f"\nAssistant: {result['reply']}")

        pending = result.get("pending_change")
        if not pending:
            return

        if pending["configuration_request"]:
            answer = "no"
        else:
            answer = input("\nApply these changes? [y/N]: ").strip().lower()

        confirmed = answer in CONFIRM_WORDS
        response = self.client.post(
            f"{self.base_path}/editor/confirm", json={"confirmed": confirmed}
        )
        if self._report_error(response):
            return

        if response.json().get("applied"):
            print("\n✓ Prompt updated successfully")
        elif confirmed:
            print("\nNothing to apply.")
        else:
            print("\nChanges discarded.")

    @staticmethod
    def _report_error(response: httpx.Response) -> bool:
        if response.status_code == 200:
            return False

        error_data = (
            response.json()
            if response.headers.get("content-type", "").startswith("application/json")
            else {}
        )
        error_msg = error_data.get("message", response.text)
        print(f"\n⚠ Server error (status {response.status_code}): {error_msg}")
        return True


def main() -> None:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(description="Edit a voice agent's prompt by chatting")
    parser.add_argument("user_id", help="Restaurant owner's user id")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in Mode],
        default=Mode.CUSTOMER.value,
        help="Which agent to edit",
    )
    args = parser.parse_args()

    try:
        get_config()
    except ValidationError as e:
        print(f"Configuration error: {e}")
        print("\nThe CLI reads SERVER_URL (default http://localhost:8080) and")
        print("needs OPENAI_API_KEY set in the environment or a .env file.")
        sys.exit(1)

    cli = PromptEditorCLI(args.user_id, Mode(args.mode))
    cli.run()


if __name__ == "__main__":
    main()
