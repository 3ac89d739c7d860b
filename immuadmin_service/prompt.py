"""Interactive yes/no confirmation."""

import click


class TerminalReader:
    """Reads yes/no answers from the terminal."""

    def read_yn(self, question: str, default: str) -> str:
        """Ask a yes/no question.

        Args:
            question: Prompt text, including the ``[y/N]`` hint
            default: Answer used on empty input, "y" or "n"

        Returns:
            The normalized answer, a single lowercase character
        """
        answer = click.prompt(question, default=default, show_default=False, prompt_suffix=" ")
        return answer.strip().lower()[:1] or default.lower()
