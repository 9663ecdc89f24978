import logging

from unilib.ports.llm import LLMPort

logger = logging.getLogger(__name__)


class MockLLMAdapter(LLMPort):
    """
    Mock LLM adapter for running without gateway access.

    Returns a deterministic, realistic recommendation and remembers the
    prompts it was given so callers can inspect them.
    """

    def __init__(self, reply: str | None = None) -> None:
        self._reply = reply
        self.calls: list[tuple[str, str]] = []

    async def complete(self, system: str, user: str) -> str | None:
        """Return a canned recommendation."""
        self.calls.append((system, user))
        logger.info("MockLLM: complete called (%d system chars)", len(system))
        if self._reply is not None:
            return self._reply
        return (
            'If you enjoyed that, try "The Left Hand of Darkness" by Ursula K. Le Guin. '
            "It is a science fiction classic that explores politics and identity on an "
            "unfamiliar world, with the same careful world-building.\n\n"
            '"Hyperion" by Dan Simmons is another science fiction epic, told as a set of '
            "interlocking stories that slowly reveal a larger mystery.\n\n"
            'For something closer to non-fiction, "The Structure of Scientific Revolutions" '
            "by Thomas Kuhn (philosophy of science) rewards slow, thoughtful reading."
        )
