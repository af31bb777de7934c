"""Base agent class wrapping the language model."""

import os
from abc import ABC, abstractmethod
from typing import Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.output_parsers import StrOutputParser

from ..observability import logger


class BaseAgent(ABC):
    """
    Base class for agents that send one prompt and read back one completion.

    Supports mock mode for testing without API keys.
    """

    system_prompt = (
        "You are an expert at analyzing chat messages and extracting structured "
        "information. Always respond with raw JSON only."
    )

    def __init__(
        self,
        model_name: Optional[str] = None,
        temperature: Optional[float] = None,
        mock_mode: bool = False,
    ):
        self.model_name = model_name or os.getenv("CHAT_MODEL", "gpt-4.1")
        self.temperature = (
            temperature if temperature is not None
            else float(os.getenv("TEMPERATURE", "0.0"))
        )
        self.mock_mode = mock_mode or os.getenv("MOCK_LLM", "").lower() == "true"

        self.llm = None
        self.parser = StrOutputParser()

        # Only initialize LLM if not in mock mode
        if not self.mock_mode:
            from langchain_openai import ChatOpenAI
            self.llm = ChatOpenAI(
                model=self.model_name,
                temperature=self.temperature,
            )

    @property
    @abstractmethod
    def agent_name(self) -> str:
        """Name of this agent for logging."""
        pass

    async def complete(self, prompt: str) -> str:
        """
        Send a single prompt and return the raw completion text.

        No retries; errors from the model client propagate.
        """
        if self.mock_mode:
            logger.info(f"{self.agent_name}: Using mock response (no API key)")
            return self._mock_completion(prompt)

        chain = self.llm | self.parser
        completion = await chain.ainvoke([
            SystemMessage(content=self.system_prompt),
            HumanMessage(content=prompt),
        ])
        logger.debug(f"{self.agent_name} completion: {completion}")
        return completion

    @abstractmethod
    def _mock_completion(self, prompt: str) -> str:
        """Canned completion returned in mock mode."""
        pass
