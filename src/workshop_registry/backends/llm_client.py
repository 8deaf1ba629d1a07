"""Simplified LLM client for core Anthropic API interactions"""

import json
import re

import httpx
from anthropic import Anthropic


class LLMClient:
    """Client for LLM-based instruction processing"""

    def __init__(self, config: dict):
        # 60s total, 10s connect, 45s read
        http_client = httpx.Client(timeout=httpx.Timeout(60.0, connect=10.0, read=45.0))
        self.client = Anthropic(
            api_key=config["anthropic_api_key"], http_client=http_client
        )
        self.model = config.get("anthropic_model")

    @staticmethod
    def _clean_json_response(response: str) -> str:
        """
        Clean JSON response by removing markdown code block formatting.

        Handles responses wrapped in:
        - ```json ... ```
        - ``` ... ```
        - Leading/trailing whitespace

        Args:
            response: Raw LLM response text

        Returns:
            Cleaned response with markdown formatting removed
        """
        cleaned = response.strip()

        if cleaned.startswith("```"):
            cleaned = re.sub(r"^```(?:json)?\s*\n?", "", cleaned)
            cleaned = re.sub(r"\n?```\s*$", "", cleaned)
            cleaned = cleaned.strip()

        return cleaned

    async def process_instruction(
        self, messages: list, max_tokens: int = 1000, system: str = None
    ) -> str:
        """Process messages and return formatted response

        Args:
            messages: List of message dictionaries with 'role' and 'content' keys
            max_tokens: Maximum tokens for the response (default: 1000)
            system: Optional system prompt to guide the LLM's behavior

        Returns:
            Generated text response
        """
        request_params = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": messages,
        }

        if system:
            request_params["system"] = system

        response = self.client.messages.create(**request_params)

        raw_text = response.content[0].text
        return self._clean_json_response(raw_text)

    async def process_json_instruction(
        self, messages: list, max_tokens: int = 1000, system: str = None
    ) -> dict:
        """Process messages and parse the reply as a JSON object

        Falls back to the outermost {...} block when the model wraps the JSON
        in prose.

        Raises:
            ValueError: If no JSON object can be parsed from the reply
        """
        text = await self.process_instruction(
            messages=messages, max_tokens=max_tokens, system=system
        )
        return self.parse_json_object(text)

    @staticmethod
    def parse_json_object(text: str) -> dict:
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            match = re.search(r"\{[\s\S]*\}", text)
            if not match:
                raise ValueError("LLM response did not contain a JSON object")
            try:
                data = json.loads(match.group(0))
            except json.JSONDecodeError as e:
                raise ValueError(f"LLM response is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ValueError("LLM response JSON is not an object")
        return data
