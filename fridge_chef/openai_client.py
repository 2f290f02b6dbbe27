import logging
from functools import lru_cache

from openai import OpenAI

from fridge_chef.config import GPT_MODEL, GPT_TEMPERATURE, OPENAI_API_KEY

logger = logging.getLogger(__name__)


@lru_cache
def get_openai_client() -> OpenAI:
    if not OPENAI_API_KEY:
        raise RuntimeError("OPENAI_API_KEY is not set")
    logger.info("Initializing OpenAI client")
    return OpenAI(api_key=OPENAI_API_KEY)


class OpenAIGenerationService:
    """
    Text-generation backend for recipe suggestions.

    One request, one response: no streaming, no conversation state.
    """

    def __init__(self, model: str = GPT_MODEL, temperature: float = GPT_TEMPERATURE):
        # Fails fast when the credential is missing
        self.client = get_openai_client()
        self.model = (model or "gpt-4o-mini").strip() or "gpt-4o-mini"
        self.temperature = temperature

    def complete(self, prompt: str) -> str:
        logger.info("Sending %s-char prompt to model=%s", len(prompt), self.model)
        response = self.client.chat.completions.create(
            model=self.model,
            temperature=self.temperature,
            messages=[{"role": "user", "content": prompt}],
        )
        text = response.choices[0].message.content or ""
        logger.info("Model response received, length: %s", len(text))
        return text
