"""
OpenAI-backed providers for the public chat assistant and lead analysis.

The API key and prompts stay on the server; clients only ever see the reply
text or the structured analysis.
"""
import json
import logging

from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from kontify.core.config import Settings, get_settings
from kontify.errors import ProviderFailure
from kontify.models.advisor import FiscalSpecialization
from kontify.schemas.analysis import AIAnalysis
from kontify.schemas.chat import ChatHistoryMessage

logger = logging.getLogger(__name__)

CHAT_SYSTEM_PROMPT = (
    "Eres Kontify, un asistente fiscal mexicano amable y profesional. "
    "Tu objetivo es entender la duda fiscal del visitante con preguntas breves "
    "y claras. No des asesoría definitiva: un asesor humano dará seguimiento. "
    "Responde siempre en español y en no más de tres oraciones."
)

ANALYSIS_PROMPT = """Analiza la siguiente consulta de un cliente potencial de un despacho fiscal.

CONSULTA:
```
{query}
```

Responde con un objeto JSON con exactamente estas llaves:
{{
    "summary": "<resumen de una o dos oraciones en español>",
    "priority": "<Low | Medium | High>",
    "suggested_specialization": "<una de: {specializations}>"
}}"""


class OpenAIProvider:
    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._client: OpenAI | None = None

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            if not self.settings.OPENAI_API_KEY:
                raise ProviderFailure("OPENAI_API_KEY is not configured")
            self._client = OpenAI(api_key=self.settings.OPENAI_API_KEY, timeout=self.settings.OPENAI_TIMEOUT_SECONDS)
        return self._client

    def complete_chat(self, history: list[ChatHistoryMessage]) -> str:
        messages = [{"role": "system", "content": CHAT_SYSTEM_PROMPT}]
        messages.extend({"role": m.role, "content": m.content} for m in history)
        try:
            response = self.client.chat.completions.create(
                model=self.settings.OPENAI_CHAT_MODEL,
                messages=messages,
                temperature=0.5,
                max_tokens=300,
            )
        except OpenAIError as exc:
            logger.error("chat completion failed: %s", exc)
            raise ProviderFailure("chat completion failed") from exc

        reply = (response.choices[0].message.content or "").strip()
        if not reply:
            raise ProviderFailure("chat completion returned an empty reply")
        return reply

    def analyze_query(self, query: str) -> AIAnalysis:
        prompt = ANALYSIS_PROMPT.format(
            query=query[:8000],
            specializations=", ".join(s.value for s in FiscalSpecialization),
        )
        try:
            response = self.client.chat.completions.create(
                model=self.settings.OPENAI_ANALYSIS_MODEL,
                messages=[
                    {"role": "system", "content": "Eres un analista fiscal. Responde siempre con JSON válido."},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.1,
                max_tokens=400,
                response_format={"type": "json_object"},
            )
        except OpenAIError as exc:
            logger.error("lead analysis failed: %s", exc)
            raise ProviderFailure("lead analysis failed") from exc

        raw = response.choices[0].message.content or ""
        try:
            return AIAnalysis.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as exc:
            logger.error("lead analysis returned unusable output: %s", exc)
            raise ProviderFailure("lead analysis returned unusable output") from exc


def get_ai_provider() -> OpenAIProvider:
    return OpenAIProvider()
