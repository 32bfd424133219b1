"""
Public chat intake.

A visitor gets two AI-assisted replies. The third message closes the
conversation: the transcript is filed as a new ``chatbot`` lead and the visitor
is pointed to the scheduling link. One conversation files exactly one lead.
"""
import enum
import logging
import threading
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field

from kontify.client.gateway import BackendGateway
from kontify.client.settings import ClientSettings, get_client_settings
from kontify.schemas.chat import ChatHistoryMessage
from kontify.schemas.lead import LeadResponse

logger = logging.getLogger(__name__)

GREETING = (
    "¡Hola! Soy Kontify, tu asistente fiscal. Para empezar, "
    "¿me podrías decir cuál es tu duda o consulta principal?"
)
FALLBACK_REPLY = "Lo siento, ocurrió un error al procesar tu solicitud."
CLOSING_TEXT = (
    "¡Gracias por tu información! He registrado tu consulta. "
    "Para darte una asesoría completa y personalizada, el siguiente paso es "
    "agendar una breve llamada con nuestro equipo."
)
CLOSING_LINK_TEXT = "Agendar Cita por WhatsApp"

PLACEHOLDER_NAME = "Cliente de Chatbot"
PLACEHOLDER_EMAIL = "a-definir@chatbot.com"


class Speaker(str, enum.Enum):
    visitor = "visitor"
    assistant = "assistant"


# Labels used in the transcript filed as the lead's query details.
TRANSCRIPT_LABELS = {Speaker.visitor: "user", Speaker.assistant: "bot"}


class TurnKind(str, enum.Enum):
    text = "text"
    link = "link"


@dataclass
class Turn:
    speaker: Speaker
    text: str
    timestamp: float = field(default_factory=time.time)
    kind: TurnKind = TurnKind.text
    url: str | None = None


class ChatIntakeFlow:
    def __init__(
        self,
        gateway: BackendGateway,
        settings: ClientSettings | None = None,
        executor: Executor | None = None,
    ):
        self.gateway = gateway
        self.settings = settings or get_client_settings()
        self.transcript: list[Turn] = [Turn(Speaker.assistant, GREETING)]
        self.visitor_count = 0
        self.ended = False
        self.busy = False
        self.lead_future: Future | None = None
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="kontify-intake")
        self._lock = threading.Lock()

    @property
    def accepting_input(self) -> bool:
        return not (self.ended or self.busy)

    def close(self) -> None:
        """End the conversation and release the worker thread if this flow created it.

        A lead already submitted is still filed. Injected executors belong to
        the caller and are left running.
        """
        self.ended = True
        if self._owns_executor:
            self._executor.shutdown(wait=False)

    def send(self, text: str) -> list[Turn] | None:
        """Handle one visitor message and return the turns it appended.

        Returns ``None`` when the input is not accepted: empty text, a reply
        still pending or a conversation that already ended.
        """
        if not text or not text.strip():
            return None
        with self._lock:
            if not self.accepting_input:
                return None
            self.busy = True
            self.visitor_count += 1
            start = len(self.transcript)
            self.transcript.append(Turn(Speaker.visitor, text))
            closing = self.visitor_count >= self.settings.CHAT_MAX_VISITOR_MESSAGES
            if closing:
                self.ended = True

        try:
            if closing:
                self._close()
            else:
                reply = self.gateway.chat_complete(self._history())
                self.transcript.append(Turn(Speaker.assistant, reply or FALLBACK_REPLY))
        finally:
            self.busy = False
        return self.transcript[start:]

    def transcript_text(self) -> str:
        return "\n".join(f"{TRANSCRIPT_LABELS[turn.speaker]}: {turn.text}" for turn in self.transcript if turn.kind == TurnKind.text)

    def _history(self) -> list[ChatHistoryMessage]:
        # The greeting is not part of what the model sees.
        return [
            ChatHistoryMessage(role="user" if turn.speaker == Speaker.visitor else "assistant", content=turn.text)
            for turn in self.transcript[1:]
            if turn.kind == TurnKind.text
        ]

    def _close(self) -> None:
        query = self.transcript_text()
        self.lead_future = self._executor.submit(self._file_lead, query)
        # The submitted job still runs; no further work is accepted.
        self.close()
        self.transcript.append(Turn(Speaker.assistant, CLOSING_TEXT))
        self.transcript.append(
            Turn(Speaker.assistant, CLOSING_LINK_TEXT, kind=TurnKind.link, url=self.settings.WHATSAPP_APPOINTMENT_URL)
        )

    def _file_lead(self, query: str) -> LeadResponse | None:
        lead = self.gateway.create_lead(PLACEHOLDER_NAME, PLACEHOLDER_EMAIL, query)
        if lead is None:
            logger.error("chat intake: lead was not filed (%d chars of transcript)", len(query))
        else:
            logger.info("chat intake: filed lead %s", lead.id)
        return lead
