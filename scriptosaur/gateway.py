"""Gemini gateway: one method per wizard operation."""

import threading
import time
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from .errors import GatewayError
from .prompts import FREE_EDIT_SYSTEM
from .utils.logger import NO_SESSION
from .utils.text import substitute_placeholders

STYLE_ANALYSIS_FALLBACK = "Не удалось сгенерировать анализ стиля."
STRUCTURE_FALLBACK = "Не удалось сгенерировать структуру."
SECTION_FALLBACK = "Не удалось сгенерировать часть сценария."
REVIEW_FALLBACK = "Не удалось провести рецензию."


@dataclass
class CallLog:
    operation: str = ""
    model: str = ""
    prompt_preview: str = ""
    response_preview: str = ""
    elapsed_seconds: float = 0.0
    ok: bool = True


class ConversationHandle:
    """Opaque reference to a Gemini chat session.

    The chat history lives on the service side; callers only pass the handle
    back to ``LLMGateway``. One message at a time is sent per handle.
    """

    def __init__(self, chat, model: str):
        self._chat = chat
        self._lock = threading.Lock()
        self.model = model
        self.turns = 0

    def __repr__(self) -> str:
        return f"<ConversationHandle model={self.model} turns={self.turns}>"


class LLMGateway:
    """Stateless wrapper around the google-genai client.

    ``api_key`` can be swapped per session; a client is created per call.
    Log lines are tagged with ``session``.
    """

    def __init__(
        self,
        api_key: str = "",
        temperature: Optional[float] = None,
        client=None,
        session: str = NO_SESSION,
    ):
        self.api_key = api_key
        self.log = logger.bind(session=session)
        self.temperature = temperature
        self._client = client
        self.logs: list[CallLog] = []

    # ------------------------------------------------------------------
    # plumbing
    # ------------------------------------------------------------------
    def _get_client(self):
        if self._client is not None:
            return self._client
        from google import genai

        return genai.Client(api_key=self.api_key)

    def _config(self, system: str, json_mode: bool = False, safety: bool = True):
        from google.genai import types

        kwargs = {"system_instruction": system}
        if self.temperature is not None:
            kwargs["temperature"] = self.temperature
        if json_mode:
            kwargs["response_mime_type"] = "application/json"
        if safety:
            kwargs["safety_settings"] = [
                types.SafetySetting(
                    category=types.HarmCategory.HARM_CATEGORY_HARASSMENT,
                    threshold=types.HarmBlockThreshold.BLOCK_ONLY_HIGH,
                ),
                types.SafetySetting(
                    category=types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
                    threshold=types.HarmBlockThreshold.BLOCK_ONLY_HIGH,
                ),
            ]
        return types.GenerateContentConfig(**kwargs)

    def _generate(
        self,
        operation: str,
        model: str,
        system: str,
        contents: str,
        json_mode: bool = False,
        safety: bool = True,
    ) -> str:
        start = time.time()
        try:
            client = self._get_client()
            response = client.models.generate_content(
                model=model,
                contents=contents,
                config=self._config(system, json_mode=json_mode, safety=safety),
            )
        except Exception as e:
            self._log(operation, model, contents, "", time.time() - start, ok=False)
            self.log.error(f"{operation} failed on {model}: {e}")
            raise GatewayError(operation, e) from e
        result = response.text or ""
        self._log(operation, model, contents, result, time.time() - start)
        return result

    def _send(self, operation: str, handle: ConversationHandle, message: str) -> str:
        start = time.time()
        with handle._lock:
            try:
                response = handle._chat.send_message(message)
            except Exception as e:
                self._log(operation, handle.model, message, "", time.time() - start, ok=False)
                self.log.error(f"{operation} failed in conversation: {e}")
                raise GatewayError(operation, e) from e
            handle.turns += 1
        result = response.text or ""
        self._log(operation, handle.model, message, result, time.time() - start)
        return result

    def _log(
        self,
        operation: str,
        model: str,
        prompt: str,
        response: str,
        elapsed: float,
        ok: bool = True,
    ) -> None:
        entry = CallLog(
            operation=operation,
            model=model,
            prompt_preview=prompt[:200],
            response_preview=response[:200] if response else "",
            elapsed_seconds=round(elapsed, 2),
            ok=ok,
        )
        self.logs.append(entry)
        self.log.debug(f"{operation} [{model}] {entry.elapsed_seconds:.2f}s ok={ok}")

    # ------------------------------------------------------------------
    # operations
    # ------------------------------------------------------------------
    def analyze_style(self, model: str, subject_name: str, instruction: str) -> str:
        contents = (
            "ВХОДНЫЕ ДАННЫЕ:\n"
            f"Имя человека / название канала: {subject_name}\n"
            "Язык: русский"
        )
        return self._generate("analyze_style", model, instruction, contents) or STYLE_ANALYSIS_FALLBACK

    def start_conversation(
        self, model: str, style: str, topic: str, persona_template: str
    ) -> ConversationHandle:
        """Open a chat whose system instructions are the filled persona."""
        system = substitute_placeholders(persona_template, {"TOPIC": topic, "STYLE": style})
        try:
            chat = self._get_client().chats.create(model=model, config=self._config(system))
        except Exception as e:
            self.log.error(f"start_conversation failed on {model}: {e}")
            raise GatewayError("start_conversation", e) from e
        self.log.info(f"Conversation opened on {model}")
        return ConversationHandle(chat, model)

    def request_structure(self, handle: ConversationHandle, instruction: str) -> str:
        return self._send("request_structure", handle, instruction) or STRUCTURE_FALLBACK

    def continue_script(self, handle: ConversationHandle, instruction: str) -> str:
        return self._send("continue_script", handle, instruction) or SECTION_FALLBACK

    def review(self, model: str, text: str, instruction: str) -> str:
        contents = f"Проанализируй следующий сценарий:\n\n{text}"
        return self._generate("review", model, instruction, contents) or REVIEW_FALLBACK

    def detect_cliches(self, model: str, text: str, instruction: str) -> str:
        """Raw JSON text; parsing is left to ``cliches.parse_cliches``."""
        contents = f"Текст для анализа:\n{text}"
        result = self._generate(
            "detect_cliches", model, instruction, contents, json_mode=True, safety=False
        )
        return result or "[]"

    def fix_cliches(self, model: str, text: str, change_instructions: str, instruction: str) -> str:
        contents = f"Оригинальный текст:\n{text}\n\nИнструкции по исправлению:\n{change_instructions}"
        return self._generate("fix_cliches", model, instruction, contents, safety=False) or text

    def apply_humor(self, model: str, text: str, style: str, instruction: str) -> str:
        contents = f"Текст:\n{text}\n\nКонтекст стиля:\n{style}"
        return self._generate("apply_humor", model, instruction, contents, safety=False) or text

    def free_edit(self, model: str, text: str, style: str, user_instruction: str) -> str:
        system = substitute_placeholders(FREE_EDIT_SYSTEM, {"STYLE": style})
        contents = f"ИСХОДНЫЙ ТЕКСТ:\n{text}\n\nЗАДАЧА ПО РЕДАКТИРОВАНИЮ:\n{user_instruction}"
        return self._generate("free_edit", model, system, contents) or text
