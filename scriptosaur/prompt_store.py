"""Process-wide store of user-editable prompt templates."""

import json
import threading
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple, Union

from loguru import logger

from .prompts import DEFAULT_PROMPTS, PromptKey

KeyLike = Union[PromptKey, str]


class PromptStore:
    """Built-in defaults with persisted overrides.

    Overrides are written to a flat JSON object (key -> text) as soon as
    they change. Without a path the store only lives in memory.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else None
        self._overrides: Dict[PromptKey, str] = {}
        self._lock = threading.Lock()
        self._load()

    @staticmethod
    def _key(key: KeyLike) -> PromptKey:
        try:
            return PromptKey(key)
        except ValueError:
            raise KeyError(f"Unknown prompt key: {key!r}") from None

    def _load(self) -> None:
        if not self.path or not self.path.exists():
            return
        with open(self.path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                logger.warning(f"Ignoring prompt overrides in {self.path}: not valid JSON ({e})")
                return
        if not isinstance(data, dict):
            logger.warning(f"Ignoring prompt overrides in {self.path}: expected a JSON object")
            return
        for raw_key, text in data.items():
            try:
                key = PromptKey(raw_key)
            except ValueError:
                logger.warning(f"Ignoring unknown prompt key {raw_key!r} in {self.path}")
                continue
            if isinstance(text, str):
                self._overrides[key] = text
        logger.debug(f"Loaded {len(self._overrides)} prompt override(s) from {self.path}")

    def _save(self) -> None:
        if not self.path:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {key.value: text for key, text in self._overrides.items()}
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)

    def get(self, key: KeyLike) -> str:
        key = self._key(key)
        with self._lock:
            return self._overrides.get(key, DEFAULT_PROMPTS[key])

    def default(self, key: KeyLike) -> str:
        return DEFAULT_PROMPTS[self._key(key)]

    def is_overridden(self, key: KeyLike) -> bool:
        key = self._key(key)
        with self._lock:
            return key in self._overrides

    def set(self, key: KeyLike, text: str) -> None:
        key = self._key(key)
        with self._lock:
            self._overrides[key] = text
            self._save()
        logger.info(f"Prompt '{key.value}' updated ({len(text)} chars)")

    def reset(self, key: KeyLike) -> str:
        """Drop the override for ``key`` and return the default text."""
        key = self._key(key)
        with self._lock:
            self._overrides.pop(key, None)
            self._save()
        logger.info(f"Prompt '{key.value}' reset to default")
        return DEFAULT_PROMPTS[key]

    def reset_all(self) -> None:
        with self._lock:
            self._overrides.clear()
            self._save()
        logger.info("All prompts reset to defaults")

    def items(self) -> Iterator[Tuple[PromptKey, str]]:
        for key in PromptKey:
            yield key, self.get(key)
