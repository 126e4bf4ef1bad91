import os
from pathlib import Path
from typing import List, Mapping, Optional
from pydantic import BaseModel, Field, model_validator
import yaml

API_KEY_COOKIE = "GEMINI_API_KEY"
API_KEY_ENV_VARS = ("GEMINI_API_KEY", "API_KEY")

SUPPORTED_MODELS = [
    "gemini-3-flash-preview",
    "gemini-3-pro-preview",
    "gemini-2.5-flash-latest",
]

class GeminiConfig(BaseModel):
    api_key: str = Field(default="")
    models: List[str] = Field(default_factory=lambda: list(SUPPORTED_MODELS), min_length=1)
    default_model: str = Field(default=SUPPORTED_MODELS[0])
    temperature: Optional[float] = Field(default=None, ge=0, le=2)

    @model_validator(mode="after")
    def _default_model_is_listed(self) -> "GeminiConfig":
        if self.default_model not in self.models:
            raise ValueError(f"default_model {self.default_model!r} is not one of {self.models}")
        return self

class StorageConfig(BaseModel):
    prompts_path: Path = Field(default=Path("data/prompts.json"))

class UIConfig(BaseModel):
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=7860, gt=0, lt=65536)
    share: bool = Field(default=False)
    auto_start: bool = Field(default=True)

class Config(BaseModel):
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    ui: UIConfig = Field(default_factory=UIConfig)
    log_level: str = Field(default="INFO")
    log_file: Optional[Path] = Field(default=None)

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: Path):
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self.model_dump(mode="json"), f, default_flow_style=False, allow_unicode=True)


def resolve_api_key(
    cookies: Optional[Mapping[str, str]] = None,
    configured: str = "",
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """Find the Gemini credential.

    Precedence: browser cookie, configured key, then the environment
    (``GEMINI_API_KEY`` before ``API_KEY``). Returns an empty string when
    nothing is set.
    """
    if cookies:
        value = (cookies.get(API_KEY_COOKIE) or "").strip()
        if value:
            return value
    if configured.strip():
        return configured.strip()
    environ = os.environ if environ is None else environ
    for name in API_KEY_ENV_VARS:
        value = (environ.get(name) or "").strip()
        if value:
            return value
    return ""
