"""Load settings.yaml into frozen dataclasses. Built once at startup, passed explicitly."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

import yaml

from committee.errors import ConfigurationError

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"
_ENV_OVERRIDE = "COMMITTEE_CONFIG"

DEFAULT_SUMMARY_PROMPT = (
    "Summarize the following conversation, extracting the key information and points:\n\n"
    "{conversation}"
    "Summarize the main content and key points of the conversation above in clear, concise language."
)

DEFAULT_REVIEW_PROMPT = (
    "Review and rank the replies to the following request:\n\n"
    "{summary}\n\n"
    "Score and rank the following replies (from highest to lowest):\n"
    "{opinions}"
    "Answer in the following format:\n"
    "1. Highest-rated reply: [model name]\n"
    "2. Second-highest reply: [model name]\n"
    "3. Third-highest reply: [model name]\n"
    "4. Detailed evaluation: [brief explanation]\n"
)

DEFAULT_SYNTHESIS_PROMPT = (
    "Produce the final answer based on the following information:\n\n"
    "Request: {summary}\n\n"
    "Initial replies from each model:\n"
    "{opinions}"
    "Review opinions from each model:\n"
    "{reviews}"
    "Combine all replies and review opinions into one high-quality, accurate "
    "and comprehensive final answer."
)

DEFAULT_ROLE_LABELS = {
    "user": "User question: ",
    "assistant": "Assistant answer: ",
    "system": "System information: ",
}

KNOWN_SDKS = ("openai", "anthropic", "gemini")


@dataclass(frozen=True)
class ModelConfig:
    name: str
    sdk: str
    model: str
    api_key_env: str | None = None
    api_key: str | None = None
    base_url: str | None = None
    timeout_sec: int = 120
    max_tokens: int = 4096
    temperature: float | None = None
    top_p: float | None = None
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    stream: bool = False

    def resolve_api_key(self) -> str:
        """Inline api_key wins; otherwise read the env var named by api_key_env."""
        if self.api_key:
            return self.api_key.strip()
        if self.api_key_env:
            return os.environ.get(self.api_key_env, "").strip()
        return ""


@dataclass(frozen=True)
class PromptsConfig:
    summary: str = DEFAULT_SUMMARY_PROMPT
    review: str = DEFAULT_REVIEW_PROMPT
    synthesis: str = DEFAULT_SYNTHESIS_PROMPT
    role_labels: Mapping[str, str] = field(default_factory=lambda: MappingProxyType(dict(DEFAULT_ROLE_LABELS)))


@dataclass(frozen=True)
class DefaultsConfig:
    leader: str
    members: tuple[str, ...] = ()
    output_dir: Path = Path("./output")
    max_concurrency: int | None = None
    anonymize_reviews: bool = False


@dataclass(frozen=True)
class AppConfig:
    defaults: DefaultsConfig
    models: Mapping[str, ModelConfig]
    prompts: PromptsConfig


def default_settings_path() -> Path:
    override = os.environ.get(_ENV_OVERRIDE, "").strip()
    return Path(override) if override else _SETTINGS_PATH


def _parse_model(name: str, raw: dict) -> ModelConfig:
    try:
        sdk = str(raw["sdk"])
        model = str(raw["model"])
    except KeyError as exc:
        raise ConfigurationError(f"Model '{name}' is missing required key {exc}") from exc
    if sdk not in KNOWN_SDKS:
        raise ConfigurationError(f"Model '{name}' has unknown sdk '{sdk}' (expected one of {KNOWN_SDKS})")

    def _opt_float(key: str) -> float | None:
        value = raw.get(key)
        return float(value) if value is not None else None

    return ModelConfig(
        name=str(raw.get("name", name)),
        sdk=sdk,
        model=model,
        api_key_env=raw.get("api_key_env"),
        api_key=raw.get("api_key"),
        base_url=raw.get("base_url"),
        timeout_sec=int(raw.get("timeout_sec", 120)),
        max_tokens=int(raw.get("max_tokens", 4096)),
        temperature=_opt_float("temperature"),
        top_p=_opt_float("top_p"),
        presence_penalty=_opt_float("presence_penalty"),
        frequency_penalty=_opt_float("frequency_penalty"),
        stream=bool(raw.get("stream", False)),
    )


_TEMPLATE_FIELDS = {
    "summary": ("conversation",),
    "review": ("summary", "opinions"),
    "synthesis": ("summary", "opinions", "reviews"),
}


def _check_template(key: str, template: str) -> str:
    """Fail at load time if a prompt template cannot be filled with its fields."""
    fields = _TEMPLATE_FIELDS[key]
    try:
        template.format(**{f: "" for f in fields})
    except (AttributeError, IndexError, KeyError, ValueError) as exc:
        raise ConfigurationError(
            f"prompts.{key} is not a valid template (fields: {', '.join(fields)}; "
            f"escape literal braces as {{{{ }}}}): {exc!r}"
        ) from exc
    return template


def load_config(settings_path: Path | None = None) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if the settings file is missing and
    ConfigurationError if it declares no models or is malformed.
    """
    settings_path = settings_path or default_settings_path()
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    models_raw = raw.get("models") or {}
    if not models_raw:
        raise ConfigurationError(f"No models configured in {settings_path}")

    models: dict[str, ModelConfig] = {}
    for entry_name, model_raw in models_raw.items():
        model_cfg = _parse_model(str(entry_name), model_raw or {})
        if model_cfg.name in models:
            raise ConfigurationError(f"Duplicate model name: {model_cfg.name}")
        models[model_cfg.name] = model_cfg
        logger.debug("Configured model %s (%s/%s)", model_cfg.name, model_cfg.sdk, model_cfg.model)

    defaults_raw = raw.get("defaults") or {}
    leader = defaults_raw.get("leader")
    if not leader:
        raise ConfigurationError("defaults.leader is required")
    max_concurrency = defaults_raw.get("max_concurrency")
    defaults = DefaultsConfig(
        leader=str(leader),
        members=tuple(str(m) for m in defaults_raw.get("members") or ()),
        output_dir=Path(defaults_raw.get("output_dir", "./output")),
        max_concurrency=int(max_concurrency) if max_concurrency else None,
        anonymize_reviews=bool(defaults_raw.get("anonymize_reviews", False)),
    )

    prompts_raw = raw.get("prompts") or {}
    role_labels = dict(DEFAULT_ROLE_LABELS)
    role_labels.update({str(k): str(v) for k, v in (prompts_raw.get("role_labels") or {}).items()})
    prompts = PromptsConfig(
        summary=_check_template("summary", str(prompts_raw.get("summary", DEFAULT_SUMMARY_PROMPT))),
        review=_check_template("review", str(prompts_raw.get("review", DEFAULT_REVIEW_PROMPT))),
        synthesis=_check_template("synthesis", str(prompts_raw.get("synthesis", DEFAULT_SYNTHESIS_PROMPT))),
        role_labels=MappingProxyType(role_labels),
    )

    logger.info("Loaded %d model(s) from %s", len(models), settings_path)
    return AppConfig(defaults=defaults, models=MappingProxyType(models), prompts=prompts)
