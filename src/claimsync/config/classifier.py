"""Classifier selection and model settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Literal

from .env import optional_env_var
from .errors import ConfigurationError, MissingConfigurationError

DEFAULT_OPENAI_MODEL: Final[str] = "gpt-4o-mini"
DEFAULT_CLASSIFIER_TIMEOUT_SECONDS: Final[float] = 20.0
_PLACEHOLDER_KEYS: Final[frozenset[str]] = frozenset({"your_openai_api_key_here", "changeme"})

type ClassifierBackend = Literal["heuristic", "model"]


@dataclass(frozen=True, slots=True)
class ClassifierConfig:
    backend: ClassifierBackend = "heuristic"
    api_key: str | None = None
    model: str = DEFAULT_OPENAI_MODEL
    timeout_seconds: float = DEFAULT_CLASSIFIER_TIMEOUT_SECONDS


def get_classifier_config() -> ClassifierConfig:
    """Resolve the classifier backend.

    ``CLASSIFIER`` selects the backend explicitly. Without it the model-backed
    classifier is used whenever a usable ``OPENAI_API_KEY`` is present.
    """

    requested = optional_env_var("CLASSIFIER")
    api_key = optional_env_var("OPENAI_API_KEY")
    if api_key in _PLACEHOLDER_KEYS:
        api_key = None
    model = optional_env_var("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL

    if requested is None:
        backend: ClassifierBackend = "model" if api_key else "heuristic"
    elif requested in ("heuristic", "model"):
        backend = requested
    else:
        raise ConfigurationError(f"CLASSIFIER must be 'heuristic' or 'model', got {requested!r}")

    if backend == "model" and api_key is None:
        raise MissingConfigurationError("Missing configuration for: OPENAI_API_KEY")

    return ClassifierConfig(backend=backend, api_key=api_key, model=model)
