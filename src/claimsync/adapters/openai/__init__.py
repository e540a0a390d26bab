"""OpenAI-backed classification adapter."""

from .classifier import ModelBackedClassifier, build_classifier
from .schema import ClassificationPayload

__all__ = ["ClassificationPayload", "ModelBackedClassifier", "build_classifier"]
