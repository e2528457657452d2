from .gemini_client import GeminiTextModel, TextModel
from .study_assistant import CHAT_FALLBACK, StudyAssistant, parse_model_json

__all__ = [
    "CHAT_FALLBACK",
    "GeminiTextModel",
    "StudyAssistant",
    "TextModel",
    "parse_model_json",
]
