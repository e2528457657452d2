from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

from src.ingestion.errors import ModelAdapterError
from src.ingestion.models import Study

from .gemini_client import TextModel

logger = logging.getLogger(__name__)

CHAT_FALLBACK = "Sorry, I can't generate a response right now. Please try again later."
MISSING_INPUT_ERROR = "A search query or study ID is required."
MODEL_FAILURE_ERROR = "AI response failed"

ABSTRACT_PREVIEW_CHARS = 300
ENHANCE_MIN_QUERY_CHARS = 4

_FENCE_RE = re.compile(r"```(?:json)?", flags=re.IGNORECASE)


def parse_model_json(text: Optional[str]) -> Any:
    """
    Best-effort JSON parsing for model output.

    Strips markdown code fences, then falls back to decoding the first JSON
    array/object embedded in the text. Returns None when nothing parses.
    """
    if not text:
        return None
    cleaned = _FENCE_RE.sub("", text).strip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    starts = [pos for pos in (cleaned.find("["), cleaned.find("{")) if pos != -1]
    if not starts:
        return None
    try:
        obj, _idx = json.JSONDecoder().raw_decode(cleaned[min(starts):])
        return obj
    except json.JSONDecodeError:
        return None


def _study_context(study: Study) -> str:
    abstract = study.abstract[:ABSTRACT_PREVIEW_CHARS] + "..." if study.abstract else "N/A"
    return (
        f"Currently viewing study: {study.id} - {study.title}\n"
        f"(Type: {study.exp_type}, Organism: {study.organism}, Year: {study.year}).\n"
        f"Abstract summary: {abstract}"
    )


def _coerce_recommendations(parsed: Any) -> List[Dict[str, str]]:
    if isinstance(parsed, dict):
        parsed = parsed.get("recommendations")
    if not isinstance(parsed, list):
        return []
    recommendations: List[Dict[str, str]] = []
    for entry in parsed:
        if not isinstance(entry, dict) or not entry.get("id"):
            continue
        recommendations.append(
            {
                "id": str(entry["id"]).strip(),
                "title": str(entry.get("title") or "").strip(),
                "reason": str(entry.get("reason") or "").strip(),
            }
        )
    return recommendations


class StudyAssistant:
    """Prompt building and defensive parsing around a text model."""

    def __init__(self, model: TextModel, *, language: str = "English") -> None:
        self.model = model
        self.language = language

    @property
    def model_name(self) -> str:
        return self.model.model_name

    def chat(self, message: str, context: Optional[Study] = None) -> str:
        """Free-text answer; model failures yield a fallback message."""
        context_prompt = _study_context(context) if context else "You are not viewing a specific study currently."
        prompt = (
            "You are a bioinformatics expert.\n"
            f"{context_prompt}\n\n"
            f'User Question: "{message}"\n\n'
            f"Answer in {self.language}. Be professional, concise (3-6 sentences), and helpful.\n"
            "Return the response as a simple string, NOT JSON."
        )
        try:
            return self.model.generate(prompt).strip()
        except ModelAdapterError as e:
            logger.warning("Chat generation failed: %s", e)
            return CHAT_FALLBACK

    def recommend(self, *, query: Optional[str] = None, context: Optional[Study] = None) -> Dict[str, Any]:
        """Recommend related GEO/SRA studies, similar to ``context`` when given."""
        output_format = (
            "Output MUST be a JSON array in this format:\n"
            '[{"id": "GSExxxxx", "title": "Study title", '
            f'"reason": "Why it is recommended (one sentence in {self.language})"}}]'
        )
        if context is not None:
            source = "similar_study"
            abstract = (context.abstract or "")[:ABSTRACT_PREVIEW_CHARS]
            prompt = (
                "You are a bioinformatics expert. Recommend 5 datasets or studies similar to the "
                "reference study below in research topic, experimental method and organism.\n\n"
                "[Reference study]\n"
                f"Title: {context.title}\n"
                f"ID: {context.id}\n"
                f"Summary: {abstract}...\n"
                f"Keywords: {context.exp_type}, {context.organism}\n\n"
                f"{output_format}"
            )
        elif query and query.strip():
            source = "query"
            prompt = (
                f'The user is interested in "{query.strip()}". '
                "Recommend 5 recent or important NCBI GEO/SRA studies on this topic.\n\n"
                f"{output_format}"
            )
        else:
            return {"recommendations": [], "from": "none", "error": MISSING_INPUT_ERROR}

        try:
            text = self.model.generate(prompt, json_mode=True)
        except ModelAdapterError as e:
            logger.warning("Recommendation generation failed: %s", e)
            return {"recommendations": [], "from": source, "error": MODEL_FAILURE_ERROR}
        return {"recommendations": _coerce_recommendations(parse_model_json(text)), "from": source}

    def enhance_query(self, query: str) -> str:
        """Rewrite a natural-language query into E-utilities keywords; keeps the input on failure."""
        original = query.strip()
        if len(original) < ENHANCE_MIN_QUERY_CHARS:
            return original
        prompt = (
            "Convert the following natural language query into the best keyword combination "
            "for NCBI ESearch.\n"
            'Output MUST be a valid JSON object: {"keywords": "result string here"}\n\n'
            f"Query: {original}"
        )
        try:
            parsed = parse_model_json(self.model.generate(prompt, json_mode=True))
        except ModelAdapterError as e:
            logger.warning("Query enhancement failed, using original query: %s", e)
            return original
        keywords = parsed.get("keywords") if isinstance(parsed, dict) else None
        if isinstance(keywords, str) and keywords.strip():
            return keywords.strip()
        return original
