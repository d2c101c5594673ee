"""
Thin adapter over the Gemini API.

Three calls are exposed:

- analyze_question_image(): classify a photographed question and transcribe it
- search_study_resources(): search-grounded summary of a topic, with source links
- generate_test_question_image(): synthesize a new practice question as an image

Every function takes an optional ``client`` (a ``genai.Client`` or anything
with the same ``models.generate_content`` method) so callers can share one
client and tests can substitute a fake.
"""
import base64
import json
import logging
from typing import Any, List, Optional

from google import genai
from google.genai import types

from question_pool.config import (
    ANALYSIS_MODEL,
    IMAGE_ASPECT_RATIO,
    IMAGE_MODEL,
    SEARCH_MODEL,
    load_settings,
)
from question_pool.images import to_data_url
from question_pool.models import (
    IMAGE_RESOLUTIONS,
    AIAnalysisResult,
    SearchResult,
    StudyResources,
    Subject,
)
from question_pool.prompts import (
    EXPLANATION_DESCRIPTION,
    EXTRACTED_TEXT_DESCRIPTION,
    NO_INFO_TEXT,
    SUBJECT_DESCRIPTION,
    TOPIC_DESCRIPTION,
    build_analysis_prompt,
    build_image_prompt,
    build_search_prompt,
)

logger = logging.getLogger(__name__)


class AIServiceError(RuntimeError):
    """The AI service answered, but not with something we can use."""


class MissingAPIKeyError(RuntimeError):
    pass


def get_client(api_key: Optional[str] = None) -> genai.Client:
    key = api_key or load_settings().api_key
    if not key:
        raise MissingAPIKeyError("no Gemini API key configured")
    return genai.Client(api_key=key)


ANALYSIS_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "subject": types.Schema(
            type=types.Type.STRING,
            enum=[s.value for s in Subject],
            description=SUBJECT_DESCRIPTION,
        ),
        "topic": types.Schema(type=types.Type.STRING, description=TOPIC_DESCRIPTION),
        "extractedText": types.Schema(
            type=types.Type.STRING, description=EXTRACTED_TEXT_DESCRIPTION
        ),
        "explanation": types.Schema(
            type=types.Type.STRING, description=EXPLANATION_DESCRIPTION
        ),
    },
    required=["subject", "topic", "extractedText"],
)


def parse_analysis(text: str) -> AIAnalysisResult:
    """Turn the JSON body of an analysis response into an AIAnalysisResult."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise AIServiceError(f"analysis response is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise AIServiceError("analysis response is not a JSON object")

    raw_subject = data.get("subject")
    try:
        subject = Subject(raw_subject)
    except ValueError:
        logger.warning("Unknown subject %r in analysis, using %s", raw_subject, Subject.DIGER.value)
        subject = Subject.DIGER

    return AIAnalysisResult(
        subject=subject,
        topic=data.get("topic") or "",
        extracted_text=data.get("extractedText") or "",
        explanation=data.get("explanation") or None,
    )


def analyze_question_image(
    image_bytes: bytes,
    mime_type: str,
    client: Optional[Any] = None,
) -> AIAnalysisResult:
    """Identify subject and topic of a question image and extract its text."""
    try:
        client = client or get_client()
        response = client.models.generate_content(
            model=ANALYSIS_MODEL,
            contents=[
                types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                build_analysis_prompt(),
            ],
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=ANALYSIS_SCHEMA,
            ),
        )

        text = getattr(response, "text", None)
        if not text:
            raise AIServiceError("AI did not return a valid response.")
        result = parse_analysis(text)
        logger.info("Analyzed image as %s / %s", result.subject.value, result.topic)
        return result

    except Exception:
        logger.exception("Error analyzing image")
        raise


def extract_grounding_links(response: Any) -> List[SearchResult]:
    """Web sources from the first candidate's grounding chunks."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []

    links: List[SearchResult] = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", None)
        title = getattr(web, "title", None)
        if uri and title:
            links.append(SearchResult(title=title, uri=uri))
    return links


def search_study_resources(topic: str, client: Optional[Any] = None) -> StudyResources:
    """Search-grounded study summary for a topic."""
    try:
        client = client or get_client()
        response = client.models.generate_content(
            model=SEARCH_MODEL,
            contents=build_search_prompt(topic),
            config=types.GenerateContentConfig(
                tools=[types.Tool(google_search=types.GoogleSearch())],
            ),
        )

        text = getattr(response, "text", None) or NO_INFO_TEXT
        links = extract_grounding_links(response)
        logger.info("Found %d resource links for %r", len(links), topic)
        return StudyResources(text=text, links=links)

    except Exception:
        logger.exception("Error searching resources")
        raise


def first_image_data_url(response: Any) -> Optional[str]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    content = getattr(candidates[0], "content", None)
    for part in getattr(content, "parts", None) or []:
        inline = getattr(part, "inline_data", None)
        data = getattr(inline, "data", None)
        if not data:
            continue
        if isinstance(data, str):
            # already base64
            data = base64.b64decode(data)
        return to_data_url(data, getattr(inline, "mime_type", None) or "image/png")
    return None


def generate_test_question_image(
    subject: Subject,
    topic: str,
    resolution: str = "1K",
    client: Optional[Any] = None,
) -> str:
    """Generate a new practice question image; returns it as a data URL."""
    if resolution not in IMAGE_RESOLUTIONS:
        raise ValueError(f"resolution must be one of {IMAGE_RESOLUTIONS}, got {resolution!r}")

    try:
        client = client or get_client()
        response = client.models.generate_content(
            model=IMAGE_MODEL,
            contents=build_image_prompt(subject, topic),
            config=types.GenerateContentConfig(
                image_config=types.ImageConfig(
                    aspect_ratio=IMAGE_ASPECT_RATIO,
                    image_size=resolution,
                ),
            ),
        )

        image_url = first_image_data_url(response)
        if image_url is None:
            raise AIServiceError("Görsel oluşturulamadı.")
        logger.info("Generated %s question image for %s / %s", resolution, Subject(subject).value, topic)
        return image_url

    except Exception:
        logger.exception("Error generating question image")
        raise
