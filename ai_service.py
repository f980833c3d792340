import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Union

import config
from ai_fallback import AIFallback, get_ai
from ai_models import GenerationOptions, Message
from errors import GenerationFailed
from file_extraction import UploadedFile, describe_upload, extract_text_from_pdf
from response_normalizer import NormalizedResult, normalize_response
from schemas import EssentialsPayload, RevisionPlanPayload, SurvivalPlanPayload

logger = logging.getLogger(__name__)

DEFAULT_OCR_PROMPT = "Extract all text from this image, maintaining structure and formatting."

SURVIVAL_PLAN_SYSTEM_PROMPT = (
    "You are a study planning expert. Generate clear, structured study survival plans with weekly breakdowns, "
    "skill milestones, and exam strategies. Return ONLY a valid JSON object with this structure: "
    '{"weeklyPlan": [{"week": 1, "focus": "...", "tasks": ["...", "..."], "milestones": ["..."]}], '
    '"dailySchedule": [{"day": "Monday", "timeSlots": [{"time": "9-11 AM", "activity": "..."}]}], '
    '"skillRoadmap": [{"skill": "...", "currentLevel": "...", "targetLevel": "...", "action": "..."}], '
    '"revisionPlan": [{"phase": "...", "duration": "...", "focus": "...", "method": "..."}], '
    '"examStrategy": [{"subject": "...", "priority": "...", "tactics": ["...", "..."]}], '
    '"productivityRules": ["Rule 1", "Rule 2"]}'
)


def _truncate(text: str, limit: int = config.MAX_DOCUMENT_CHARS) -> str:
    return (text or "")[:limit]


def _join(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return "" if value is None else str(value)


async def generate_ai_text_response(
    prompt_or_messages: Union[str, List[Message]],
    options: Optional[GenerationOptions] = None,
    ai: Optional[AIFallback] = None,
) -> str:
    """Send a single prompt or a chat history through the provider fallback chain."""
    ai = ai or get_ai()
    if isinstance(prompt_or_messages, str):
        return await ai.generate(prompt_or_messages, options)
    return await ai.generate_with_history(prompt_or_messages, options)


async def extract_text_from_image(
    image_bytes: bytes,
    mime_type: str,
    prompt: str = DEFAULT_OCR_PROMPT,
    ai: Optional[AIFallback] = None,
) -> str:
    ai = ai or get_ai()
    return await ai.extract_text_from_image(image_bytes, mime_type, prompt)


async def extract_structured_data(text: str, extraction_prompt: str, ai: Optional[AIFallback] = None) -> NormalizedResult:
    messages = [
        Message(role="system", content="You are a data extraction assistant. Return only valid JSON."),
        Message(role="user", content=f"{extraction_prompt}\n\nText to process:\n{_truncate(text)}"),
    ]
    response = await generate_ai_text_response(messages, ai=ai)
    return normalize_response(response)


async def read_document_text(upload: UploadedFile, ai: Optional[AIFallback] = None) -> str:
    """Best-effort text for an uploaded document.

    Falls back to embedding the file itself when text can't be extracted.
    """
    if upload.is_pdf:
        try:
            text = await asyncio.to_thread(extract_text_from_pdf, upload.data)
        except Exception as e:
            logger.warning(f"PDF text extraction failed for '{upload.name}': {e}")
            text = ""
        if text.strip():
            return text
    elif upload.is_image:
        try:
            text = await extract_text_from_image(upload.data, upload.mime_type, ai=ai)
        except GenerationFailed as e:
            logger.warning(f"Image text extraction failed for '{upload.name}': {e}")
            text = ""
        if text.strip():
            return text

    logger.info(f"Embedding '{upload.name}' in the prompt as base64")
    return describe_upload(upload)


async def extract_essentials_from_file(file_text: str, file_name: str, ai: Optional[AIFallback] = None) -> NormalizedResult:
    messages = [
        Message(
            role="system",
            content=(
                "You are an academic analyzer. Extract the core essential topics from the provided "
                "syllabus/document, grouped by importance and mark weightage. "
                "Return ONLY valid JSON with no markdown formatting."
            ),
        ),
        Message(
            role="user",
            content=f"""Analyze this document ({file_name}) and return a JSON object in this exact format:

{{
  "creativeTopics": ["topic1", "topic2"],
  "theoryTopics": ["topic1", "topic2"],
  "numericalTopics": ["topic1", "topic2"],
  "marksDistribution": {{
    "twoMarks": ["short answer question 1"],
    "threeMarks": ["medium question 1"],
    "fourteenMarks": ["long question 1"],
    "sixteenMarks": ["very long question 1"]
  }}
}}

Provide concise bullet points for each array.

Document content:
{_truncate(file_text)}""",
        ),
    ]
    response = await generate_ai_text_response(messages, GenerationOptions(temperature=0.2, max_tokens=2000), ai=ai)
    return normalize_response(response, EssentialsPayload)


async def generate_revision_plan(
    syllabus_text: str,
    preferences: Optional[Dict[str, Any]] = None,
    ai: Optional[AIFallback] = None,
) -> NormalizedResult:
    messages = [
        Message(
            role="system",
            content="You are an expert study planner. Create comprehensive revision plans. Return ONLY valid JSON.",
        ),
        Message(
            role="user",
            content=f"""Create a revision plan for this syllabus. Return JSON in this format:

{{
  "weeks": [
    {{
      "weekNumber": 1,
      "topics": ["topic1", "topic2"],
      "goals": "Weekly goals",
      "activities": ["activity1", "activity2"],
      "assessments": "Assessment plan"
    }}
  ],
  "studyTips": ["tip1", "tip2"],
  "resources": ["resource1", "resource2"]
}}

Syllabus: {_truncate(syllabus_text)}
Preferences: {json.dumps(preferences or {})}""",
        ),
    ]
    response = await generate_ai_text_response(messages, GenerationOptions(temperature=0.3), ai=ai)
    return normalize_response(response, RevisionPlanPayload)


def build_survival_plan_prompt(skills, stress_level, time_available, exam_dates, goals, deadline=None) -> str:
    lines = [
        "Generate a weekly survival plan for a student using the following details:",
        f"Skills: {_join(skills)}",
        f"Stress Level: {_join(stress_level)}",
        f"Time Available: {_join(time_available)}",
        f"Exam Dates: {_join(exam_dates)}",
        f"Goals: {_join(goals)}",
    ]
    if deadline:
        lines.append(f"Deadline: {_join(deadline)}")
    lines.append("Provide output in bullet points and weekly schedule format.")
    return "\n".join(lines)


async def generate_survival_plan_text(
    skills, stress_level, time_available, exam_dates, goals, ai: Optional[AIFallback] = None
) -> str:
    prompt = build_survival_plan_prompt(skills, stress_level, time_available, exam_dates, goals)
    logger.info("Generating survival plan...")
    return await generate_ai_text_response(prompt, GenerationOptions(temperature=0.3, max_tokens=2000), ai=ai)


async def generate_survival_plan(
    skills, stress_level, time_available, exam_dates, goals, deadline=None, ai: Optional[AIFallback] = None
) -> NormalizedResult:
    prompt = build_survival_plan_prompt(skills, stress_level, time_available, exam_dates, goals, deadline)
    prompt += """ Include:
1. Weekly breakdown with focus areas and tasks
2. Daily schedule with time slots
3. Skill development roadmap
4. Revision plan and strategies
5. Exam preparation tactics
6. Productivity tips"""
    messages = [
        Message(role="system", content=SURVIVAL_PLAN_SYSTEM_PROMPT),
        Message(role="user", content=prompt),
    ]
    logger.info("Generating structured survival plan...")
    response = await generate_ai_text_response(messages, GenerationOptions(temperature=0.3, max_tokens=3000), ai=ai)
    return normalize_response(response, SurvivalPlanPayload)


async def doubt_solver(question: str, context: str = "", ai: Optional[AIFallback] = None) -> str:
    context_block = f"Context: {_truncate(context)}\n\n" if context else ""
    messages = [
        Message(
            role="system",
            content="You are an expert tutor helping students understand concepts. Provide clear, detailed explanations.",
        ),
        Message(role="user", content=f"{context_block}Question: {question}\n\nProvide a comprehensive explanation."),
    ]
    return await generate_ai_text_response(messages, GenerationOptions(temperature=0.4, max_tokens=2048), ai=ai)
