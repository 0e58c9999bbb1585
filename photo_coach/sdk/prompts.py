"""
Prompt text and response schemas.

PHOTOGRAPHY_PRINCIPLES is identical on every analysis request; it is the
portion assumed cacheable by the projected cost model.
"""

from typing import Iterable, List, Optional

from photo_coach.core.token_counter import estimate_static_prompt_tokens
from .models import MentorMessage, PhotoAnalysis, transcript


PHOTOGRAPHY_PRINCIPLES = """
You are an expert photography coach. Your goal is to provide constructive criticism to help the photographer improve. You have deep knowledge of:

COMPOSITION RULES:
- Rule of Thirds: Divide frame into 9 equal parts, place subjects at intersections
- Leading Lines: Use natural lines to guide viewer's eye to subject
- Symmetry & Patterns: Create visual harmony through repetition
- Framing: Use environmental elements to frame the subject
- Negative Space: Empty areas that give subjects room to breathe
- Golden Ratio: 1.618:1 proportions for pleasing compositions

LIGHTING FUNDAMENTALS:
- Golden Hour: Warm, soft light during sunrise/sunset
- Blue Hour: Cool, diffused light before sunrise/after sunset
- Hard Light: Creates strong shadows, high contrast
- Soft Light: Diffused, flattering for portraits
- Backlighting: Subject lit from behind, creates rim light
- Fill Light: Reduces shadows in high-contrast scenes

TECHNICAL GUIDELINES:
- Shutter Speed: Fast (>1/500s) freezes motion, slow creates blur
- Aperture: Wide (f/1.4-f/2.8) for shallow depth, narrow (f/8-f/16) for sharpness
- ISO: Low (100-400) for quality, high (1600+) for low light
- Focus: Sharp on subject's eyes (portraits) or primary point of interest
- White Balance: Match light temperature for accurate colors

CREATIVE ELEMENTS:
- Storytelling: Every photo should convey emotion or narrative
- Subject Impact: Clear focal point that draws immediate attention
- Color Harmony: Complementary or analogous color schemes
- Texture & Detail: Visual interest through surface qualities
"""

STATIC_PROMPT_TOKEN_ESTIMATE = estimate_static_prompt_tokens(PHOTOGRAPHY_PRINCIPLES)

ANALYSIS_INSTRUCTIONS = """
IMPORTANT INSTRUCTIONS FOR BOUNDING BOXES:
1. Bounding boxes must ONLY identify specific flaws, errors, or distractions (e.g., "distracting trash can", "overexposed sky", "soft focus on eyes").
2. Do NOT create bounding boxes for positive elements or strengths.
3. 'severity' indicates the negative impact of the flaw:
   - 'critical': A major error that ruins the photo.
   - 'moderate': A noticeable distraction.
   - 'minor': A small detail to polish.
4. Provide coordinates as percentages (0-100) of the image dimensions.

THINKING PROCESS:
Document your analysis methodology with:
- 3-6 key observations you noticed first
- 3-5 reasoning steps explaining your evaluation approach
- 3-5 priority fixes ranked by impact
"""


def _string_array(description: Optional[str] = None) -> dict:
    schema = {"type": "ARRAY", "items": {"type": "STRING"}}
    if description:
        schema["description"] = description
    return schema


def _object(properties: dict, description: Optional[str] = None) -> dict:
    schema = {"type": "OBJECT", "properties": properties, "required": list(properties)}
    if description:
        schema["description"] = description
    return schema


THINKING_SCHEMA = _object({
    "observations": _string_array("Initial visual observations"),
    "reasoning_steps": _string_array("Steps taken to evaluate the photo"),
    "priority_fixes": _string_array("Ranked list of most important fixes"),
}, description="The model's reasoning process")

BOUNDING_BOX_SCHEMA = _object({
    "type": {"type": "STRING", "enum": ["composition", "lighting", "focus", "exposure", "color"]},
    "severity": {"type": "STRING", "enum": ["critical", "moderate", "minor"]},
    "x": {"type": "NUMBER", "description": "Percentage from left edge (0-100)"},
    "y": {"type": "NUMBER", "description": "Percentage from top edge (0-100)"},
    "width": {"type": "NUMBER", "description": "Percentage of image width (0-100)"},
    "height": {"type": "NUMBER", "description": "Percentage of image height (0-100)"},
    "description": {"type": "STRING", "description": "Description of the FLAW or ERROR"},
    "suggestion": {"type": "STRING", "description": "How to FIX this specific issue"},
})

ANALYSIS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "scores": _object({
            key: {"type": "NUMBER"}
            for key in ("composition", "lighting", "creativity", "technique", "subject_impact")
        }),
        "critique": _object({
            key: {"type": "STRING"}
            for key in ("composition", "lighting", "technique", "overall")
        }),
        "strengths": _string_array(),
        "improvements": _string_array(),
        "learning_path": _string_array(
            "3-5 specific photography skills or concepts the photographer should learn next to improve."
        ),
        "settings_estimate": _object({
            key: {"type": "STRING"}
            for key in ("focal_length", "aperture", "shutter_speed", "iso")
        }),
        "bounding_boxes": {"type": "ARRAY", "items": BOUNDING_BOX_SCHEMA},
        "thinking": THINKING_SCHEMA,
    },
    "required": [
        "scores", "critique", "strengths", "improvements",
        "learning_path", "settings_estimate", "thinking",
    ],
}

MENTOR_SCHEMA = _object({
    "answer": {"type": "STRING"},
    "thinking": THINKING_SCHEMA,
})


def build_analysis_prompt() -> str:
    return (
        f"Analyze this photograph based on the following principles:\n{PHOTOGRAPHY_PRINCIPLES}\n\n"
        f"Provide a detailed analysis in JSON format according to the schema.\n{ANALYSIS_INSTRUCTIONS}"
    )


def build_retouch_prompt(improvements: Iterable[str]) -> str:
    improvements_text = ", ".join(improvements)
    return (
        "Act as a professional photo retoucher. Improve this image by addressing the following "
        f"specific feedback: {improvements_text}. Enhance technical qualities like lighting, exposure, "
        "and color balance while maintaining the original subject and composition. "
        "Return a high-quality photorealistic image."
    )


def build_mentor_prompt(
    question: str,
    analysis: PhotoAnalysis,
    history: Optional[List[MentorMessage]] = None
) -> str:
    """Build the follow-up prompt from the earlier analysis and chat history."""
    context_summary = (
        "Photography Analysis Context:\n"
        f"- Composition Score: {analysis.scores.composition:g}/10\n"
        f"- Lighting Score: {analysis.scores.lighting:g}/10\n"
        f"- Key Issues: {', '.join(analysis.improvements[:3])}\n"
        f"- Overall Critique: {analysis.critique.overall}"
    )
    history_text = transcript(history) if history else ""
    history_block = f"Previous conversation:\n{history_text}\n\n" if history_text else ""

    return (
        "You are an expert photography mentor. A photographer has uploaded their image "
        "and you've already analyzed it.\n\n"
        f"{context_summary}\n\n"
        f"{history_block}"
        f'The photographer now asks: "{question}"\n\n'
        "As their mentor, respond directly and personally. Reference the image and their "
        "specific scores/issues. Show your reasoning process.\n\n"
        'Return response as JSON:\n'
        '{ "answer": "...", "thinking": { "observations": [...], "reasoning_steps": [...], '
        '"priority_fixes": [...] } }'
    )
