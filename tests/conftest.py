"""
Shared fixtures for Photo Coach tests.
"""

import json
from types import SimpleNamespace

import pytest


def make_analysis_payload(**overrides) -> dict:
    """Build a complete analysis payload as returned by the model."""
    payload = {
        "scores": {
            "composition": 7,
            "lighting": 5.5,
            "creativity": 8,
            "technique": 6,
            "subject_impact": 7,
        },
        "critique": {
            "composition": "Subject sits on a thirds line.",
            "lighting": "Harsh midday light.",
            "technique": "Slight motion blur.",
            "overall": "Strong idea held back by the light.",
        },
        "strengths": ["Clear subject"],
        "improvements": ["Shoot at golden hour", "Use a faster shutter", "Lower the horizon"],
        "learning_path": ["Exposure triangle"],
        "settings_estimate": {
            "focal_length": "35mm",
            "aperture": "f/8",
            "shutter_speed": "1/60s",
            "iso": "200",
        },
        "bounding_boxes": [
            {
                "type": "exposure",
                "severity": "critical",
                "x": 10,
                "y": 5,
                "width": 80,
                "height": 20,
                "description": "Blown-out sky",
                "suggestion": "Use a graduated ND filter",
            }
        ],
        "thinking": {
            "observations": ["Bright sky"],
            "reasoning_steps": ["Checked histogram"],
            "priority_fixes": ["Recover highlights"],
        },
    }
    payload.update(overrides)
    return payload


def make_response(payload=None, prompt=3000, output=500, cached=0, total=None, usage=True):
    """Build a fake generate_content response."""
    usage_metadata = None
    if usage:
        usage_metadata = SimpleNamespace(
            prompt_token_count=prompt,
            candidates_token_count=output,
            cached_content_token_count=cached,
            total_token_count=prompt + output if total is None else total,
        )
    return SimpleNamespace(
        text=json.dumps(payload) if payload is not None else None,
        usage_metadata=usage_metadata,
        candidates=[],
    )


class FakeAPIError(Exception):
    """Remote error carrying a structured status code."""

    def __init__(self, code: int, message: str = "error"):
        super().__init__(f"{code} {message}")
        self.code = code
        self.message = message


@pytest.fixture
def analysis_payload():
    return make_analysis_payload()
