"""
Unit tests for analysis models and prompts.
"""

import pytest

from photo_coach.core.cost import CostRecord
from photo_coach.sdk.models import BoundingBox, MentorMessage, PhotoAnalysis, ThinkingProcess
from photo_coach.sdk.prompts import (
    ANALYSIS_SCHEMA,
    PHOTOGRAPHY_PRINCIPLES,
    STATIC_PROMPT_TOKEN_ESTIMATE,
    build_analysis_prompt,
    build_mentor_prompt,
    build_retouch_prompt,
)

from conftest import make_analysis_payload


class TestPhotoAnalysis:
    """Test parsing of analysis payloads."""

    def test_full_payload(self, analysis_payload):
        """Verify every section is parsed."""
        analysis = PhotoAnalysis.from_dict(analysis_payload)

        assert analysis.scores.lighting == 5.5
        assert analysis.scores.subject_impact == 7
        assert analysis.critique.overall == "Strong idea held back by the light."
        assert analysis.strengths == ("Clear subject",)
        assert analysis.improvements[0] == "Shoot at golden hour"
        assert analysis.learning_path == ("Exposure triangle",)
        assert analysis.settings_estimate.aperture == "f/8"
        assert analysis.thinking.priority_fixes == ("Recover highlights",)
        assert analysis.bounding_boxes[0].severity == "critical"
        assert analysis.cost is None

    def test_optional_sections(self):
        """Verify learning path and bounding boxes are optional."""
        payload = make_analysis_payload()
        del payload["learning_path"]
        del payload["bounding_boxes"]

        analysis = PhotoAnalysis.from_dict(payload)

        assert analysis.learning_path == ()
        assert analysis.bounding_boxes == ()

    @pytest.mark.parametrize("section", ["scores", "critique", "strengths", "settings_estimate", "thinking"])
    def test_missing_required_section(self, section):
        """Verify a missing required section is rejected."""
        payload = make_analysis_payload()
        del payload[section]
        with pytest.raises(ValueError, match=f"Missing required '{section}'"):
            PhotoAnalysis.from_dict(payload)

    def test_missing_score(self):
        payload = make_analysis_payload()
        del payload["scores"]["technique"]
        with pytest.raises(ValueError, match="Missing required 'technique' in scores"):
            PhotoAnalysis.from_dict(payload)

    def test_with_cost(self, analysis_payload):
        """Verify attaching a cost returns a new analysis."""
        analysis = PhotoAnalysis.from_dict(analysis_payload)
        costed = analysis.with_cost(CostRecord.zero())
        assert costed.cost == CostRecord.zero()
        assert analysis.cost is None


class TestBoundingBox:
    """Test bounding box validation."""

    def _box(self, **overrides):
        data = make_analysis_payload()["bounding_boxes"][0]
        data.update(overrides)
        return data

    def test_coordinates_clamped(self):
        """Verify percentages are clamped to 0-100."""
        box = BoundingBox.from_dict(self._box(x=-5, width=140))
        assert box.x == 0.0
        assert box.width == 100.0

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unknown bounding box type: texture"):
            BoundingBox.from_dict(self._box(type="texture"))

    def test_unknown_severity(self):
        with pytest.raises(ValueError, match="Unknown bounding box severity: fatal"):
            BoundingBox.from_dict(self._box(severity="fatal"))


class TestMentorMessage:
    """Test chat message validation."""

    def test_valid_roles(self):
        assert MentorMessage(role="user", content="hi").role == "user"
        assert MentorMessage(role="assistant", content="hello", thinking=ThinkingProcess()).thinking == ThinkingProcess()

    def test_invalid_role(self):
        with pytest.raises(ValueError, match="role must be one of"):
            MentorMessage(role="system", content="x")


class TestPrompts:
    """Test prompt construction."""

    def test_static_estimate_derived_from_principles(self):
        """Verify the static estimate tracks the principles text."""
        assert STATIC_PROMPT_TOKEN_ESTIMATE == len(PHOTOGRAPHY_PRINCIPLES) // 4
        assert STATIC_PROMPT_TOKEN_ESTIMATE > 0

    def test_analysis_prompt_contains_principles(self):
        prompt = build_analysis_prompt()
        assert PHOTOGRAPHY_PRINCIPLES in prompt
        assert "BOUNDING BOXES" in prompt

    def test_retouch_prompt_lists_improvements(self):
        prompt = build_retouch_prompt(["Lift shadows", "Straighten horizon"])
        assert "Lift shadows, Straighten horizon" in prompt

    def test_mentor_prompt_includes_context(self, analysis_payload):
        """Verify the mentor prompt carries scores, issues and history."""
        analysis = PhotoAnalysis.from_dict(analysis_payload)
        history = [
            MentorMessage(role="user", content="Is the sky too bright?"),
            MentorMessage(role="assistant", content="Yes, it is clipped."),
        ]

        prompt = build_mentor_prompt("How do I fix it?", analysis, history)

        assert "Composition Score: 7/10" in prompt
        assert "Lighting Score: 5.5/10" in prompt
        assert "Shoot at golden hour, Use a faster shutter, Lower the horizon" in prompt
        assert "User: Is the sky too bright?" in prompt
        assert "Mentor: Yes, it is clipped." in prompt
        assert 'The photographer now asks: "How do I fix it?"' in prompt

    def test_mentor_prompt_without_history(self, analysis_payload):
        analysis = PhotoAnalysis.from_dict(analysis_payload)
        assert "Previous conversation" not in build_mentor_prompt("Why?", analysis)

    def test_analysis_schema_requires_core_sections(self):
        assert set(ANALYSIS_SCHEMA["required"]) >= {"scores", "critique", "thinking"}
