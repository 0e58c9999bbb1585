"""
Data models for photo analysis results.

Parsed from the JSON payloads returned by the remote model.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from photo_coach.core.cost import CostRecord


BOX_TYPES = ("composition", "lighting", "focus", "exposure", "color")
BOX_SEVERITIES = ("critical", "moderate", "minor")
MESSAGE_ROLES = ("user", "assistant")


def _require(data: Dict[str, Any], key: str, path: str) -> Any:
    if not isinstance(data, dict):
        raise ValueError(f"'{path}' must be an object")
    if key not in data or data[key] is None:
        raise ValueError(f"Missing required '{key}' in {path}")
    return data[key]


def _strings(value: Any) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(str(item) for item in value)


def _percent(value: Any) -> float:
    return min(100.0, max(0.0, float(value)))


@dataclass(frozen=True)
class Scores:
    """Per-category scores assigned by the model."""
    composition: float
    lighting: float
    creativity: float
    technique: float
    subject_impact: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Scores":
        return cls(**{
            key: float(_require(data, key, "scores"))
            for key in ("composition", "lighting", "creativity", "technique", "subject_impact")
        })


@dataclass(frozen=True)
class Critique:
    """Written feedback per category."""
    composition: str
    lighting: str
    technique: str
    overall: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Critique":
        return cls(**{
            key: str(_require(data, key, "critique"))
            for key in ("composition", "lighting", "technique", "overall")
        })


@dataclass(frozen=True)
class SettingsEstimate:
    """Best guess at the camera settings used."""
    focal_length: str
    aperture: str
    shutter_speed: str
    iso: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SettingsEstimate":
        return cls(**{
            key: str(_require(data, key, "settings_estimate"))
            for key in ("focal_length", "aperture", "shutter_speed", "iso")
        })


@dataclass(frozen=True)
class BoundingBox:
    """A flaw located in the photo, in percentages of the image size."""
    type: str
    severity: str
    x: float
    y: float
    width: float
    height: float
    description: str
    suggestion: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BoundingBox":
        box_type = str(_require(data, "type", "bounding_boxes[]"))
        if box_type not in BOX_TYPES:
            raise ValueError(f"Unknown bounding box type: {box_type}")
        severity = str(_require(data, "severity", "bounding_boxes[]"))
        if severity not in BOX_SEVERITIES:
            raise ValueError(f"Unknown bounding box severity: {severity}")
        return cls(
            type=box_type,
            severity=severity,
            x=_percent(_require(data, "x", "bounding_boxes[]")),
            y=_percent(_require(data, "y", "bounding_boxes[]")),
            width=_percent(_require(data, "width", "bounding_boxes[]")),
            height=_percent(_require(data, "height", "bounding_boxes[]")),
            description=str(_require(data, "description", "bounding_boxes[]")),
            suggestion=str(_require(data, "suggestion", "bounding_boxes[]"))
        )


@dataclass(frozen=True)
class ThinkingProcess:
    """The model's documented reasoning."""
    observations: Tuple[str, ...] = ()
    reasoning_steps: Tuple[str, ...] = ()
    priority_fixes: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ThinkingProcess":
        return cls(
            observations=_strings(_require(data, "observations", "thinking")),
            reasoning_steps=_strings(_require(data, "reasoning_steps", "thinking")),
            priority_fixes=_strings(_require(data, "priority_fixes", "thinking"))
        )


@dataclass(frozen=True)
class PhotoAnalysis:
    """Structured critique of a single photo."""
    scores: Scores
    critique: Critique
    strengths: Tuple[str, ...]
    improvements: Tuple[str, ...]
    settings_estimate: SettingsEstimate
    thinking: ThinkingProcess
    learning_path: Tuple[str, ...] = ()
    bounding_boxes: Tuple[BoundingBox, ...] = ()
    cost: Optional[CostRecord] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PhotoAnalysis":
        """Parse an analysis payload.

        Raises:
            ValueError: If a required section is missing or malformed
        """
        return cls(
            scores=Scores.from_dict(_require(data, "scores", "analysis")),
            critique=Critique.from_dict(_require(data, "critique", "analysis")),
            strengths=_strings(_require(data, "strengths", "analysis")),
            improvements=_strings(_require(data, "improvements", "analysis")),
            settings_estimate=SettingsEstimate.from_dict(_require(data, "settings_estimate", "analysis")),
            thinking=ThinkingProcess.from_dict(_require(data, "thinking", "analysis")),
            learning_path=_strings(data.get("learning_path")),
            bounding_boxes=tuple(
                BoundingBox.from_dict(box) for box in data.get("bounding_boxes") or ()
            )
        )

    def with_cost(self, cost: CostRecord) -> "PhotoAnalysis":
        return replace(self, cost=cost)


@dataclass(frozen=True)
class MentorMessage:
    """One turn of the mentor chat transcript."""
    role: str
    content: str
    thinking: Optional[ThinkingProcess] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        if self.role not in MESSAGE_ROLES:
            raise ValueError(f"role must be one of: {list(MESSAGE_ROLES)}")


@dataclass(frozen=True)
class MentorReply:
    """Answer to a follow-up question, with its cost."""
    answer: str
    thinking: ThinkingProcess
    cost: CostRecord


def transcript(messages: List[MentorMessage]) -> str:
    """Render chat history as plain text for the prompt."""
    return "\n".join(
        f"{'User' if m.role == 'user' else 'Mentor'}: {m.content}" for m in messages
    )
