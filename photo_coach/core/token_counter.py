"""
Token counting and usage tracking.

Normalises the usage block returned by the remote model.
"""

from dataclasses import dataclass
from typing import Any


# Average characters per token used for static prompt size estimates
CHARS_PER_TOKEN = 4


def _count(value: Any) -> int:
    if value is None:
        return 0
    try:
        return max(0, int(value))
    except (TypeError, ValueError, OverflowError):
        # Unparseable counts ("n/a", NaN, inf) are treated as not reported
        return 0


@dataclass(frozen=True)
class UsageMetadata:
    """Token usage reported for a single request.

    Contains exact token counts as reported by the remote service.
    Counts are never negative and cached tokens never exceed prompt tokens.
    """
    raw_prompt_tokens: int = 0
    output_tokens: int = 0
    cached_prompt_tokens: int = 0
    total_tokens: int = 0

    def __post_init__(self):
        """Clamp counts to valid ranges instead of failing."""
        raw = _count(self.raw_prompt_tokens)
        object.__setattr__(self, "raw_prompt_tokens", raw)
        object.__setattr__(self, "output_tokens", _count(self.output_tokens))
        object.__setattr__(self, "cached_prompt_tokens", min(_count(self.cached_prompt_tokens), raw))
        object.__setattr__(self, "total_tokens", _count(self.total_tokens))

    @property
    def is_empty(self) -> bool:
        """True when the response carried no usable prompt usage."""
        return self.raw_prompt_tokens == 0

    @classmethod
    def from_response(cls, response: Any) -> "UsageMetadata":
        """Extract usage from a model response.

        Args:
            response: Response object exposing ``usage_metadata``

        Returns:
            UsageMetadata, all zeros when the response has no usage block
        """
        usage = getattr(response, "usage_metadata", None)
        if usage is None:
            return cls()
        return cls(
            raw_prompt_tokens=getattr(usage, "prompt_token_count", None),
            output_tokens=getattr(usage, "candidates_token_count", None),
            cached_prompt_tokens=getattr(usage, "cached_content_token_count", None),
            total_tokens=getattr(usage, "total_token_count", None)
        )


def estimate_static_prompt_tokens(text: str) -> int:
    """Estimate the token size of fixed instructional text."""
    return len(text) // CHARS_PER_TOKEN
