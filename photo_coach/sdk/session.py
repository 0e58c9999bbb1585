"""
Coaching session controller.

Owns the current photo, its analysis, the mentor chat transcript and the
session cost ledger. Presentation layers receive the ledger from here
rather than reaching into shared state.
"""

import logging
from typing import List, Optional, Tuple

from ..core.cost import compute_cost
from ..core.ledger import SessionLedger
from ..core.pricing import PricingEntry
from ..core.simulation import DEFAULT_SCALE_VOLUME, ScaleSimulationResult, simulate_scale
from .gemini_client import GeminiCoachClient, ImageData
from .models import MentorMessage, MentorReply, PhotoAnalysis
from .prompts import STATIC_PROMPT_TOKEN_ESTIMATE

logger = logging.getLogger(__name__)


class CoachSession:
    """Single-user coaching session.

    Requests are issued one at a time; the ledger is only appended to
    after a request completes.
    """

    def __init__(
        self,
        client: GeminiCoachClient,
        *,
        pricing: PricingEntry,
        ledger: Optional[SessionLedger] = None
    ):
        self.client = client
        self.pricing = pricing
        self.ledger = ledger if ledger is not None else SessionLedger()
        self.image: Optional[ImageData] = None
        self.mime_type: Optional[str] = None
        self.analysis: Optional[PhotoAnalysis] = None
        self.messages: List[MentorMessage] = []

    async def analyze(self, image: ImageData, mime_type: str) -> PhotoAnalysis:
        """Analyse a new photo and record its cost.

        Starts a fresh chat. The ledger is only appended to when the
        response reported token usage.
        """
        analysis, usage = await self.client.analyze_image(image, mime_type)
        cost = compute_cost(usage, self.pricing, STATIC_PROMPT_TOKEN_ESTIMATE)
        analysis = analysis.with_cost(cost)

        if usage.is_empty:
            logger.debug("Response carried no usage metadata; ledger unchanged")
        else:
            self.ledger.append(cost)

        self.image = image
        self.mime_type = mime_type
        self.analysis = analysis
        self.messages = []
        return analysis

    def _require_analysis(self) -> Tuple[ImageData, str, PhotoAnalysis]:
        if self.analysis is None or self.image is None or self.mime_type is None:
            raise RuntimeError("No photo has been analysed in this session")
        return self.image, self.mime_type, self.analysis

    async def generate_fix(self) -> bytes:
        """Generate a corrected version of the current photo."""
        image, mime_type, analysis = self._require_analysis()
        return await self.client.generate_corrected_image(image, mime_type, analysis.improvements)

    async def ask(self, question: str) -> MentorReply:
        """Ask the mentor a follow-up question about the current photo.

        The user's message stays in the transcript even if the request fails.
        """
        question = question.strip()
        if not question:
            raise ValueError("question cannot be empty")
        image, mime_type, analysis = self._require_analysis()

        history = list(self.messages)
        self.messages.append(MentorMessage(role="user", content=question))

        answer, thinking, usage = await self.client.ask_mentor(
            image, mime_type, question, analysis, history
        )
        # Mentor prompts carry no shared static text, so nothing is projected as cached
        cost = compute_cost(usage, self.pricing, 0)
        self.messages.append(MentorMessage(role="assistant", content=answer, thinking=thinking))
        return MentorReply(answer=answer, thinking=thinking, cost=cost)

    def simulate(self, volume: int = DEFAULT_SCALE_VOLUME) -> ScaleSimulationResult:
        return simulate_scale(self.ledger, volume)

    def reset(self) -> None:
        """Start over: forget the photo, the chat and all recorded costs."""
        self.image = None
        self.mime_type = None
        self.analysis = None
        self.messages = []
        self.ledger.reset()
