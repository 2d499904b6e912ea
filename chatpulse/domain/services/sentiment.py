"""Keyword sentiment and customer satisfaction estimation."""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from chatpulse.domain.models.analytics import MessageRow
from chatpulse.utils.numbers import clamp, mean

# Used when a scope has neither explicit ratings nor customer messages
DEFAULT_SATISFACTION = 75.0
# Explicit ratings are on a 1-5 scale; multiply to reach 0-100
SATISFACTION_RATING_SCALE = 20.0


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class SentimentEstimator:
    """Classify customer messages by keyword presence."""

    POSITIVE_KEYWORDS: list[str] = [
        # Portuguese
        "obrigado",
        "obrigada",
        "valeu",
        "perfeito",
        "excelente",
        "ótimo",
        "muito bom",
        "resolvido",
        "ajudou",
        "satisfeito",
        "gostei",
        "funcionou",
        # English
        "thank",
        "perfect",
        "excellent",
        "great",
        "resolved",
        "helped",
        "satisfied",
        "works now",
    ]

    NEGATIVE_KEYWORDS: list[str] = [
        # Portuguese
        "ruim",
        "péssimo",
        "horrível",
        "insatisfeito",
        "não gostei",
        "problema",
        "erro",
        "falha",
        "lento",
        "demorado",
        "confuso",
        # English
        "terrible",
        "horrible",
        "unsatisfied",
        "dissatisfied",
        "problem",
        "error",
        "broken",
        "slow",
        "confusing",
    ]

    def classify(self, text: str | None) -> Sentiment:
        """Positive only when a positive keyword appears and no negative one does."""
        if not text:
            return Sentiment.NEUTRAL
        lowered = text.lower()
        has_positive = any(keyword in lowered for keyword in self.POSITIVE_KEYWORDS)
        has_negative = any(keyword in lowered for keyword in self.NEGATIVE_KEYWORDS)
        if has_positive and not has_negative:
            return Sentiment.POSITIVE
        if has_negative and not has_positive:
            return Sentiment.NEGATIVE
        return Sentiment.NEUTRAL

    def breakdown(self, messages: Iterable[MessageRow]) -> "SentimentBreakdown":
        """Count sentiments over customer-authored messages only."""
        counts = {sentiment: 0 for sentiment in Sentiment}
        for message in messages:
            if message.is_from_me:
                continue
            counts[self.classify(message.content)] += 1
        return SentimentBreakdown(
            positive=counts[Sentiment.POSITIVE],
            negative=counts[Sentiment.NEGATIVE],
            neutral=counts[Sentiment.NEUTRAL],
        )

    def estimate_satisfaction(
        self,
        messages: Iterable[MessageRow],
        ratings: Iterable[float | None] = (),
    ) -> float:
        """Estimate satisfaction on a 0-100 scale.

        Explicit 1-5 ratings win over the keyword heuristic. With neither,
        DEFAULT_SATISFACTION applies.
        """
        explicit = [float(rating) for rating in ratings if rating is not None]
        if explicit:
            return clamp(mean(explicit) * SATISFACTION_RATING_SCALE)

        breakdown = self.breakdown(messages)
        if breakdown.total == 0:
            return DEFAULT_SATISFACTION
        return clamp(breakdown.heuristic_satisfaction)


@dataclass(frozen=True)
class SentimentBreakdown:
    positive: int = 0
    negative: int = 0
    neutral: int = 0

    @property
    def total(self) -> int:
        return self.positive + self.negative + self.neutral

    @property
    def heuristic_satisfaction(self) -> float:
        """``positive_ratio*100 - negative_ratio*50 + 50``, unclamped."""
        if self.total == 0:
            return DEFAULT_SATISFACTION
        positive_ratio = self.positive / self.total
        negative_ratio = self.negative / self.total
        return positive_ratio * 100 - negative_ratio * 50 + 50

    def to_dict(self) -> dict[str, int]:
        return {"positive": self.positive, "negative": self.negative, "neutral": self.neutral}
