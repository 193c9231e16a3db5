"""Helpers for presenting scanner values."""

from enum import Enum


class TechnicalRating(str, Enum):
    """Buckets of the scanner's numeric technical rating."""

    STRONG_BUY = "Strong Buy"
    BUY = "Buy"
    NEUTRAL = "Neutral"
    SELL = "Sell"
    STRONG_SELL = "Strong Sell"


def format_technical_rating(rating: float) -> TechnicalRating:
    """
    Bucket a rating such as ``Recommend.All`` (range -1..1).

    Examples:
        format_technical_rating(0.7)   # TechnicalRating.STRONG_BUY
        format_technical_rating(0.0)   # TechnicalRating.NEUTRAL
        format_technical_rating(-0.7)  # TechnicalRating.STRONG_SELL
    """
    if rating >= 0.5:
        return TechnicalRating.STRONG_BUY
    if rating >= 0.1:
        return TechnicalRating.BUY
    if rating >= -0.1:
        return TechnicalRating.NEUTRAL
    if rating >= -0.5:
        return TechnicalRating.SELL
    return TechnicalRating.STRONG_SELL


__all__ = ["TechnicalRating", "format_technical_rating"]
