"""Request and response models for the HyperRec API."""

from typing import List, Optional

from pydantic import BaseModel, Field

from hyperrec.recommender.engine import RecommendationResult
from hyperrec.recommender.records import InteractionKind


class RecommendationItem(BaseModel):
    """One ranked product.

    Attributes:
        product_id: Recommended product.
        score: Final score after weighting and personalization boost.
        sources: Generators that proposed the product.
        boost: Personalization multiplier applied to the score.
    """

    product_id: str
    score: float
    sources: List[str]
    boost: float = 1.0


class RecommendationResponse(BaseModel):
    """Response model for recommendation requests."""

    user_id: str = Field(..., description="User ID for recommendations")
    recommendations: List[RecommendationItem] = Field(
        default_factory=list, description="Ranked recommendations"
    )
    model_version: Optional[str] = Field(
        default=None, description="Generation that produced the result"
    )
    fallback: bool = Field(
        default=False, description="True when the fallback list was served"
    )

    @classmethod
    def from_result(cls, result: RecommendationResult) -> "RecommendationResponse":
        return cls(
            user_id=result.user_id,
            recommendations=[RecommendationItem(**c.to_dict()) for c in result.candidates],
            model_version=result.model_version,
            fallback=result.fallback,
        )


class TrackRequest(BaseModel):
    """Interaction reported by a client."""

    user_id: str = Field(..., min_length=1)
    product_id: str = Field(..., min_length=1)
    kind: InteractionKind
    duration: Optional[float] = Field(default=None, ge=0, description="View duration in seconds")
    source: Optional[str] = None

    def metadata(self) -> dict:
        data = {}
        if self.duration is not None:
            data["duration"] = self.duration
        if self.source is not None:
            data["source"] = self.source
        return data


class TrackViewRequest(BaseModel):
    """Completed product view that should trigger a recommendation update."""

    user_id: str = Field(..., min_length=1)
    product_id: str = Field(..., min_length=1)
    duration: Optional[float] = Field(default=None, ge=0)
    limit: Optional[int] = Field(default=None, ge=0, le=100)


class TrackResponse(BaseModel):
    accepted: bool
    user_id: str
    product_id: str
    kind: InteractionKind


class SimilarProductsResponse(BaseModel):
    product_id: str
    similar: List[RecommendationItem] = Field(default_factory=list)
    model_version: Optional[str] = None
