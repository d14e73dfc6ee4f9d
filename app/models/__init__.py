from .schemas import (
    Candidate, MatchRequest, EmailCollectRequest,
    ProcessedCandidate, CandidatePDF, MatchResponse, WebhookResponse,
)

__all__ = [
    "Candidate", "MatchRequest", "EmailCollectRequest",
    "ProcessedCandidate", "CandidatePDF", "MatchResponse", "WebhookResponse",
]
