"""Ride matching: hard candidate filtering followed by relevance ranking."""

from .filters import CandidateFilter, build_candidate_filter, filter_candidates
from .scoring import rank_matches, score_ride
from .service import resolve_search_request, search_rides

__all__ = [
    "CandidateFilter",
    "build_candidate_filter",
    "filter_candidates",
    "rank_matches",
    "score_ride",
    "resolve_search_request",
    "search_rides",
]
