"""Parsing of analyst review responses, shared by the review tools."""

from __future__ import annotations

import logging

from hwforge.design import extract_json_object

log = logging.getLogger("hwforge.tools.review")

FALLBACK_SCORE = 70
SUMMARY_CHARS = 200


def parse_review(content: str, *, with_missing_features: bool = False) -> dict:
    """Review result from the analyst's reply.

    An unparseable reply becomes a neutral ``revise`` so the
    generate/review loop keeps going.
    """
    review = extract_json_object(content)
    if review is None:
        log.warning("Could not parse review response")
        return {
            "success": True,
            "score": FALLBACK_SCORE,
            "verdict": "revise",
            "issues": [{"severity": "warning", "description": "Could not parse review response"}],
            "summary": content[:SUMMARY_CHARS],
        }

    result = {
        "success": True,
        "score": review.get("score") or 0,
        "verdict": review.get("verdict") or "revise",
        "issues": review.get("issues") or [],
        "positives": review.get("positives") or [],
        "summary": review.get("summary") or "Review completed",
    }
    if with_missing_features:
        result["missing_features"] = (review.get("missing_features")
                                      or review.get("missingFeatures") or [])
    return result
