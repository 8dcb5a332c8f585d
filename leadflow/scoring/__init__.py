"""Deterministic lead scoring heuristics."""

from leadflow.scoring.heuristics import LeadScoreResult, LeadSignals, ScoreFactors, evaluate

__all__ = ["LeadScoreResult", "LeadSignals", "ScoreFactors", "evaluate"]
