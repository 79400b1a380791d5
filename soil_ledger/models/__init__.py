"""Data models for the soil data submission ledger."""

from .data import SubmissionKey, Metrics, Submission, SubmissionHistory, Outcome

__all__ = ["SubmissionKey", "Metrics", "Submission", "SubmissionHistory", "Outcome"]
