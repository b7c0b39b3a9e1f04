"""Candidate-to-job matching and recommendation engine."""

__version__ = "1.0.0"
