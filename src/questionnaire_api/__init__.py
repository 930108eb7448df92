"""Questionnaire API - collects questionnaire submissions over HTTP."""

__version__ = "1.0.0"
