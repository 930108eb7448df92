"""Core business logic for the Questionnaire API."""
