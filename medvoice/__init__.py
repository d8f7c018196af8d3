"""MedVoice - call lifecycle and transcript core for AI medical voice consultations."""

__version__ = "0.1.0"
