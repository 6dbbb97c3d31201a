"""Transcript intelligence: diarization normalization, cleanup and speaker recognition."""
