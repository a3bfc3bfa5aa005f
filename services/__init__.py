"""Gemini-backed services and the per-turn orchestration."""
