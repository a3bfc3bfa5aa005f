"""Survival physics: temperature curve, action effort and state correction."""
