"""Hazard grid: a commit-reveal hidden-hazard game with proof-gated reveals."""
