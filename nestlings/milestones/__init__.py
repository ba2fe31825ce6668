"""Milestone windows and curated AI categories."""
