"""Caregiver onboarding profiles."""
