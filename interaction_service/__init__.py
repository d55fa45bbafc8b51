"""Submission interaction service: votes and two-level comments."""
