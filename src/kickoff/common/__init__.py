"""Shared helpers used across kickoff layers."""
