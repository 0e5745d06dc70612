"""Utility helpers for unutma."""
