"""Utility helpers for Memory Bank."""
