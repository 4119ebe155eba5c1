"""Tests for knowledge-acquisition."""
