"""Tests for the fitness platform auth service."""
