"""Subscription management for the authenticated user."""
