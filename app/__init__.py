"""Marketplace conversations, presence and notifications service."""
