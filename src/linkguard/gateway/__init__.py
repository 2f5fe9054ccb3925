"""Messaging platform capability interface and its py-cord implementation."""
