"""Embedding generation and vector index maintenance."""
