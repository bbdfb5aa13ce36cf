"""Manifold Markets websocket ingestion."""
