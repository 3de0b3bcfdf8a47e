"""Cursor-on-Target codec: CoT XML, TAK Protocol v1 framing and conformance tooling."""

__version__ = "0.0.1"

__all__ = ["errors", "framing", "xml", "messages", "proto", "scenario", "mock_client"]