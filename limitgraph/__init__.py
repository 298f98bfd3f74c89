"""Agent sessions under governance, with provenance storage, rate-distortion analysis, question answering and an HTTP API."""

__version__ = "2.4.1"