"""Application layer - pipeline stages and use cases."""
