"""Model-side adapters for the segment forward call."""
