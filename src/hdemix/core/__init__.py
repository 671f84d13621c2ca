"""Configuration, logging and error types shared by the inference pipeline."""
