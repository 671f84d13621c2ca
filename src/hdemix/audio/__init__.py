"""Normalization, shifting, segmentation and stitching of stereo mixes."""
