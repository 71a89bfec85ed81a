"""Optimisation layer: genetic-algorithm search over portfolio candidates."""
