"""Instances, run configuration and the experiment runner."""
