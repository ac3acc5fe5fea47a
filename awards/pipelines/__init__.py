"""Pipelines for nomination submission and certificate rendering.

Each step is callable without the HTTP layer so it can be exercised
directly from scripts and tests.
"""
