"""Award nominations backend: intake, storage, admin review, certificates.

This package wires the submission pipeline (intake validation, CV storage,
record persistence) and the admin flows (session gate, CV passthrough,
PDF certificate rendering) behind a FastAPI application.
"""
