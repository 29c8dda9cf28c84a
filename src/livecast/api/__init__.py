"""Shared HTTP plumbing for the feature routers."""
