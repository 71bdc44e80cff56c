"""Kubernetes operator that reconciles HelloWorld resources into pods."""

__version__ = "0.1.0"
