"""OCTO supplier adapter for reseller platforms."""

__version__ = "0.1.0"
