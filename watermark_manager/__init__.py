"""Watermark manager: tone adjustment and text/image watermarking for single images."""

__version__ = "1.0.0"
