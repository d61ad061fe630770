"""Blur / unsharp feedback loop producing reaction-diffusion-like patterns."""
