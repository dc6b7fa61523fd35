"""Storage layer.

This package persists the listen corpus and the artist genre cache.
It powers imports, fingerprint scoring, and cache inspection for the SDK.
"""
