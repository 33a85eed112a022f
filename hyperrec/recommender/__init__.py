"""Recommendation module for HyperRec.

This module contains the feature encoder, the interaction store and matrix,
the embedding index, the collaborative, content and trending generators,
the hybrid ranker and the interaction tracker that keeps the model fresh.
"""
