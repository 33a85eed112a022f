"""FastAPI application module for HyperRec.

This module contains the FastAPI application, route handlers, and API
endpoints for the recommendation service. It exposes recommendation
retrieval and interaction tracking over HTTP.
"""
