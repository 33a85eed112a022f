"""HyperRec: hybrid personalization engine for retail recommendations.

This package provides a backend service that ranks products for a user by
blending collaborative, content-based and popularity signals and applying
business-rule boosts on top.

Modules:
    api: FastAPI application and REST API endpoints
    recommender: interaction models, generators and the hybrid ranker
"""

__version__ = "0.1.0"
