"""
Data models for ReelScore.

- RatableEntity: movie/show or person with rating fields
- Review: single user review
"""
