"""
Utility modules for ReelScore.

Cross-cutting concerns:
- Storage: File I/O helpers for reviews and reports
"""
