"""
Rating modules for ReelScore.

- Aggregator: Hybrid with Decay formula (pure functions)
- Recalculator: single-entity and bulk recompute workflows
- Analytics: admin vs. user divergence report
"""
