"""
ReelScore - display ratings for movies, shows and people.

Blends admin baselines with user reviews (Hybrid with Decay).
"""
