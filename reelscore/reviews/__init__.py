"""
Review writer. Each write triggers a rating recompute.
"""
