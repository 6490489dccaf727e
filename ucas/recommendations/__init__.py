"""
Recommendation engine: ranks simulated scenarios into a top-N list with
rule-based justifications.

Modules
-------
ranker : RecommendationRanker — discovery, per-action selection, priority
         sort, title templates and the Recommendation view.
"""
