"""
Collaborator boundary: inventory listing, pricing lookup and usage metrics.

  providers/base.py      — Protocols the core depends on.
  providers/static.py    — Offline price table and estimated metrics.
  providers/inventory.py — JSON inventory snapshot + resource-id resolution.
"""
