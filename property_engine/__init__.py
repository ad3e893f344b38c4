"""
Property Lifecycle Engine

Assessment and lifecycle rules for renovate-and-sell apartment deals.

Parts:
  1. Traffic light assessment (energy, yield, HOA, location)
  2. Multi-unit building aggregation
  3. Six-phase lifecycle state and schedule
  4. Renovation and furnishing budgets
  5. Notary appointment workflow with partner synchronization

Usage:
    from property_engine.core import PropertySnapshot, compute_category_scores
    from property_engine.api import AppointmentStorage
"""

__version__ = "0.3.0"
