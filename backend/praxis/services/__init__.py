"""Services Layer: async orchestration around the pure core.

Invariants:
    - Each public method is one request and one transaction
    - Services load state through repositories, ask core for a decision, then commit
    - Business-rule failures raise PraxisError subclasses; nothing is retried except
      protocol collisions and lost status races
"""
