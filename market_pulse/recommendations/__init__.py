"""
Recommendation engine: converts a quote plus analytics snapshot into a
BUY/SELL/HOLD recommendation with target, stop-loss and explanations.

Modules
-------
rules     : Rule/Condition data + DEFAULT_RULES table + weight overrides.
scorer    : ScoringEngine.score() — single deterministic pass over the rules.
projector : DecisionProjector.project() + pure threshold-table functions.
advisor   : Advisor — acquisition → analytics → scoring → projection.
reporter  : recommendation_to_dict() + JSON/CSV file output.
"""
