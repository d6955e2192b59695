"""
Scoring core: turns raw trend signals into ranked, monetization-ready records.

Modules
-------
pricing    : generate_price_ladder() + compute_margin() — pure functions.
scorer     : score_signal() + score_signals() + compute_profit_score().
reconciler : reconcile() + rank_trends() + reconcile_with_store(), the
             TrendStore protocol, and InMemoryTrendStore.
"""
