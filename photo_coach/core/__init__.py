"""
Core modules for Photo Coach.

This package contains the request resilience and cost accounting engine:
pricing, error classification, retries, cost calculation, the session
ledger and scale simulation.
"""
