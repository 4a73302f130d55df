"""Services Layer — the imperative shell around the pure clock core.

Invariants:
    - ClockService is the single writer: every mutation runs under one asyncio.Lock
    - RPC dispatch uses an explicit method->handler dict (no auto-discovery)
"""
