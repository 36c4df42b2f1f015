"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the tokenlock system.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. monotonicity.py - Released amounts never decrease, never exceed the lock
2. conservation.py - Balances, supply and release totals add up
3. idempotency.py - Repeating a release at the same instant releases nothing
4. atomicity.py - A rejected call leaves no trace
5. compaction.py - Cleanup drops exactly the completed locks, in order

These tests use hypothesis for property-based testing.
"""
