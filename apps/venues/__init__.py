"""Venues app package.

Vendors, their bookable venues (courts, pitches, turfs), administrative
blocks and explicit per-slot availability markers. The availability
calculator lives in ``services``; the pure operating-hours rules live in
``domain.schedule``.
"""
