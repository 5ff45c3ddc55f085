"""Bookings app package.

This app encapsulates the booking domain: the booking and refund models,
the overlap checker that keeps confirmed bookings on a venue from
intersecting, the booking writer and the status transition whitelist.
Writes run inside a transaction that locks the venue row, and domain
events are published only after commit.
"""
