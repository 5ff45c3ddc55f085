"""
Shared Kernel

Building blocks used by both the venues and bookings apps: value objects,
domain errors, the unit of work, the message bus and API error rendering.
"""
