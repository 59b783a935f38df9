"""
phpIPAM address provider.

Declarative IP address lifecycle (allocate, read, update, release) against a
phpIPAM REST service.
"""

__version__ = "0.3.0"
