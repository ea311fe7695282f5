"""
TPBot - Ticket Acquisition State Machine

Drives a ticket purchase flow on a ticketing website through an explicit
finite-state machine: login, page-load detection, area selection, quantity
selection and error recovery, all on a single cooperative timer queue.
"""

__version__ = "0.1.0"
__author__ = "TPBot Team"
