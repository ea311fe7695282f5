"""
Document access module.

Selector catalog, Observer/Actuator contracts, and the selenium and
in-memory implementations of those contracts.
"""
