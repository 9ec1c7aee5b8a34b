"""Inbound payload ingestion.

Turns loosely shaped dicts from the location sensor, the compass and the
remote insert feed into validated models. Nothing in here mutates pipeline
state.
"""
