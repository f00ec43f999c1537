"""
PersistBot - Services Package
=============================

Persist/restore core, audit sink and Discord profile editor.
"""
