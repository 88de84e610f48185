"""
Configuration module.

Defaults, YAML overrides and validation for the patrol lifecycle engine.
"""
