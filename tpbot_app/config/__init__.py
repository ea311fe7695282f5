"""
Configuration module.

Run configuration (BotConfig), timing defaults, YAML overrides and
validation.
"""
