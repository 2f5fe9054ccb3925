"""
Configuration management for LinkGuard.

- **app_configuration.py**: YAML loader for tunables (cooldowns, lifetimes,
  sweep pacing) plus environment parsing of the restricted channel list and
  bot admin allow-list into an immutable :class:`ModerationConfig`.
"""
