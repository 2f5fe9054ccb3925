"""
Utility helpers for LinkGuard.

- **logger.py**: Centralized logging configuration with colored console output,
  per-session log files, and suppression of noisy library loggers. Uses
  prompt_toolkit for console output so logs never tear an active prompt.
"""
