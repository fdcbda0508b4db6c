"""
Core utilities shared across the bujo package.

Modules:
    exceptions: Exception hierarchy
    logging_manager: Structured rotating logs and CLI error handling
    validators: Input normalization and validation
    paths: Project path constants
"""
