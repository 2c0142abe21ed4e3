"""
Configuration loading and validation for simulator settings.

Provides strongly typed settings objects for path generation, commission and
logging, loaded from FILL_SIM_* environment variables with upfront validation.
"""
