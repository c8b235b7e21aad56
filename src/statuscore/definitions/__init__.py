"""
Monitoring definitions: YAML schema, loading and compilation.

- ``statuscore.definitions.schema`` — Pydantic models for the YAML format.
- ``statuscore.definitions.loader`` — file + conf.d + environment merging.
- ``statuscore.definitions.registry`` — compiled, cross-validated view used
  at runtime.
"""

from statuscore.definitions.schema import MonitorConfig

__all__ = ["MonitorConfig"]
