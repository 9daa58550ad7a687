"""Application layer: DTOs, ports (Protocols) and services consumed by the UI."""
