"""
Shared utilities for the screenshot agent.

This package is intentionally small and focused. It currently provides:

- `shared.config` for environment-based configuration
- `shared.logging` for structlog-based structured logging
- `shared.http` for the requests session used by registry and storage clients

The worker treats `shared/` as infrastructure code and avoids introducing
capture-specific coupling here.
"""
