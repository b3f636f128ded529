"""
Infrastructure layer - concrete adapters for time-guard ports.

- adapters/: production implementations (system clock, httpx, asyncio, Redis)
- stubs/: deterministic implementations for tests and local development
- observability/: structlog configuration
"""
