"""
Application layer - guard services and the ports they depend on.

Services here orchestrate the domain models; every side effect (clocks,
HTTP, timers, cross-instance messaging) goes through a port defined in
``time_guard.application.ports`` and implemented in infrastructure.
"""
