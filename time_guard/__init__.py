"""
time-guard - Client-side clock integrity guard.

Keeps a skew-corrected virtual clock anchored to a trusted time authority,
detects local clock tampering or drift, locks outgoing HTTP traffic when
clock trust is lost, and reconciles that trust state across instances.

Guarantees:
- The lock is fail-closed and sticky
- Only an explicit, successful resynchronization clears the lock
- Peer instances can tighten trust, never loosen it
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
