"""
Status Page Backend — realtime service & incident status.

Tracks monitored services and the incidents affecting them, computes an
overall health summary, and pushes live updates over WebSockets to viewers
scoped to an organization or tenant.
"""

__version__ = "1.0.0"
