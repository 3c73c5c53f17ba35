"""
Network reachability signal.
"""

from .reachability import HttpReachabilityProbe, ReachabilityMonitor, ReachabilityProbe

__all__ = ["HttpReachabilityProbe", "ReachabilityMonitor", "ReachabilityProbe"]
