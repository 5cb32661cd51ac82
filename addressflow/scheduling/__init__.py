"""Scheduling primitives: debounce, bounded queue, budgets, staleness, polling."""

from addressflow.scheduling.budget import LatencyBudget
from addressflow.scheduling.debounce import DebouncedExecutor
from addressflow.scheduling.generations import Generations, Ticket
from addressflow.scheduling.polling import OperationPoller, OperationResult
from addressflow.scheduling.queue import ConcurrencyLimitedQueue
from addressflow.scheduling.stale import StaleResultGuard

__all__ = [
    "ConcurrencyLimitedQueue",
    "DebouncedExecutor",
    "Generations",
    "LatencyBudget",
    "OperationPoller",
    "OperationResult",
    "StaleResultGuard",
    "Ticket",
]
