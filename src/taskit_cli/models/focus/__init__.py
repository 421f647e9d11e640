"""Focus mode - planned Pomodoro jornadas for Taskit CLI."""

from .distribution import distribute_tasks_to_sessions
from .engine import ConfigStore, TimerEngine
from .exceptions import (
    ConfigError,
    EmptyPlanError,
    FocusError,
    InvalidTransitionError,
    PersistenceError,
    StateError,
)
from .history import JornadaHistory, JornadaRecord
from .planner import Session, generate_session_plan, validate_plan_config
from .scheduler import TickScheduler
from .state import EngineState
from .store import JsonFileStore, MemoryStore, StateStore
from .summary import PlanProgress, PlanSummary, calculate_plan_progress, calculate_plan_summary

__all__ = [
    "ConfigError",
    "ConfigStore",
    "EmptyPlanError",
    "EngineState",
    "FocusError",
    "InvalidTransitionError",
    "JornadaHistory",
    "JornadaRecord",
    "JsonFileStore",
    "MemoryStore",
    "PersistenceError",
    "PlanProgress",
    "PlanSummary",
    "Session",
    "StateError",
    "StateStore",
    "TickScheduler",
    "TimerEngine",
    "calculate_plan_progress",
    "calculate_plan_summary",
    "distribute_tasks_to_sessions",
    "generate_session_plan",
    "validate_plan_config",
]
