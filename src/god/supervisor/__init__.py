"""
The Supervisor package.
Manages the lifecycle of the container's tasks.

This package contains the central TaskManager class and its helper modules,
which together handle running the init tasks, launching and watching the
services, reporting health and shutting down.
"""
from .health import HealthReport
from .supervisor import TaskManager
from .task import Task, TaskKind, TaskSpec

__all__ = ['TaskManager', 'HealthReport', 'Task', 'TaskKind', 'TaskSpec']
