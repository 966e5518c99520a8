"""Locatio Infra TaskIQ -- broker and scheduler for the pool maintenance jobs."""

from locatio.infra.taskiq.broker import broker, get_broker, get_scheduler, scheduler
from locatio.infra.taskiq.settings import TaskIQSettings, get_taskiq_settings

__all__ = [
    "TaskIQSettings",
    "broker",
    "get_broker",
    "get_scheduler",
    "get_taskiq_settings",
    "scheduler",
]
