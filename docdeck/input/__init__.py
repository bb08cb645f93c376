"""Task-list input."""

from .task_list import load_task_list, parse_task_list

__all__ = ["load_task_list", "parse_task_list"]
