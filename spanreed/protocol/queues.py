"""
Queue key naming shared with the external controller. Must match exactly.
"""

TASKS_NAMESPACE = "obsidian-plugin-tasks"
MONITOR_NAMESPACE = "obsidian-plugin-monitor"


def task_queue(user_id: int) -> str:
    return f"{TASKS_NAMESPACE}:{user_id}"

def reply_queue(user_id: int, request_id: str) -> str:
    return f"{TASKS_NAMESPACE}:{user_id}:{request_id}"

def monitor_queue(user_id: int) -> str:
    return f"{MONITOR_NAMESPACE}:{user_id}"
