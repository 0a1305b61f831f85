"""
Response Formatting for ZenFlow MCP Tools.

Markdown renderings for humans and JSON-ready dicts for machines. JSON
output uses the same camelCase field names as storage.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from typing import Any, Sequence

from zenflow_mcp.constants import SchulteStatus
from zenflow_mcp.engine import PomodoroEngine, SchulteExercise
from zenflow_mcp.models import FocusTarget, SchulteResult, Task
from zenflow_mcp.tools.inputs import ResponseFormat
from zenflow_mcp.views import MonthView, Statistics, TaskProgress


def _fmt_ms(ms: int | None) -> str:
    if ms is None:
        return "-"
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M")


def format_focus_time(seconds: int) -> str:
    """Render accumulated focus seconds as '1h 25m' / '25m'."""
    minutes = seconds // 60
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


# =============================================================================
# Generic
# =============================================================================


def success_message(message: str) -> str:
    return f"✅ {message}"


def error_message(message: str, suggestion: str | None = None) -> str:
    lines = [f"**Error**: {message}"]
    if suggestion:
        lines.append(f"\n*Suggestion*: {suggestion}")
    return "\n".join(lines)


def format_response(data: Any, response_format: ResponseFormat, markdown: str) -> str:
    """Return `markdown` or the JSON encoding of `data`."""
    if response_format == ResponseFormat.MARKDOWN:
        return markdown
    return json.dumps(data, indent=2, ensure_ascii=False)


# =============================================================================
# Tasks
# =============================================================================


def format_task_markdown(task: Task) -> str:
    box = "[x]" if task.completed else "[ ]"
    lines = [f"- {box} **{task.text}** ({task.priority.label})", f"  - ID: `{task.id}`"]
    if task.tags:
        lines.append(f"  - Tags: {', '.join(task.tags)}")
    if task.focus_time:
        lines.append(f"  - Focus: {format_focus_time(task.focus_time)}")
    lines.append(f"  - Created: {_fmt_ms(task.created_at)}")
    if task.completed_at is not None:
        lines.append(f"  - Completed: {_fmt_ms(task.completed_at)}")
    for st in task.subtasks:
        st_box = "[x]" if st.completed else "[ ]"
        lines.append(f"    - {st_box} {st.text} (`{st.id}`)")
    return "\n".join(lines)


def format_task_json(task: Task) -> dict[str, Any]:
    return task.to_storage()


def format_tasks_markdown(tasks: Sequence[Task], progress: TaskProgress | None = None) -> str:
    lines = ["# Tasks", ""]
    if progress is not None:
        lines.extend([f"Progress: {progress.percentage}% · {progress.unfinished_count} unfinished", ""])
    if not tasks:
        lines.append("No tasks.")
        return "\n".join(lines)
    lines.extend(format_task_markdown(t) for t in tasks)
    return "\n".join(lines)


def format_tasks_json(tasks: Sequence[Task], progress: TaskProgress | None = None) -> dict[str, Any]:
    data: dict[str, Any] = {"count": len(tasks), "tasks": [format_task_json(t) for t in tasks]}
    if progress is not None:
        data["progress"] = asdict(progress)
    return data


def format_focus_target(target: FocusTarget | None) -> str:
    if target is None:
        return "No focus target"
    kind = "Task" if target.type == "task" else "Subtask"
    return f"{kind}: {target.text}"


# =============================================================================
# Timer
# =============================================================================


def format_timer_markdown(engine: PomodoroEngine, target: FocusTarget | None = None) -> str:
    state = engine.state
    status = "Running" if state.is_active else "Paused"
    settings = engine.settings
    lines = [
        f"# {state.mode.label}",
        "",
        f"**{engine.format_clock()}** ({status})",
        f"- Progress: {round(engine.progress * 100)}% remaining",
        f"- Sessions completed: {state.sessions_completed}",
        f"- Focus: {format_focus_target(target)}",
        f"- Durations: work {settings.work}m · short break {settings.short_break}m · long break {settings.long_break}m",
    ]
    return "\n".join(lines)


def format_timer_json(engine: PomodoroEngine, target: FocusTarget | None = None) -> dict[str, Any]:
    return {
        **engine.state.to_storage(),
        "clock": engine.format_clock(),
        "settings": engine.settings.model_dump(),
        "focusTarget": target.to_storage() if target is not None else None,
    }


# =============================================================================
# Schulte
# =============================================================================


def format_schulte_markdown(exercise: SchulteExercise) -> str:
    lines = [
        "# Schulte Grid",
        "",
        f"Status: {exercise.status.value} · Next: {exercise.next_number} · Time: {exercise.elapsed:.1f}s",
        "",
    ]
    for row in exercise.rows:
        cells = [f"~~{n:2d}~~" if n < exercise.next_number or exercise.status is SchulteStatus.FINISHED else f"{n:2d}" for n in row]
        lines.append(" | ".join(cells))
    return "\n".join(lines)


def format_schulte_json(exercise: SchulteExercise) -> dict[str, Any]:
    return {
        "status": exercise.status.value,
        "nextNumber": exercise.next_number,
        "elapsed": round(exercise.elapsed, 2),
        "grid": exercise.rows,
    }


def format_schulte_history_markdown(results: Sequence[SchulteResult]) -> str:
    lines = ["# Schulte History", ""]
    if not results:
        lines.append("No results yet.")
        return "\n".join(lines)
    best = min(r.time_taken for r in results)
    lines.append(f"Best: {best:.2f}s")
    lines.append("")
    for r in results:
        lines.append(f"- {_fmt_ms(r.timestamp)}: {r.time_taken:.2f}s")
    return "\n".join(lines)


# =============================================================================
# Views
# =============================================================================


def format_statistics_markdown(stats: Statistics) -> str:
    lines = [
        "# Statistics",
        "",
        f"- **Total focus**: {stats.total_minutes} min",
        f"- **Completion rate**: {stats.completion_rate}% ({stats.completed_tasks}/{stats.total_tasks})",
        f"- **Avg. time to complete**: {stats.avg_completion_hours} h",
        "",
        "## Recent days",
    ]
    if not stats.recent_days:
        lines.append("No focus sessions yet.")
    for day in stats.recent_days:
        lines.append(f"- {day.date}: {day.minutes}m")
    return "\n".join(lines)


def format_statistics_json(stats: Statistics) -> dict[str, Any]:
    return {
        "totalMinutes": stats.total_minutes,
        "completedTasks": stats.completed_tasks,
        "totalTasks": stats.total_tasks,
        "completionRate": stats.completion_rate,
        "avgCompletionHours": stats.avg_completion_hours,
        "recentDays": [d.to_storage() for d in stats.recent_days],
    }


def format_calendar_markdown(view: MonthView, day_tasks: Sequence[Task] | None = None, day: int | None = None) -> str:
    lines = [f"# {view.year}-{view.month:02d}", "", "Sun Mon Tue Wed Thu Fri Sat"]
    cells = ["   "] * view.offset
    for d in view.days:
        mark = "✓" if d.all_done else ("•" if d.task_count else " ")
        cells.append(f"{d.day:2d}{mark}")
    for i in range(0, len(cells), 7):
        lines.append(" ".join(cells[i : i + 7]))
    if day is not None:
        lines.extend(["", f"## Day {day}"])
        if not day_tasks:
            lines.append("No tasks.")
        else:
            lines.extend(format_task_markdown(t) for t in day_tasks)
    return "\n".join(lines)


def format_calendar_json(view: MonthView, day_tasks: Sequence[Task] | None = None) -> dict[str, Any]:
    data: dict[str, Any] = {
        "year": view.year,
        "month": view.month,
        "offset": view.offset,
        "days": [asdict(d) for d in view.days],
    }
    if day_tasks is not None:
        data["dayTasks"] = [format_task_json(t) for t in day_tasks]
    return data
