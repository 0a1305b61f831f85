#!/usr/bin/env python3
"""
ZenFlow MCP Server.

This server exposes the ZenFlow focus toolkit over MCP: a task list with
subtasks, a Pomodoro timer that credits focus time to the selected task,
a Schulte grid attention exercise, statistics and an AI advisory backed by
Gemini, DeepSeek or GLM.

Features:
    - Task management (add, list, toggle, delete, subtasks, focus target)
    - Pomodoro timer (start/pause, reset, mode switch, durations)
    - Schulte grid (new grid, click, status, history)
    - Statistics and month calendar
    - AI daily review, priority suggestions and Schulte analysis
    - Theme and light/dark preferences

Environment Variables (all optional):
    ZENFLOW_DATA_FILE           JSON state file (default ~/.zenflow/state.json)
    ZENFLOW_LOG_LEVEL           Logging level (default INFO)
    ZENFLOW_AI_TIMEOUT          Provider request timeout in seconds
    ZENFLOW_TICK_INTERVAL       Pomodoro tick period in seconds
    ZENFLOW_GEMINI_API_KEY      Gemini key
    ZENFLOW_DEEPSEEK_API_KEY    DeepSeek key
    ZENFLOW_GLM_API_KEY         GLM key
"""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import Any, AsyncIterator

from mcp.server.fastmcp import FastMCP, Context

from zenflow_mcp.client import ZenFlowClient
from zenflow_mcp.exceptions import ZenFlowValidationError
from zenflow_mcp.settings import get_settings
from zenflow_mcp.tools.inputs import (
    ResponseFormat,
    TaskFilter,
    TaskCreateInput,
    TaskIdInput,
    TaskListInput,
    SubtaskCreateInput,
    SubtaskToggleInput,
    FocusSetInput,
    TimerModeInput,
    TimerSettingsInput,
    SchulteClickInput,
    SchulteHistoryInput,
    CalendarInput,
    AIConfigInput,
    PreferencesInput,
)
from zenflow_mcp.tools.formatting import (
    format_task_markdown,
    format_task_json,
    format_tasks_markdown,
    format_tasks_json,
    format_focus_target,
    format_timer_markdown,
    format_timer_json,
    format_schulte_markdown,
    format_schulte_json,
    format_schulte_history_markdown,
    format_statistics_markdown,
    format_statistics_json,
    format_calendar_markdown,
    format_calendar_json,
    format_response,
    success_message,
    error_message,
)
from zenflow_mcp.views import tasks_for_day

# Configure logging
logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan Management
# =============================================================================


@asynccontextmanager
async def lifespan(mcp: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """
    Manage the ZenFlow client lifecycle.

    Loads state (running the daily auto-clear) and starts the timer ticker
    on startup; stops the ticker and flushes state on shutdown.
    """
    logger.info("Initializing ZenFlow MCP Server...")

    try:
        client = ZenFlowClient.from_settings()
        await client.connect()
        logger.info("ZenFlow client connected successfully")
        yield {"client": client}
    except Exception as e:
        logger.error("Failed to initialize ZenFlow client: %s", e)
        raise
    finally:
        if "client" in locals():
            await client.disconnect()
            logger.info("ZenFlow client disconnected")


# Initialize FastMCP server
mcp = FastMCP(
    "zenflow_mcp",
    lifespan=lifespan,
)


def get_client(ctx: Context) -> ZenFlowClient:
    """Get the ZenFlow client from context."""
    return ctx.request_context.lifespan_context["client"]


# =============================================================================
# Error Handling
# =============================================================================


def handle_error(e: Exception, operation: str) -> str:
    """Handle exceptions and return user-friendly error messages."""
    logger.exception("Error in %s: %s", operation, e)

    error_type = type(e).__name__

    if "NotFound" in error_type:
        return error_message(
            f"Resource not found: {e}",
            "Verify the ID with zenflow_list_tasks.",
        )
    elif "Validation" in error_type:
        return error_message(f"Invalid input: {e}")
    elif "Configuration" in error_type:
        return error_message(
            str(e),
            "Set a key with zenflow_configure_ai or the ZENFLOW_<PROVIDER>_API_KEY variables.",
        )
    elif "Storage" in error_type:
        return error_message(
            f"Storage error: {e}",
            "Check that ZENFLOW_DATA_FILE points to a writable, valid JSON file.",
        )
    else:
        return error_message(f"Unexpected error: {e}")


# =============================================================================
# Task Tools
# =============================================================================


@mcp.tool(
    name="zenflow_add_task",
    annotations={
        "title": "Add Task",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": False,
    },
)
async def zenflow_add_task(params: TaskCreateInput, ctx: Context) -> str:
    """
    Add a task to the end of the list.

    Args:
        params: Task creation parameters including:
            - text (str): Task text (required)
            - priority (str): 'high', 'medium' (default) or 'low'
            - tags (list): Free-text tags

    Returns:
        Formatted task details on success, or error message on failure.
    """
    try:
        client = get_client(ctx)
        task = client.add_task(params.text, params.priority, params.tags or ())

        if params.response_format == ResponseFormat.MARKDOWN:
            return f"# Task Added\n\n{format_task_markdown(task)}"
        return json.dumps(format_task_json(task), indent=2, ensure_ascii=False)

    except Exception as e:
        return handle_error(e, "add_task")


@mcp.tool(
    name="zenflow_list_tasks",
    annotations={
        "title": "List Tasks",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def zenflow_list_tasks(params: TaskListInput, ctx: Context) -> str:
    """
    List tasks in creation order, with overall progress.

    Args:
        params: Filter parameters including:
            - status (str): 'all', 'active' or 'completed'
            - priority (str): Only this priority
            - tag (str): Only tasks with this tag

    Returns:
        Task list or error message.
    """
    try:
        client = get_client(ctx)
        tasks = client.tasks

        if params.status == TaskFilter.ACTIVE:
            tasks = [t for t in tasks if not t.completed]
        elif params.status == TaskFilter.COMPLETED:
            tasks = [t for t in tasks if t.completed]
        if params.priority is not None:
            tasks = [t for t in tasks if t.priority == params.priority]
        if params.tag:
            tag = params.tag.lower()
            tasks = [t for t in tasks if any(x.lower() == tag for x in t.tags)]

        progress = client.task_progress()
        return format_response(
            format_tasks_json(tasks, progress),
            params.response_format,
            format_tasks_markdown(tasks, progress),
        )

    except Exception as e:
        return handle_error(e, "list_tasks")


@mcp.tool(
    name="zenflow_toggle_task",
    annotations={
        "title": "Toggle Task",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": False,
    },
)
async def zenflow_toggle_task(params: TaskIdInput, ctx: Context) -> str:
    """
    Mark a task done, or reopen a done task.

    Completing stamps the completion time; reopening clears it.
    """
    try:
        client = get_client(ctx)
        task = client.toggle_task(params.task_id)

        if params.response_format == ResponseFormat.MARKDOWN:
            state = "completed" if task.completed else "reopened"
            return success_message(f"Task '{task.text}' {state}.")
        return json.dumps(format_task_json(task), indent=2, ensure_ascii=False)

    except Exception as e:
        return handle_error(e, "toggle_task")


@mcp.tool(
    name="zenflow_delete_task",
    annotations={
        "title": "Delete Task",
        "readOnlyHint": False,
        "destructiveHint": True,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def zenflow_delete_task(params: TaskIdInput, ctx: Context) -> str:
    """
    Delete a task and its subtasks.

    If the timer was focused on the task, or on one of its subtasks, the
    focus target is cleared.
    """
    try:
        client = get_client(ctx)
        task = client.delete_task(params.task_id)
        return success_message(f"Task '{task.text}' deleted.")

    except Exception as e:
        return handle_error(e, "delete_task")


@mcp.tool(
    name="zenflow_add_subtask",
    annotations={
        "title": "Add Subtask",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": False,
    },
)
async def zenflow_add_subtask(params: SubtaskCreateInput, ctx: Context) -> str:
    """Append a subtask to a task."""
    try:
        client = get_client(ctx)
        subtask = client.add_subtask(params.task_id, params.text)
        return success_message(f"Subtask '{subtask.text}' added (ID: `{subtask.id}`).")

    except Exception as e:
        return handle_error(e, "add_subtask")


@mcp.tool(
    name="zenflow_toggle_subtask",
    annotations={
        "title": "Toggle Subtask",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": False,
    },
)
async def zenflow_toggle_subtask(params: SubtaskToggleInput, ctx: Context) -> str:
    """Flip a subtask's completion. The parent task is not affected."""
    try:
        client = get_client(ctx)
        subtask = client.toggle_subtask(params.task_id, params.subtask_id)
        state = "completed" if subtask.completed else "reopened"
        return success_message(f"Subtask '{subtask.text}' {state}.")

    except Exception as e:
        return handle_error(e, "toggle_subtask")


@mcp.tool(
    name="zenflow_clear_completed",
    annotations={
        "title": "Clear Completed Tasks",
        "readOnlyHint": False,
        "destructiveHint": True,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def zenflow_clear_completed(ctx: Context) -> str:
    """Remove every completed task."""
    try:
        client = get_client(ctx)
        removed = client.clear_completed()
        return success_message(f"Removed {removed} completed task(s).")

    except Exception as e:
        return handle_error(e, "clear_completed")


@mcp.tool(
    name="zenflow_set_focus",
    annotations={
        "title": "Set Focus Target",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def zenflow_set_focus(params: FocusSetInput, ctx: Context) -> str:
    """
    Choose the task (or subtask) that completed focus sessions credit.

    Time spent on a subtask is added to its parent task's focus time.
    """
    try:
        client = get_client(ctx)
        target = client.set_focus(params.task_id, params.subtask_id)
        return success_message(f"Focusing on {format_focus_target(target)}")

    except Exception as e:
        return handle_error(e, "set_focus")


@mcp.tool(
    name="zenflow_clear_focus",
    annotations={
        "title": "Clear Focus Target",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def zenflow_clear_focus(ctx: Context) -> str:
    """Stop attributing focus time to any task."""
    try:
        client = get_client(ctx)
        client.clear_focus()
        return success_message("Focus target cleared.")

    except Exception as e:
        return handle_error(e, "clear_focus")


# =============================================================================
# Timer Tools
# =============================================================================


@mcp.tool(
    name="zenflow_timer_status",
    annotations={
        "title": "Timer Status",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def zenflow_timer_status(ctx: Context, response_format: ResponseFormat = ResponseFormat.MARKDOWN) -> str:
    """
    Show the Pomodoro timer.

    Returns:
        Mode, remaining time, running state, completed sessions, focus
        target and configured durations.
    """
    try:
        client = get_client(ctx)
        return format_response(
            format_timer_json(client.timer, client.focus_target),
            response_format,
            format_timer_markdown(client.timer, client.focus_target),
        )

    except Exception as e:
        return handle_error(e, "timer_status")


@mcp.tool(
    name="zenflow_timer_toggle",
    annotations={
        "title": "Start/Pause Timer",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": False,
    },
)
async def zenflow_timer_toggle(ctx: Context) -> str:
    """Start the timer if paused, pause it if running. Remaining time is kept."""
    try:
        client = get_client(ctx)
        client.toggle_timer()
        return format_timer_markdown(client.timer, client.focus_target)

    except Exception as e:
        return handle_error(e, "timer_toggle")


@mcp.tool(
    name="zenflow_timer_reset",
    annotations={
        "title": "Reset Timer",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def zenflow_timer_reset(ctx: Context) -> str:
    """Pause and restore the full duration of the current mode."""
    try:
        client = get_client(ctx)
        client.reset_timer()
        return format_timer_markdown(client.timer, client.focus_target)

    except Exception as e:
        return handle_error(e, "timer_reset")


@mcp.tool(
    name="zenflow_timer_switch_mode",
    annotations={
        "title": "Switch Timer Mode",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def zenflow_timer_switch_mode(params: TimerModeInput, ctx: Context) -> str:
    """Enter work, short break or long break with its full duration, paused."""
    try:
        client = get_client(ctx)
        client.switch_timer_mode(params.mode)
        return format_timer_markdown(client.timer, client.focus_target)

    except Exception as e:
        return handle_error(e, "timer_switch_mode")


@mcp.tool(
    name="zenflow_timer_settings",
    annotations={
        "title": "Timer Durations",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def zenflow_timer_settings(params: TimerSettingsInput, ctx: Context) -> str:
    """
    Change mode durations in minutes.

    Values are parsed leniently ('30min' -> 30, empty -> 1) and clamped to
    1-120. Omitted modes keep their duration; with no values the current
    durations are shown.
    """
    try:
        client = get_client(ctx)
        for mode, value in params.changes().items():
            client.set_timer_duration(mode, value)
        return format_timer_markdown(client.timer, client.focus_target)

    except Exception as e:
        return handle_error(e, "timer_settings")


# =============================================================================
# Schulte Tools
# =============================================================================


@mcp.tool(
    name="zenflow_schulte_new",
    annotations={
        "title": "New Schulte Grid",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": False,
    },
)
async def zenflow_schulte_new(ctx: Context, response_format: ResponseFormat = ResponseFormat.MARKDOWN) -> str:
    """
    Shuffle a fresh 5x5 Schulte grid.

    Click 1 through 25 in order with zenflow_schulte_click; the clock
    starts on 1 and stops on 25.
    """
    try:
        client = get_client(ctx)
        client.new_schulte_grid()
        return format_response(
            format_schulte_json(client.schulte),
            response_format,
            format_schulte_markdown(client.schulte),
        )

    except Exception as e:
        return handle_error(e, "schulte_new")


@mcp.tool(
    name="zenflow_schulte_click",
    annotations={
        "title": "Click Schulte Cell",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": False,
    },
)
async def zenflow_schulte_click(params: SchulteClickInput, ctx: Context) -> str:
    """
    Click a number on the grid.

    Only the next expected number counts; anything else is ignored.
    """
    try:
        client = get_client(ctx)
        result = client.schulte_click(params.number)

        if result is not None:
            return success_message(f"Grid finished in {result.time_taken:.2f}s.")
        return format_schulte_markdown(client.schulte)

    except Exception as e:
        return handle_error(e, "schulte_click")


@mcp.tool(
    name="zenflow_schulte_status",
    annotations={
        "title": "Schulte Status",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def zenflow_schulte_status(ctx: Context, response_format: ResponseFormat = ResponseFormat.MARKDOWN) -> str:
    """Show the current grid, the next number and the elapsed time."""
    try:
        client = get_client(ctx)
        return format_response(
            format_schulte_json(client.schulte),
            response_format,
            format_schulte_markdown(client.schulte),
        )

    except Exception as e:
        return handle_error(e, "schulte_status")


@mcp.tool(
    name="zenflow_schulte_history",
    annotations={
        "title": "Schulte History",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def zenflow_schulte_history(params: SchulteHistoryInput, ctx: Context) -> str:
    """List the most recent Schulte results, oldest first."""
    try:
        client = get_client(ctx)
        results = client.schulte_history[-params.limit:]
        return format_response(
            [r.to_storage() for r in results],
            params.response_format,
            format_schulte_history_markdown(results),
        )

    except Exception as e:
        return handle_error(e, "schulte_history")


# =============================================================================
# View Tools
# =============================================================================


@mcp.tool(
    name="zenflow_statistics",
    annotations={
        "title": "Statistics",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def zenflow_statistics(ctx: Context, response_format: ResponseFormat = ResponseFormat.MARKDOWN) -> str:
    """
    Summarize focus and task completion.

    Returns:
        Total focus minutes, completion rate, average hours from creation
        to completion and the last seven days with focus sessions.
    """
    try:
        client = get_client(ctx)
        stats = client.statistics()
        return format_response(
            format_statistics_json(stats),
            response_format,
            format_statistics_markdown(stats),
        )

    except Exception as e:
        return handle_error(e, "statistics")


@mcp.tool(
    name="zenflow_calendar",
    annotations={
        "title": "Task Calendar",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def zenflow_calendar(params: CalendarInput, ctx: Context) -> str:
    """
    Show a month grid marking days with tasks.

    A task belongs to a day when it was created or completed on it. Days
    whose tasks are all done are checked.
    """
    try:
        client = get_client(ctx)
        today = date.today()
        year = params.year or today.year
        month = params.month or today.month
        view = client.calendar(year, month)

        day_tasks = None
        if params.day is not None:
            if params.day > len(view.days):
                raise ZenFlowValidationError(f"{year}-{month:02d} has only {len(view.days)} days")
            day_tasks = tasks_for_day(client.tasks, date(year, month, params.day))

        return format_response(
            format_calendar_json(view, day_tasks),
            params.response_format,
            format_calendar_markdown(view, day_tasks, params.day),
        )

    except Exception as e:
        return handle_error(e, "calendar")


# =============================================================================
# AI Tools
# =============================================================================


@mcp.tool(
    name="zenflow_daily_review",
    annotations={
        "title": "End-of-Day Review",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
async def zenflow_daily_review(ctx: Context) -> str:
    """
    Ask the configured AI provider to review today's tasks.

    Nothing is sent when there are no tasks, or when no task changed since
    the last review.
    """
    try:
        client = get_client(ctx)
        review = await client.end_day_review()
        return f"# Daily Review\n\n{review}"

    except Exception as e:
        return handle_error(e, "daily_review")


@mcp.tool(
    name="zenflow_priority_suggestions",
    annotations={
        "title": "Priority Suggestions",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": True,
    },
)
async def zenflow_priority_suggestions(ctx: Context, response_format: ResponseFormat = ResponseFormat.MARKDOWN) -> str:
    """Ask the AI provider for the three unfinished tasks to tackle first."""
    try:
        client = get_client(ctx)
        suggestions = await client.priority_suggestions()

        lines = ["# Suggested Priorities", ""]
        if suggestions:
            lines.extend(f"{i}. {s}" for i, s in enumerate(suggestions, 1))
        else:
            lines.append("No unfinished tasks.")
        return format_response(suggestions, response_format, "\n".join(lines))

    except Exception as e:
        return handle_error(e, "priority_suggestions")


@mcp.tool(
    name="zenflow_schulte_analysis",
    annotations={
        "title": "Schulte Focus Analysis",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": True,
    },
)
async def zenflow_schulte_analysis(ctx: Context) -> str:
    """Ask the AI provider to comment on the five most recent Schulte times."""
    try:
        client = get_client(ctx)
        analysis = await client.schulte_analysis()
        return f"# Schulte Analysis\n\n{analysis}"

    except Exception as e:
        return handle_error(e, "schulte_analysis")


@mcp.tool(
    name="zenflow_configure_ai",
    annotations={
        "title": "Configure AI",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def zenflow_configure_ai(params: AIConfigInput, ctx: Context) -> str:
    """
    Select the AI provider and/or store its API key.

    The key is stored for the provider selected after this call. Keys are
    never echoed back.
    """
    try:
        client = get_client(ctx)
        settings = client.configure_ai(provider=params.provider, api_key=params.api_key)

        lines = ["# AI Settings", "", f"- **Provider**: {settings.provider.value}"]
        lines.extend(f"- {name}: {state}" for name, state in settings.masked().items())
        return "\n".join(lines)

    except Exception as e:
        return handle_error(e, "configure_ai")


# =============================================================================
# Preference Tools
# =============================================================================


@mcp.tool(
    name="zenflow_get_preferences",
    annotations={
        "title": "Get Preferences",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def zenflow_get_preferences(ctx: Context, response_format: ResponseFormat = ResponseFormat.MARKDOWN) -> str:
    """Show theme, display mode and AI provider (keys masked)."""
    try:
        client = get_client(ctx)
        prefs = client.preferences
        ai = client.ai_settings

        data = {**prefs.to_storage(), "aiProvider": ai.provider.value, "aiKeys": ai.masked()}
        markdown = "\n".join([
            "# Preferences",
            "",
            f"- **Theme**: {prefs.theme.value}",
            f"- **Mode**: {prefs.mode.value}",
            f"- **AI provider**: {ai.provider.value} ({ai.masked()[ai.provider.value]})",
        ])
        return format_response(data, response_format, markdown)

    except Exception as e:
        return handle_error(e, "get_preferences")


@mcp.tool(
    name="zenflow_set_preferences",
    annotations={
        "title": "Set Preferences",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def zenflow_set_preferences(params: PreferencesInput, ctx: Context) -> str:
    """Change the theme and/or light/dark mode."""
    try:
        client = get_client(ctx)
        prefs = client.set_preferences(theme=params.theme, mode=params.mode)
        return success_message(f"Theme: {prefs.theme.value}, mode: {prefs.mode.value}.")

    except Exception as e:
        return handle_error(e, "set_preferences")


# =============================================================================
# Main Entry Point
# =============================================================================


def main():
    """Main entry point for the ZenFlow MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()
