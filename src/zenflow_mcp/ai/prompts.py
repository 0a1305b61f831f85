"""
Prompt builders and fixed fallback replies for the AI advisory.

Fallback strings are shown to the user verbatim when a provider cannot
be reached or returns nothing usable.
"""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from zenflow_mcp.models import SchulteResult, Task

REVIEW_EMPTY_REPLY = "保持动力，明天又是新的一天！"
REVIEW_FAILURE_REPLY = "今天辛苦了！休息好，明天再继续。"
SCHULTE_NO_RESULTS_REPLY = "暂无最近练习记录。"
SCHULTE_EMPTY_REPLY = "保持练习，专注力会持续提升！"
SCHULTE_FAILURE_REPLY = "练习是提升专注力的关键，继续加油！"

PRIORITY_SUGGESTION_COUNT = 3


def _split(tasks: Sequence[Task]) -> tuple[list[Task], list[Task]]:
    completed = [t for t in tasks if t.completed]
    unfinished = [t for t in tasks if not t.completed]
    return completed, unfinished


def review_prompt_en(tasks: Sequence[Task], *, language_note: str) -> str:
    """Short encouraging end-of-day review, English instructions."""
    completed, unfinished = _split(tasks)
    return (
        "The user is ending their day.\n"
        f"Completed tasks: {len(completed)}\n"
        f"Unfinished tasks: {len(unfinished)}\n"
        f"Unfinished task list: {', '.join(t.text for t in unfinished)}\n\n"
        "Provide a concise, encouraging review (2-3 sentences).\n"
        "If there are unfinished tasks, gently suggest how to tackle them tomorrow.\n"
        f"Keep it motivational and professional. {language_note}"
    )


def review_prompt_zh(tasks: Sequence[Task]) -> str:
    """Structured three-part review with Chinese instructions."""
    completed, unfinished = _split(tasks)
    return (
        "用户当天的任务执行情况如下:\n"
        f"总计任务: {len(tasks)}\n"
        f"已完成: {len(completed)}\n"
        f"未完成: {len(unfinished)}\n"
        f"未完成列表: {', '.join(t.text for t in unfinished)}\n\n"
        "请以此为据进行智能分析:\n"
        "1. 任务评价: 对已完成的工作给予肯定或客观评价。\n"
        "2. 进度分析: 分析当前任务分配的合理性或紧迫度。\n"
        "3. 安排建议: 针对未完成任务，给出接下来的行动建议或明天的安排。\n\n"
        "要求: 语气极简、专业且有启发性。总字数控制在 100 字以内。必须使用中文回答。"
    )


def priority_prompt(unfinished: Sequence[str]) -> str:
    return (
        f"Given these tasks: {', '.join(unfinished)}, suggest the top {PRIORITY_SUGGESTION_COUNT} "
        "priorities to focus on first to maximize productivity. Return ONLY a JSON list of strings."
    )


def schulte_prompt(results: Sequence[SchulteResult]) -> str:
    stats = "\n".join(
        f"{datetime.fromtimestamp(r.timestamp / 1000).strftime('%Y/%m/%d')} {r.time_taken}秒" for r in results
    )
    return (
        "用户最近的舒尔特方格练习记录如下:\n"
        f"{stats}\n\n"
        "请分析用户的专注力状态:\n"
        "1. 趋势分析: 时间是变快了还是变慢了？\n"
        "2. 专注力评价: 根据时间判断当前的专注程度（平均 20-30 秒为优秀）。\n"
        "3. 练习建议: 给出简洁的练习建议。\n\n"
        "要求: 语气极简、专业且有启发性。总字数控制在 100 字以内。必须使用中文回答。"
    )
