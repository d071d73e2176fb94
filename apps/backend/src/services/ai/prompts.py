"""Prompt contracts for query detection and task extraction.

Every prompt that references existing tasks lists each task with its real
identifier (``ID <id>:``) and tells the model to answer with those ids,
never with positions in the list.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from schemas.tasks import TaskRecord


QUERY_DETECTION_PROMPT = """
You are a smart todo assistant. Analyze the user input and decide whether it
is a QUERY/QUESTION about their existing todos, or TODO CREATION input.

Return:
- isQuery: true for questions about existing todos, false for new todos
- intent: filter_by_tag | filter_by_priority | filter_by_date |
  filter_by_status | summarize | search | todo_creation
- keywords: the words that drove your decision
- response: a natural language answer to the query ("" for todo creation)
- matchingTodoIds: the ACTUAL todo IDs taken from the "ID X:" prefixes.
  NEVER use positions in the list. Only use IDs that appear in the list.
- confidence: 0.0-1.0, how certain you are about this classification
- confidenceReason: a brief reason for the confidence level

Examples:
- "What's urgent?" -> isQuery: true, intent: filter_by_priority,
  keywords: ["urgent", "high"], matchingTodoIds: [ids of urgent todos],
  confidence: 0.95, confidenceReason: "Clear priority filter request"
- "Show me work stuff" -> isQuery: true, intent: filter_by_tag,
  keywords: ["work"], matchingTodoIds: [ids of work todos], confidence: 0.9
- "What's next week?" -> isQuery: true, intent: filter_by_date,
  keywords: ["next week"], confidence: 0.85
- "buy groceries tomorrow" -> isQuery: false, intent: todo_creation,
  keywords: [], response: "", matchingTodoIds: [], confidence: 0.98
"""

TASK_EXTRACTION_PROMPT = """
You are an AI assistant that extracts actionable todo items from natural
language text.

Your task is to:
1. Extract individual, distinct todo items from rambling or unstructured text
2. Assign relevant tags (work, personal, urgent, home, health, finance, etc.)
3. Determine priority (high, medium, low) based on urgency indicators
4. Infer due dates from temporal references (tomorrow, next week, Friday, etc.)
5. Preserve context by noting the original snippet

Rules:
- Extract only actionable items (not observations or questions)
- Keep todo text concise but complete
- Use lowercase for tags
- Set dueDate to null if no temporal reference exists, otherwise YYYY-MM-DD
- For "tomorrow", calculate from the current date
- For "next week", use next Monday
- For specific days like "Friday", use the next upcoming Friday
- Priority: high = urgent/important, medium = normal, low = someday/maybe
- Return confidence (0.0-1.0) for the extraction as a whole
"""


def format_task_line(task: TaskRecord) -> str:
    tags = ", ".join(task.tags) if task.tags else "none"
    due = task.due_date.isoformat() if task.due_date else "none"
    return (
        f"ID {task.id}: {task.text} [tags: {tags}] "
        f"[priority: {task.priority or 'none'}] [due: {due}] "
        f"[completed: {str(task.completed).lower()}]"
    )


def build_query_prompt(
    text: str, corpus: Sequence[TaskRecord], today: date | None = None
) -> str:
    today = today or date.today()
    lines = "\n".join(format_task_line(task) for task in corpus) or "(no todos)"
    return (
        f"Current date: {today.isoformat()}\n\n"
        f'USER INPUT: "{text}"\n\n'
        f"CURRENT TODOS:\n{lines}\n\n"
        "Use the actual todo IDs from the \"ID X:\" prefixes, NOT list positions."
    )


def build_extraction_prompt(text: str, today: date | None = None) -> str:
    today = today or date.today()
    return (
        f"Current date: {today.isoformat()}\n\n"
        f'Extract todos from this text:\n\n"{text}"'
    )
