from collections.abc import Sequence

from trayce.capture.normalize import ContentItem
from trayce.records import ItemContext, parse_timestamp

SYSTEM_PROMPT = """You are an expert technical writer who specializes in creating clear, concise procedure documentation.

Your task is to analyze a developer's clipboard history with associated metadata and generate a well-structured procedure document in Markdown format.

Guidelines:
1. Analyze the clipboard items chronologically to understand the workflow
2. Use TAGS (like #setup, #debug, #config) to identify and group related actions
3. Use INTENT information (why: annotations) to understand the developer's reasoning
4. Use CONTEXT information (app, directory, git branch) to provide environment details
5. Group related commands/actions together based on tags and logical flow
6. Add clear explanations for each step, incorporating the developer's intent when available
7. Format code blocks, commands, and URLs appropriately with syntax highlighting
8. Include relevant context about the working environment when it adds value
9. Use numbered lists for sequential steps
10. Organize steps by purpose (based on tags) when appropriate
11. IMPORTANT: When a specific title is provided by the user, you MUST use that exact title as the H1 heading. Do not modify, paraphrase, or create a different title.

Output Format:
- Title: Use the exact user-provided title (if given) as a level 1 Markdown heading (# Title)
- Overview: 1-2 sentence summary incorporating the overall intent
- Context: Environment details (if provided: working directory, git branch, tools used)
- Prerequisites (if applicable)
- Steps: Numbered, detailed steps with code blocks, grouped by tags/purpose
- Notes or Tips section (if applicable)

Tag Interpretation:
- #setup: Initial configuration or installation steps
- #debug: Troubleshooting or debugging steps
- #config: Configuration changes
- #test: Testing or verification steps
- #deploy: Deployment-related actions
- #fix: Bug fixes or corrections
- Custom tags: Use context to determine grouping"""


def is_english(language: str | None) -> bool:
    return (language or "English").strip().lower() == "english"


def format_time(timestamp: str) -> str:
    parsed = parse_timestamp(timestamp)
    if parsed is None:
        return timestamp
    return parsed.strftime("%H:%M:%S")


def format_tags(tags: Sequence[str]) -> str:
    return ", ".join(f"#{tag}" for tag in tags)


def format_context(context: ItemContext | None) -> str | None:
    if context is None:
        return None

    parts = []
    if context.app:
        parts.append(f"App: {context.app}")
    if context.working_directory:
        parts.append(f"Directory: {context.working_directory}")
    if context.git_branch:
        parts.append(f"Branch: {context.git_branch}")
    return " | ".join(parts) if parts else None


def format_item(item: ContentItem, index: int) -> str:
    lines = [f"### Item {index} ({format_time(item.timestamp)}) - {item.type or 'text'}"]

    if item.tags:
        lines.append(f"**Tags:** {format_tags(item.tags)}")
    if item.intent:
        lines.append(f"**Intent:** {item.intent}")

    context = format_context(item.context)
    if context:
        lines.append(f"**Context:** {context}")

    lines.extend(["", "**Content:**", "```", item.content.strip(), "```", ""])
    return "\n".join(lines)


def build_procedure_prompt(
    items: Sequence[ContentItem],
    title: str,
    custom_instructions: str | None = None,
    language: str = "English",
) -> str:
    target_language = language or "English"
    english = is_english(target_language)
    has_instructions = bool(custom_instructions and custom_instructions.strip())

    if english:
        lines = ["Generate the procedure document in English."]
    else:
        lines = [
            f"IMPORTANT: Generate the entire procedure document in {target_language}. "
            f"Use natural, professional {target_language} language throughout."
        ]
    lines.append("")
    lines.append(
        "Here is a developer's clipboard history from a work session with metadata. "
        f'Please analyze it and create a clear, step-by-step procedure document with the title "{title}":'
    )
    lines.append("")

    if has_instructions:
        lines.extend(["## Custom Instructions", custom_instructions, ""])

    lines.append(f"## Clipboard History ({len(items)} items)")
    lines.append("")
    for index, item in enumerate(items, 1):
        lines.append(format_item(item, index))

    lines.append(
        f'Please create a comprehensive procedure document from this clipboard history with the title "{title}". '
        f"The document MUST start with a level 1 heading using the exact title provided: # {title}"
    )
    lines.append(
        'Use the tags to organize steps by purpose, incorporate intent information to explain the "why" '
        "behind actions, and include relevant context details. Focus on clarity and practical usefulness."
    )

    if has_instructions:
        lines.append("")
        lines.append("Remember to follow the custom instructions provided above when generating the procedure.")

    if not english:
        lines.append("")
        lines.append(
            f"IMPORTANT: The entire document must be in {target_language}, "
            "including all headings, descriptions, and explanations."
        )

    return "\n".join(lines)
