import re

H1_PATTERN = re.compile(r"^#\s")


def ensure_title(markdown: str, title: str) -> str:
    """Make ``markdown`` start with ``# {title}`` as its only top-level heading.

    The first non-blank line is replaced when it is a level-1 heading;
    anything else (including a ``##`` heading) gets the title prepended.
    """
    lines = markdown.split("\n")

    for index, line in enumerate(lines):
        stripped = line.strip()
        if not stripped:
            continue
        if H1_PATTERN.match(stripped):
            lines[index] = f"# {title}"
            return "\n".join(lines)
        break

    return f"# {title}\n\n{markdown}"
