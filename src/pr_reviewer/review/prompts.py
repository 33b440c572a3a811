from pr_reviewer.models.config import RepoConfig
from pr_reviewer.models.diff import ChangedBlock


SYSTEM_PROMPT = """You are an expert code reviewer. Analyze the code changes for the following categories: {checks}.

Respond in language: {language}.

Return ONLY valid JSON in this exact format:
{{
  "issues": [
    {{
      "type": "bug|improvement|security|style|test",
      "severity": "low|medium|high|critical",
      "description": "<detailed description of the issue>",
      "line_number": <line number in the NEW file, or null>,
      "code_snippet": "<exact code from that line>",
      "suggestion": "<specific suggestion for improvement>",
      "confidence": <number between 0.0 and 1.0>,
      "is_new_issue": <true if introduced by this change>,
      "is_fixed": <true if this change fixes a previously existing issue>
    }}
  ],
  "overall_quality": "excellent|good|acceptable|needs_improvement|poor",
  "summary": "<2-3 sentence summary of the changes>"
}}

Important:
- Only comment on the changed lines (marked with > in the listing)
- Use EXACTLY the line numbers shown in the listing (the number before the | symbol)
- Copy the offending code into code_snippet verbatim, it is used to locate the line
- Be specific and actionable in your comments
- If the code looks good, return an empty issues array"""


USER_PROMPT = """File: {file_path}
{description_block}
Changed regions with line numbers (> marks changed lines):
```
{blocks}
```

Changes (diff):
```diff
{diff_content}
```

Review the changes and respond with JSON. Use the line numbers shown above."""


SECURITY_PROMPT = """Perform a security analysis of the following code changes.

Respond in language: {language}.

File: {file_path}

Changed regions with line numbers (> marks changed lines):
```
{blocks}
```

Changes (diff):
```diff
{diff_content}
```

Look for security vulnerabilities including:
1. SQL injection
2. XSS vulnerabilities
3. Hardcoded secrets
4. Insecure authentication
5. Input validation issues
6. Authorization bypasses
7. Insecure dependencies
8. Logging of sensitive information

Return ONLY valid JSON in this exact format:
{{
  "security_issues": [
    {{
      "vulnerability_type": "<short name>",
      "severity": "low|medium|high|critical",
      "description": "<what is vulnerable and why>",
      "line_number": <line number in the NEW file, or null>,
      "code_snippet": "<exact code from that line>",
      "recommendation": "<how to fix it>",
      "confidence": <number between 0.0 and 1.0>
    }}
  ]
}}

Only report issues on the changed lines. If nothing is vulnerable, return an empty security_issues array."""


def render_blocks(blocks: list[ChangedBlock]) -> str:
    """Render context windows with right-aligned line numbers."""
    if not blocks:
        return "(no changed lines)"

    width = len(str(blocks[-1].end))
    rendered = []
    for block in blocks:
        rendered.append(
            "\n".join(
                f"{'>' if line.changed else ' '}{line.number:>{width}}| {line.text}"
                for line in block.lines
            )
        )
    return "\n...\n".join(rendered)


def build_review_prompt(
    file_path: str,
    blocks: list[ChangedBlock],
    diff_content: str,
    config: RepoConfig,
    pr_title: str = "",
    pr_description: str = "",
) -> str:
    """Build the complete prompt for code review."""
    checks_str = ", ".join(check.value for check in config.checks)

    system = SYSTEM_PROMPT.format(
        checks=checks_str,
        language=config.language,
    )

    description_block = ""
    if pr_title.strip() or pr_description.strip():
        description_block = f"\n\nPull request: {pr_title.strip()}\n```\n{pr_description.strip()}\n```\n"

    user = USER_PROMPT.format(
        file_path=file_path,
        blocks=render_blocks(blocks),
        diff_content=diff_content,
        description_block=description_block,
    )

    return f"{system}\n\n{user}"


def build_security_prompt(
    file_path: str,
    blocks: list[ChangedBlock],
    diff_content: str,
    config: RepoConfig,
) -> str:
    return SECURITY_PROMPT.format(
        language=config.language,
        file_path=file_path,
        blocks=render_blocks(blocks),
        diff_content=diff_content,
    )
