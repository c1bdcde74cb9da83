# langlab/report.py
"""Connection details printed after the core service is installed."""

from typing import Callable

from langlab.core.models import Endpoint, RunContext


def _reachability(endpoint: Endpoint) -> str:
    if endpoint.reachable is None:
        return "unknown"
    return "yes" if endpoint.reachable else "not yet"


def format_connection_info(ctx: RunContext) -> str:
    endpoint = ctx.endpoint or Endpoint.pending_for(ctx.namespace)
    password = ctx.secrets.admin_password if ctx.secrets else "<unchanged>"
    api_url = f"{endpoint.url}/api"

    lines = [
        "",
        "=" * 74,
        "LangSmith Installation Complete!",
        "=" * 74,
        "",
        "Connection Details:",
        "-------------------",
        f"Namespace: {ctx.namespace}",
        f"Endpoint:  {endpoint.url}",
        f"Reachable: {_reachability(endpoint)}",
        f"Email:     {ctx.environment.admin_email}",
        f"Password:  {password}",
        "",
        "⚠️  Important: Save these credentials securely!",
        "",
        "⚠️  WARNING: Resource Usage Alert",
        "    Delete right after reproduction as amount of using resources per installation is high!",
        "    CPU: ~20 cores, Memory: ~50Gi",
        "",
    ]

    if ctx.warnings:
        lines.append("Warnings:")
        lines.extend(f"  - {warning}" for warning in ctx.warnings)
        lines.append("")

    lines.extend([
        "=" * 74,
        "Example Python Usage:",
        "",
        "import os",
        "",
        'os.environ["LANGSMITH_TRACING"] = "true"',
        f'os.environ["LANGSMITH_ENDPOINT"] = "{api_url}"',
        'os.environ["LANGSMITH_API_KEY"] = "YOUR_KEY"',
        'os.environ["OPENAI_API_KEY"] = "YOUR_KEY"',
        'os.environ["LANGSMITH_PROJECT"] = "YOUR_PROJECT"',
        "",
        "=" * 74,
        "",
    ])
    return "\n".join(lines)


def print_connection_info(ctx: RunContext, write: Callable[[str], None] = print) -> None:
    write(format_connection_info(ctx))
