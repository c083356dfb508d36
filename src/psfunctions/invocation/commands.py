"""Build PowerShell command lines from untrusted path and name strings."""

from __future__ import annotations

from pathlib import Path

from psfunctions.constants import FUNCTION_NAME_PATTERN, INTERPRETER_FLAGS
from psfunctions.errors import InvocationError


def escape_powershell_path(path: str | Path) -> str:
    """Escape a path for use inside a single-quoted PowerShell literal.

    Single quotes are doubled so they cannot close the literal, and
    backslashes are doubled as well::

        C:\\Users\\O'Brien\\f.ps1  ->  C:\\\\Users\\\\O''Brien\\\\f.ps1
    """
    return str(path).replace("'", "''").replace("\\", "\\\\")


def validate_function_name(name: str) -> str:
    """Reject anything that is not a plain PowerShell identifier.

    Names come from an extracted list, but they are interpolated
    into a command string unquoted, so they are checked again here.
    """
    if not name or FUNCTION_NAME_PATTERN.fullmatch(name) is None:
        raise InvocationError(f"Invalid function name: {name!r}")
    return name


def build_invoke_command(script_path: str | Path, function_name: str) -> str:
    """Dot-source the script, then call one function with no arguments."""
    escaped = escape_powershell_path(script_path)
    name = validate_function_name(function_name)
    return f". '{escaped}'; {name}"


def build_parse_command(script_path: str | Path) -> str:
    """List zero-argument functions using PowerShell's own parser.

    Emits a compressed JSON array of names in document order. Nested
    definitions are included. Functions with a populated ``param()``
    block count as taking arguments. Parse errors are written to
    stderr and exit non-zero.
    """
    escaped = escape_powershell_path(script_path)
    lines = [
        "$ErrorActionPreference = 'Stop';",
        "$parseErrors = $null;",
        "$ast = [System.Management.Automation.Language.Parser]::ParseFile(",
        f"'{escaped}', [ref]$null, [ref]$parseErrors);",
        "if ($parseErrors -and $parseErrors.Count -gt 0) {",
        "[Console]::Error.WriteLine($parseErrors[0].Message); exit 2 };",
        "$functions = $ast.FindAll({ param($node)",
        "$node -is [System.Management.Automation.Language.FunctionDefinitionAst]",
        "-and $node.Parameters.Count -eq 0",
        "-and (-not $node.Body.ParamBlock",
        "-or $node.Body.ParamBlock.Parameters.Count -eq 0)",
        "}, $true);",
        "ConvertTo-Json -InputObject @($functions | ForEach-Object { $_.Name })",
        "-Compress",
    ]
    return " ".join(lines)


def build_argv(interpreter: str, command: str) -> list[str]:
    """Full argv for a non-interactive, profile-less interpreter run."""
    return [interpreter, *INTERPRETER_FLAGS, command]
