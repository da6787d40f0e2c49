import shlex
import subprocess
import platform
from typing import List


def is_windows() -> bool:
    return platform.system() == "Windows"


def check_command_exists(command: str) -> bool:
    """Check if a command exists in PATH (cross-platform)"""
    try:
        # Use 'where' on Windows, 'which' on Unix/Linux/Mac
        check_cmd = "where" if is_windows() else "which"
        result = subprocess.run(
            [check_cmd, command],
            capture_output=True, text=True, timeout=5
        )
        return result.returncode == 0
    except (OSError, subprocess.SubprocessError):
        return False


def join_commands(commands: List[str]) -> str:
    return " && ".join(commands)


def quote(value: str) -> str:
    if is_windows():
        return f'"{value}"'
    return shlex.quote(value)
