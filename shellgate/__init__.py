"""Policy-checked gateway for running shell commands (cmd, PowerShell, Git Bash, WSL)."""

__version__ = "0.1.0"
