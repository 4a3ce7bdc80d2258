"""awesome-claude-code: bundled Claude Code commands, agents and skills.

The sync engine lives in ``awesome_claude_code.setup``; run
``awesome-claude-code --help`` for the command line.
"""

__version__ = "1.0.0"
