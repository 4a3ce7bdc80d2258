"""Allow ``python -m awesome_claude_code``."""

import sys

from awesome_claude_code.setup.cli import main

sys.exit(main())
