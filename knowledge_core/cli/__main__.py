"""Allow ``python -m knowledge_core.cli`` execution."""

import sys

from knowledge_core.cli.knowledge import main

sys.exit(main())
