import sys

from code_assist_adapter.cli import main

sys.exit(main())
