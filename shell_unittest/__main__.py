"""Allow running test scripts with ``python -m shell_unittest``."""

from shell_unittest.cli import script_main

script_main()
