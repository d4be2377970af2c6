import sys

from vpkit.cli import main


sys.exit(main())
