import sys

from levels_search.cli import main


sys.exit(main())
