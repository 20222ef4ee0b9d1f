import sys

from valve_search.cli import main

sys.exit(main())
