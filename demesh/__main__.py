import sys

from demesh.cli import main

sys.exit(main())
