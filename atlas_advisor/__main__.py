import sys

from atlas_advisor.cli import main

sys.exit(main())
