import sys

from proofrank.cli import main

sys.exit(main())
