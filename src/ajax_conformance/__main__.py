import sys

from ajax_conformance.cli import main

sys.exit(main())
