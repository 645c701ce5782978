import sys

from cascii.cli import main

sys.exit(main())
