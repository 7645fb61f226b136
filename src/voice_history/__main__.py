import sys

from voice_history.cli import main

sys.exit(main())
