import sys

from chip8kit.cli import main

sys.exit(main())
