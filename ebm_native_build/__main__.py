import sys

from ebm_native_build.cli import main

sys.exit(main())
