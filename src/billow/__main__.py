import sys

from billow.app import main

sys.exit(main())
