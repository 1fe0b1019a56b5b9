import sys

from morphlab.main import main


sys.exit(main())
