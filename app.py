if __name__ != '__main__':
    raise ImportError('This is not a module. Please run app.py instead.')

import sys

from playerdata.cli import main


if __name__ == '__main__':
    sys.exit(main())
