#!/usr/bin/env python3

import sys
from lib.site_setup import setup_main


def main() -> int:
    return setup_main()


if __name__ == "__main__":
    sys.exit(main())
