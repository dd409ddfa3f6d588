# devsetup/__main__.py
# -*- coding: utf-8 -*-
import sys

from devsetup.main_installer import main_devsetup_entry

if __name__ == "__main__":
    sys.exit(main_devsetup_entry())
