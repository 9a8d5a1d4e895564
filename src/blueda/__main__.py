# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

import sys

from blueda.cli import main

if __name__ == "__main__":
    sys.exit(main())
