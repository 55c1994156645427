#!/usr/bin/env python3
"""
照片壓縮工具

主程式進入點

使用方法:
    uv run main.py photos/ -o output/
"""

import sys

from photo_ingest.app import main


if __name__ == "__main__":
    sys.exit(main())
