#!/usr/bin/env python3
"""
gitporter MCP server

Uploads local web projects to GitHub and downloads ready-to-use working
copies, exposed as MCP tools over stdio.
"""

from gitporter import main


if __name__ == "__main__":
    main()
