"""
Terminal plumbing for the `vpkit` command-line tool: coloured messages, user-friendly error reporting and logging
setup.
"""
