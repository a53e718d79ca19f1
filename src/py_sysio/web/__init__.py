"""Browser console for PySysIO.

This package provides a Flask application that plays the console
boundary for a simulated guest.  It is an **optional** extra — install
with::

    pip install py-sysio[web]

The ``create_app`` factory in ``app.py`` serves four endpoints:

- ``GET /api/console`` — guest output since the last poll.
- ``POST /api/input`` — a line for the guest's stdin.
- ``GET /api/status`` — open descriptors and the last error.
- ``POST /api/reset`` — reset the descriptor table.
"""
