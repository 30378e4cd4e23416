"""Process exit codes returned by ``circannot``.

0 on success, 1 when annotation or a lookup fails, 2 for bad command-line
usage (click's own code) and 130 after Ctrl-C.
"""

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_SIGINT = 130  # 128 + SIGINT
