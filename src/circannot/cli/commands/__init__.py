"""circannot subcommands."""
